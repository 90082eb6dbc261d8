"""
Analytics data model: per-run flow records, graph nodes/edges, score results.

All entities are created fresh per request and discarded after the response.
Dataclasses are frozen; incremental updates go through dataclasses.replace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Address categories
CATEGORY_DEVELOPER = "developer"
CATEGORY_WALLET = "wallet"
CATEGORY_EXCHANGE = "exchange"
CATEGORY_CONTRACT = "contract"
CATEGORY_PROGRAM = "program"
CATEGORY_TOKEN = "token"
CATEGORY_MINT = "mint"
CATEGORY_WHALE = "whale"
CATEGORY_FUND_SOURCE = "fund_source"
CATEGORY_UNKNOWN = "unknown"

# Flow directions relative to the subject address
DIRECTION_INCOMING = "incoming"
DIRECTION_OUTGOING = "outgoing"
DIRECTION_BOTH = "both"

# Edge directions on fund-flow graphs
EDGE_TO_DEVELOPER = "to_developer"
EDGE_FROM_DEVELOPER = "from_developer"

# Edge types
EDGE_FUNDING = "funding"
EDGE_WITHDRAWAL = "withdrawal"
EDGE_EXCHANGE = "exchange"
EDGE_CONTRACT_INTERACTION = "contract_interaction"
EDGE_DEPLOYMENT = "deployment"
EDGE_CREATION = "creation"
EDGE_TRANSFER = "transfer"

# Flow types (instruction-derived)
FLOW_TRANSFER = "transfer"
FLOW_TOKEN_TRANSFER = "token_transfer"
FLOW_DEX_TRADE = "dex_trade"
FLOW_STAKING = "staking"
FLOW_UNKNOWN = "unknown"

RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"

POLARITY_POSITIVE = "positive"
POLARITY_NEGATIVE = "negative"
POLARITY_NEUTRAL = "neutral"


@dataclass(frozen=True)
class Flow:
    """Value moved between the subject and one counterparty in one transaction (lamports)."""

    counterparty: str
    amount: int
    direction: str
    flow_type: str = FLOW_UNKNOWN


@dataclass(frozen=True)
class FundingFlow:
    """A directed source -> target funding attribution from a single transaction."""

    source: str
    amount: int


@dataclass(frozen=True)
class FundingSource:
    """Funding attributed to one source address across a batch of transactions."""

    address: str
    amount: int
    transaction_count: int


@dataclass(frozen=True)
class FlowRecord:
    """Accumulated flows for one counterparty within one analysis run."""

    address: str
    total_amount: int
    transaction_count: int
    direction: str
    first_seen: int
    last_seen: int
    risk_level: str
    flow_type: str = FLOW_UNKNOWN


@dataclass(frozen=True)
class GraphNode:
    id: str
    category: str
    amount: int
    transaction_count: int
    label: str
    value: int = 0
    group: int = 0
    direction: str | None = None
    risk_level: str | None = None
    last_seen: int = 0

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "group": self.group,
            "value": self.value,
            "label": self.label,
            "category": self.category,
            "amount": self.amount,
            "transaction_count": self.transaction_count,
        }
        if self.direction is not None:
            out["fund_direction"] = self.direction
        if self.risk_level is not None:
            out["risk_level"] = self.risk_level
        return out


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    amount: int
    count: int
    type: str
    direction: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "source": self.source,
            "target": self.target,
            "value": self.count,
            "amount": self.amount,
            "type": self.type,
            "frequency": self.count,
        }
        if self.direction is not None:
            out["direction"] = self.direction
        return out


@dataclass(frozen=True)
class ScoreFactor:
    """One itemized contribution to the reputability score. polarity is set per factor, not from the sign."""

    name: str
    impact: int
    description: str
    polarity: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "impact": self.impact,
            "description": self.description,
            "polarity": self.polarity,
        }


@dataclass(frozen=True)
class ScoreResult:
    score: int
    factors: tuple[ScoreFactor, ...]
    risk_level: str


@dataclass(frozen=True)
class WalletAnalysis:
    """Metrics derived from a wallet's history; input to scoring, recommendations and narrative."""

    flagged_interactions: int = 0
    blacklisted_program_usage: int = 0
    legitimate_program_usage: int = 0
    large_transfers: int = 0
    total_volume: int = 0
    counterparty_count: int = 0
    counterparty_diversity: float = 0.0
    wallet_age_months: float = 0.1
    transaction_count: int = 0
    recent_transactions: int = 0
    transaction_frequency: float = 0.0
    staking_transactions: int = 0
    staking_activity_ratio: float = 0.0
    token_count: int = 0
    has_staked_tokens: bool = False
    programs_used: tuple[str, ...] = ()
    unique_programs: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "flagged_interactions": self.flagged_interactions,
            "blacklisted_program_usage": self.blacklisted_program_usage,
            "legitimate_program_usage": self.legitimate_program_usage,
            "large_transfers": self.large_transfers,
            "total_volume": self.total_volume,
            "counterparty_count": self.counterparty_count,
            "counterparty_diversity": self.counterparty_diversity,
            "wallet_age_months": self.wallet_age_months,
            "transaction_count": self.transaction_count,
            "recent_transactions": self.recent_transactions,
            "transaction_frequency": self.transaction_frequency,
            "staking_transactions": self.staking_transactions,
            "staking_activity_ratio": self.staking_activity_ratio,
            "token_count": self.token_count,
            "has_staked_tokens": self.has_staked_tokens,
            "programs_used": list(self.programs_used),
            "unique_programs": self.unique_programs,
        }


@dataclass(frozen=True)
class ReputabilityResult:
    score: int
    explanation: str
    factors: tuple[ScoreFactor, ...]
    risk_level: str
    recommendations: tuple[str, ...]
    analysis: WalletAnalysis

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "explanation": self.explanation,
            "factors": [f.to_dict() for f in self.factors],
            "risk_level": self.risk_level,
            "recommendations": list(self.recommendations),
            "wallet_analysis": self.analysis.to_dict(),
        }


@dataclass(frozen=True)
class FundFlowResult:
    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]
    total_funds_received: int = 0
    total_funds_sent: int = 0
    funding_sources: int = 0
    risk_score: int = 0
    suspicious_patterns: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.edges],
            "total_funds_received": self.total_funds_received,
            "total_funds_sent": self.total_funds_sent,
            "funding_sources": self.funding_sources,
            "risk_score": self.risk_score,
            "suspicious_patterns": list(self.suspicious_patterns),
        }


@dataclass(frozen=True)
class FundingGraphResult:
    """Graph with aggregate funding totals (fund sources, developer network)."""

    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]
    total_funding: int = 0
    funding_sources: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.edges],
            "total_funding": self.total_funding,
            "funding_sources": self.funding_sources,
        }


@dataclass(frozen=True)
class NetworkGraphResult:
    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class TokenInfo:
    mint_address: str
    name: str = "Unknown"
    symbol: str = "Unknown"
    decimals: int = 0
    supply: str = "0"
    mint_authority: str | None = None
    freeze_authority: str | None = None
    metadata_uri: str | None = None
    deployer: str | None = None
    is_mutable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint_address": self.mint_address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "supply": self.supply,
            "mint_authority": self.mint_authority,
            "freeze_authority": self.freeze_authority,
            "metadata_uri": self.metadata_uri,
            "deployer": self.deployer,
            "is_mutable": self.is_mutable,
        }
