"""
Request and response models for the HTTP API.

Field names are snake_case in Python and camelCase on the wire. Request
fields are optional at the schema level so a missing field produces the
endpoint's own "... is required" error instead of a generic validation error.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class ReputabilityRequest(CamelModel):
    wallet_address: str | None = Field(None, description="Wallet address (base58)")


class DeveloperRequest(CamelModel):
    developer_address: str | None = Field(None, description="Developer address (base58)")


class FundSourcesRequest(CamelModel):
    mint_address: str | None = Field(None, description="Token mint address (base58)")
    deployer_address: str | None = Field(None, description="Optional deployer address (base58)")


class DeployerNetworkRequest(CamelModel):
    address: str | None = Field(None, description="Deployer address (base58)")


class CheckContractRequest(CamelModel):
    mint_address: str | None = Field(None, description="Token mint address (base58)")


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class ScoreFactorModel(CamelModel):
    name: str
    impact: int
    description: str
    polarity: str


class WalletAnalysisModel(CamelModel):
    flagged_interactions: int
    blacklisted_program_usage: int
    legitimate_program_usage: int
    large_transfers: int
    total_volume: int
    counterparty_count: int
    counterparty_diversity: float
    wallet_age_months: float
    transaction_count: int
    recent_transactions: int
    transaction_frequency: float
    staking_transactions: int
    staking_activity_ratio: float
    token_count: int
    has_staked_tokens: bool
    programs_used: list[str]
    unique_programs: int


class ReputabilityResponse(CamelModel):
    score: int = Field(..., ge=0, le=100, description="Reputability score (0-100)")
    explanation: str
    factors: list[ScoreFactorModel]
    risk_level: str
    recommendations: list[str]
    wallet_analysis: WalletAnalysisModel


class GraphNodeModel(CamelModel):
    id: str
    group: int
    value: int
    label: str
    category: str
    amount: int
    transaction_count: int
    fund_direction: str | None = None
    risk_level: str | None = None


class GraphEdgeModel(CamelModel):
    source: str
    target: str
    value: int
    amount: int
    type: str
    frequency: int
    direction: str | None = None


class FundFlowResponse(CamelModel):
    nodes: list[GraphNodeModel]
    links: list[GraphEdgeModel]
    total_funds_received: int
    total_funds_sent: int
    funding_sources: int
    risk_score: int = Field(..., ge=0, le=100)
    suspicious_patterns: list[str]


class FundingGraphResponse(CamelModel):
    nodes: list[GraphNodeModel]
    links: list[GraphEdgeModel]
    total_funding: int
    funding_sources: int


class NetworkGraphResponse(CamelModel):
    nodes: list[GraphNodeModel]
    links: list[GraphEdgeModel]


class TokenInfoResponse(CamelModel):
    mint_address: str
    name: str
    symbol: str
    decimals: int
    supply: str
    mint_authority: str | None = None
    freeze_authority: str | None = None
    metadata_uri: str | None = None
    deployer: str | None = None
    is_mutable: bool = False


class HealthResponse(BaseModel):
    status: str
