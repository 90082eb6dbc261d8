"""
Risk scoring for fund-flow graphs.

assess_risk: per-address risk level, computed once when a counterparty is first seen.
calculate_flow_risk: additive 0-100 risk score for a whole fund-flow graph,
starting from a low-medium base and adjusted by patterns and node composition.
"""

from __future__ import annotations

from typing import Sequence

from backend_solscope.analytics.models import (
    CATEGORY_CONTRACT,
    CATEGORY_EXCHANGE,
    CATEGORY_UNKNOWN,
    CATEGORY_WHALE,
    FLOW_UNKNOWN,
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    GraphEdge,
    GraphNode,
)
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings

SCORE_MIN = 0
SCORE_MAX = 100


def assess_risk(
    address: str,
    amount: int,
    flow_type: str,
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> str:
    """low for known-safe addresses; high for very large unclassified flows; medium for large; else low."""
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    if address in tables.safe_addresses:
        return RISK_LOW
    if amount > settings.very_large_amount_threshold and flow_type == FLOW_UNKNOWN:
        return RISK_HIGH
    if amount > settings.large_amount_threshold:
        return RISK_MEDIUM
    return RISK_LOW


def calculate_flow_risk(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    total_in: int,
    total_out: int,
    patterns: Sequence[str],
    *,
    settings: AnalysisSettings | None = None,
) -> int:
    """Fund-flow risk score clamped to [0, 100]."""
    settings = settings or get_settings()
    score = settings.flow_risk_base
    score += len(patterns) * settings.flow_risk_pattern_weight

    exchange_count = sum(1 for n in nodes if n.category == CATEGORY_EXCHANGE)
    if exchange_count == 0 and total_in > settings.no_exchange_floor:
        score += settings.flow_risk_no_exchange_penalty

    score += sum(1 for n in nodes if n.category == CATEGORY_UNKNOWN) * settings.flow_risk_unknown_weight
    score += sum(1 for n in nodes if n.risk_level == RISK_HIGH) * settings.flow_risk_high_risk_weight

    whale_count = sum(1 for n in nodes if n.category == CATEGORY_WHALE)
    if whale_count > settings.flow_risk_whale_limit:
        score += settings.flow_risk_whale_penalty

    score -= exchange_count * settings.flow_risk_exchange_credit

    contract_count = sum(1 for n in nodes if n.category == CATEGORY_CONTRACT)
    if 0 < contract_count < settings.flow_risk_contract_limit:
        score -= settings.flow_risk_contract_credit

    return max(SCORE_MIN, min(SCORE_MAX, score))
