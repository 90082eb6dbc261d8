"""
Suspicious-pattern detection over an aggregated fund-flow graph.

All checks are independent; every matching pattern is reported in check
order, capped at max_patterns. The subject (developer) node is ignored.
"""

from __future__ import annotations

from typing import Sequence

from backend_solscope.analytics.models import (
    CATEGORY_DEVELOPER,
    CATEGORY_EXCHANGE,
    CATEGORY_UNKNOWN,
    DIRECTION_BOTH,
    DIRECTION_INCOMING,
    DIRECTION_OUTGOING,
    GraphEdge,
    GraphNode,
)
from backend_solscope.config.settings import AnalysisSettings, get_settings

PATTERN_CIRCULAR_FUNDING = "Circular funding detected"
PATTERN_WASH_TRADING = "Potential wash trading"
PATTERN_UNKNOWN_SOURCES = "Multiple unknown funding sources"
PATTERN_HIGH_FREQUENCY = "High frequency transactions"
PATTERN_NO_EXCHANGE = "No exchange funding detected"


def _ids_with_direction(nodes: Sequence[GraphNode], direction: str) -> set[str]:
    # "both" means the address was observed in each direction
    return {
        n.id
        for n in nodes
        if n.category != CATEGORY_DEVELOPER and n.direction in (direction, DIRECTION_BOTH)
    }


def has_circular_funding(nodes: Sequence[GraphNode]) -> bool:
    """True when some address appears both as an incoming and as an outgoing counterparty."""
    return bool(_ids_with_direction(nodes, DIRECTION_INCOMING) & _ids_with_direction(nodes, DIRECTION_OUTGOING))


def detect_patterns(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    total_in: int,
    total_out: int,
    *,
    settings: AnalysisSettings | None = None,
) -> list[str]:
    settings = settings or get_settings()
    patterns: list[str] = []

    if has_circular_funding(nodes):
        patterns.append(PATTERN_CIRCULAR_FUNDING)

    if total_out > total_in * settings.wash_trading_ratio and total_out > settings.wash_trading_floor:
        patterns.append(PATTERN_WASH_TRADING)

    unknown = [n for n in nodes if n.category == CATEGORY_UNKNOWN and n.amount > settings.unknown_source_floor]
    if len(unknown) > settings.unknown_source_limit:
        patterns.append(PATTERN_UNKNOWN_SOURCES)

    busy_edges = [e for e in edges if e.count > settings.high_frequency_count]
    if len(busy_edges) > settings.high_frequency_edge_limit:
        patterns.append(PATTERN_HIGH_FREQUENCY)

    has_exchange = any(n.category == CATEGORY_EXCHANGE for n in nodes)
    if not has_exchange and total_in > settings.no_exchange_floor:
        patterns.append(PATTERN_NO_EXCHANGE)

    return patterns[: settings.max_patterns]
