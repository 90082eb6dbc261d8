"""
Flow aggregation: fold per-transaction flows into per-counterparty FlowRecords
and turn them into capped graph nodes/edges.

merge_flow is the single state transition: add amount, bump count, widen the
seen window, and upgrade direction to "both" once both directions were seen
(never downgrades). Risk level is assessed once, when the record is created.
Aggregation is keyed by address, so the result does not depend on the order
in which transactions were fetched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

from backend_solscope.analytics.models import (
    DIRECTION_BOTH,
    DIRECTION_INCOMING,
    Flow,
    FlowRecord,
    FundingFlow,
    FundingSource,
    GraphEdge,
    GraphNode,
)
from backend_solscope.analytics.risk_engine import assess_risk
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings

# (block time, flows extracted from that transaction)
FlowBatch = tuple[int | None, Sequence[Flow]]


def upgrade_direction(current: str, incoming: str) -> str:
    """Direction after observing `incoming`: unchanged if equal, otherwise both."""
    if current == incoming:
        return current
    return DIRECTION_BOTH


def _earliest(a: int, b: int) -> int:
    """Earliest of two block times; 0 means unknown."""
    if not a:
        return b
    if not b:
        return a
    return min(a, b)


def merge_flow(
    existing: FlowRecord | None,
    flow: Flow,
    timestamp: int | None = None,
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> FlowRecord:
    """Return the record for flow.counterparty after applying flow."""
    ts = timestamp or 0
    if existing is None:
        return FlowRecord(
            address=flow.counterparty,
            total_amount=flow.amount,
            transaction_count=1,
            direction=flow.direction,
            first_seen=ts,
            last_seen=ts,
            risk_level=assess_risk(
                flow.counterparty, flow.amount, flow.flow_type, tables=tables, settings=settings
            ),
            flow_type=flow.flow_type,
        )
    return replace(
        existing,
        total_amount=existing.total_amount + flow.amount,
        transaction_count=existing.transaction_count + 1,
        direction=upgrade_direction(existing.direction, flow.direction),
        first_seen=_earliest(existing.first_seen, ts),
        last_seen=max(existing.last_seen, ts),
    )


def aggregate_flows(
    batches: Iterable[FlowBatch],
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> dict[str, FlowRecord]:
    """Fold batches of flows into address -> FlowRecord (insertion order = first seen)."""
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    records: dict[str, FlowRecord] = {}
    for timestamp, flows in batches:
        for flow in flows:
            records[flow.counterparty] = merge_flow(
                records.get(flow.counterparty), flow, timestamp, tables=tables, settings=settings
            )
    return records


def flow_totals(batches: Iterable[FlowBatch]) -> tuple[int, int]:
    """(total received, total sent) summed per flow by direction."""
    received = 0
    sent = 0
    for _, flows in batches:
        for flow in flows:
            if flow.direction == DIRECTION_INCOMING:
                received += flow.amount
            else:
                sent += flow.amount
    return received, sent


def material_records(
    records: dict[str, FlowRecord],
    *,
    exclude: str | None = None,
    settings: AnalysisSettings | None = None,
) -> list[FlowRecord]:
    """Records above the materiality threshold, excluding the subject address."""
    settings = settings or get_settings()
    return [
        r
        for address, r in records.items()
        if r.total_amount > settings.materiality_threshold and address != exclude
    ]


def cap_graph(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    *,
    keep: Sequence[str] = (),
    settings: AnalysisSettings | None = None,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """
    Deduplicate nodes by id and cap the graph. Nodes in `keep` are always kept
    (in order); the rest are ranked by amount, then recency. Edges are limited
    to kept nodes and ranked by amount. Dropped entries are silently excluded.
    """
    settings = settings or get_settings()
    unique: dict[str, GraphNode] = {}
    for node in nodes:
        unique.setdefault(node.id, node)

    pinned = [unique[k] for k in dict.fromkeys(keep) if k in unique]
    pinned_ids = {n.id for n in pinned}
    rest = [n for n in unique.values() if n.id not in pinned_ids]
    rest.sort(key=lambda n: (n.amount, n.last_seen), reverse=True)
    kept = (pinned + rest)[: settings.max_nodes]
    kept_ids = {n.id for n in kept}

    valid_edges = [e for e in edges if e.source in kept_ids and e.target in kept_ids]
    valid_edges.sort(key=lambda e: e.amount, reverse=True)
    return kept, valid_edges[: settings.max_edges]


def aggregate_funding(flows: Iterable[FundingFlow | None]) -> tuple[list[FundingSource], int]:
    """Merge funding attributions by source. Returns (sources in first-seen order, total amount)."""
    merged: dict[str, FundingSource] = {}
    total = 0
    for flow in flows:
        if flow is None or flow.amount <= 0:
            continue
        existing = merged.get(flow.source)
        if existing is None:
            merged[flow.source] = FundingSource(address=flow.source, amount=flow.amount, transaction_count=1)
        else:
            merged[flow.source] = replace(
                existing,
                amount=existing.amount + flow.amount,
                transaction_count=existing.transaction_count + 1,
            )
        total += flow.amount
    return list(merged.values()), total


def largest_sources(sources: Sequence[FundingSource], limit: int) -> list[FundingSource]:
    return sorted(sources, key=lambda s: s.amount, reverse=True)[:limit]
