"""
Tests for flow aggregation: the merge state machine, order independence,
materiality filtering and graph capping.
"""

from __future__ import annotations

from backend_solscope.analytics.flow_aggregator import (
    aggregate_flows,
    aggregate_funding,
    cap_graph,
    flow_totals,
    largest_sources,
    material_records,
    merge_flow,
    upgrade_direction,
)
from backend_solscope.analytics.models import (
    DIRECTION_BOTH,
    DIRECTION_INCOMING,
    DIRECTION_OUTGOING,
    FLOW_TRANSFER,
    FLOW_UNKNOWN,
    RISK_HIGH,
    RISK_LOW,
    Flow,
    FundingFlow,
    GraphEdge,
    GraphNode,
)
from backend_solscope.config.settings import sol

A = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
B = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
CENTER = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def _node(node_id: str, amount: int, last_seen: int = 0) -> GraphNode:
    return GraphNode(id=node_id, category="fund_source", amount=amount, transaction_count=1, label="X", last_seen=last_seen)


def test_upgrade_direction_never_downgrades():
    assert upgrade_direction(DIRECTION_INCOMING, DIRECTION_INCOMING) == DIRECTION_INCOMING
    assert upgrade_direction(DIRECTION_INCOMING, DIRECTION_OUTGOING) == DIRECTION_BOTH
    assert upgrade_direction(DIRECTION_BOTH, DIRECTION_INCOMING) == DIRECTION_BOTH


def test_merge_flow_state_transitions(tables, settings):
    record = merge_flow(None, Flow(A, sol(200), DIRECTION_INCOMING, FLOW_UNKNOWN), 200, tables=tables, settings=settings)
    assert record.transaction_count == 1
    assert record.risk_level == RISK_HIGH
    assert (record.first_seen, record.last_seen) == (200, 200)

    record = merge_flow(record, Flow(A, sol(1), DIRECTION_OUTGOING), 100, tables=tables, settings=settings)
    record = merge_flow(record, Flow(A, sol(1), DIRECTION_INCOMING), None, tables=tables, settings=settings)
    assert record.total_amount == sol(202)
    assert record.transaction_count == 3
    assert record.direction == DIRECTION_BOTH
    assert (record.first_seen, record.last_seen) == (100, 200)
    # risk level is fixed at creation
    assert record.risk_level == RISK_HIGH


def test_aggregate_is_order_independent(tables, settings):
    batches = [
        (100, [Flow(A, sol(1), DIRECTION_INCOMING, FLOW_TRANSFER), Flow(B, sol(1), DIRECTION_INCOMING)]),
        (200, [Flow(A, sol(2), DIRECTION_OUTGOING, FLOW_TRANSFER)]),
        (300, [Flow(B, sol(3), DIRECTION_INCOMING)]),
    ]
    forward = aggregate_flows(batches, tables=tables, settings=settings)
    backward = aggregate_flows(list(reversed(batches)), tables=tables, settings=settings)
    assert forward == backward
    assert forward[A].direction == DIRECTION_BOTH
    assert forward[B].total_amount == sol(4)
    assert forward[B].risk_level == RISK_LOW


def test_flow_totals():
    batches = [
        (1, [Flow(A, 5, DIRECTION_INCOMING), Flow(B, 5, DIRECTION_INCOMING)]),
        (2, [Flow(A, 3, DIRECTION_OUTGOING)]),
    ]
    assert flow_totals(batches) == (10, 3)


def test_material_records_filter(tables, settings):
    records = aggregate_flows(
        [(1, [Flow(A, sol(0.001), DIRECTION_INCOMING), Flow(B, sol(0.002), DIRECTION_INCOMING)]),
         (2, [Flow(CENTER, sol(5), DIRECTION_INCOMING)])],
        tables=tables,
        settings=settings,
    )
    kept = material_records(records, exclude=CENTER, settings=settings)
    assert [r.address for r in kept] == [B]


def test_cap_graph_bounds_and_keeps_center(settings):
    nodes = [_node(CENTER, 0)] + [_node(f"cp{i}", i * 1_000_000) for i in range(1000)]
    edges = [GraphEdge(source=f"cp{i}", target=CENTER, amount=i, count=1, type="funding") for i in range(1000)]
    kept_nodes, kept_edges = cap_graph(nodes, edges, keep=[CENTER], settings=settings)
    assert len(kept_nodes) <= 30
    assert len(kept_edges) <= 50
    assert kept_nodes[0].id == CENTER
    # largest amounts win
    assert kept_nodes[1].id == "cp999"
    kept_ids = {n.id for n in kept_nodes}
    assert all(e.source in kept_ids and e.target in kept_ids for e in kept_edges)


def test_cap_graph_dedupes_and_breaks_ties_by_recency(settings):
    nodes = [_node(CENTER, 0), _node(A, 5, last_seen=1), _node(B, 5, last_seen=9), _node(A, 99)]
    kept, _ = cap_graph(nodes, [], keep=[CENTER], settings=settings)
    assert [n.id for n in kept] == [CENTER, B, A]
    assert kept[2].amount == 5


def test_aggregate_funding_and_largest_sources():
    flows = [FundingFlow(A, 5), None, FundingFlow(B, 20), FundingFlow(A, 10), FundingFlow(B, 0)]
    sources, total = aggregate_funding(flows)
    assert total == 35
    assert [(s.address, s.amount, s.transaction_count) for s in sources] == [(A, 15, 2), (B, 20, 1)]
    assert [s.address for s in largest_sources(sources, 1)] == [B]
