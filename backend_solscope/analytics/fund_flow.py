"""
Developer fund-flow analysis.

Builds a directed graph of value moving to and from a developer address:
recent transactions -> balance-delta flows -> per-counterparty aggregation
-> material nodes/edges -> suspicious patterns and flow risk score, then one
bounded secondary hop for the largest sources. Patterns and risk are computed
on the full primary graph, before the size cap is applied. A failed secondary
hop only skips that source.

Any unexpected failure returns the minimal result (developer node only,
zero totals, fallback risk score, "Unable to analyze fund flows").
"""

from __future__ import annotations

from typing import Sequence

from backend_solscope.analytics.address_classifier import classify, label_for
from backend_solscope.analytics.balance_delta import classify_flow_type, extract_flows
from backend_solscope.analytics.flow_aggregator import (
    FlowBatch,
    aggregate_flows,
    cap_graph,
    flow_totals,
    material_records,
)
from backend_solscope.analytics.history import load_history
from backend_solscope.analytics.models import (
    CATEGORY_DEVELOPER,
    CATEGORY_FUND_SOURCE,
    DIRECTION_BOTH,
    DIRECTION_INCOMING,
    EDGE_FROM_DEVELOPER,
    EDGE_FUNDING,
    EDGE_TO_DEVELOPER,
    RISK_MEDIUM,
    FlowRecord,
    FundFlowResult,
    GraphEdge,
    GraphNode,
)
from backend_solscope.analytics.pattern_detector import detect_patterns
from backend_solscope.analytics.risk_engine import calculate_flow_risk
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings
from backend_solscope.ingestion.helius_client import ChainDataProvider, validate_address
from backend_solscope.ingestion.models import Transaction
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)

DEVELOPER_LABEL = "Developer"
SECONDARY_LABEL = "Secondary"
SECONDARY_GROUP_BASE = 200
PATTERN_UNAVAILABLE = "Unable to analyze fund flows"


def developer_node(address: str, amount: int = 0, transaction_count: int = 0, value: int = 0) -> GraphNode:
    return GraphNode(
        id=address,
        category=CATEGORY_DEVELOPER,
        amount=amount,
        transaction_count=transaction_count,
        label=DEVELOPER_LABEL,
        value=value,
        group=0,
        direction=DIRECTION_BOTH,
        risk_level=RISK_MEDIUM,
    )


def minimal_fund_flow_result(developer_address: str, settings: AnalysisSettings | None = None) -> FundFlowResult:
    settings = settings or get_settings()
    return FundFlowResult(
        nodes=(developer_node(developer_address),),
        edges=(),
        risk_score=settings.flow_risk_fallback,
        suspicious_patterns=(PATTERN_UNAVAILABLE,),
    )


def _flow_batches(
    transactions: Sequence[Transaction], address: str, settings: AnalysisSettings
) -> list[FlowBatch]:
    return [(tx.timestamp, extract_flows(tx, address, settings=settings)) for tx in transactions]


def _record_node(
    record: FlowRecord,
    *,
    group: int,
    default_label: str | None,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> GraphNode:
    category = classify(
        record.address,
        record.total_amount,
        record.flow_type,
        default=CATEGORY_FUND_SOURCE,
        tables=tables,
        settings=settings,
    )
    label = tables.label_for(record.address) or default_label or label_for(record.address, category, tables)
    return GraphNode(
        id=record.address,
        category=category,
        amount=record.total_amount,
        transaction_count=record.transaction_count,
        label=label,
        value=record.transaction_count,
        group=group,
        direction=record.direction,
        risk_level=record.risk_level,
        last_seen=record.last_seen,
    )


def _record_edge(record: FlowRecord, anchor: str, edge_type: str) -> GraphEdge:
    """Incoming records point at the anchor; everything else points away from it."""
    incoming = record.direction == DIRECTION_INCOMING
    return GraphEdge(
        source=record.address if incoming else anchor,
        target=anchor if incoming else record.address,
        amount=record.total_amount,
        count=record.transaction_count,
        type=edge_type,
        direction=EDGE_TO_DEVELOPER if incoming else EDGE_FROM_DEVELOPER,
    )


async def get_secondary_flows(
    provider: ChainDataProvider,
    address: str,
    *,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> list[FlowRecord]:
    """The largest counterparties of address over a few recent transactions (one extra hop)."""
    _, transactions = await load_history(
        provider, address, settings.secondary_signature_limit, settings.secondary_tx_limit
    )
    records = aggregate_flows(_flow_batches(transactions, address, settings), tables=tables, settings=settings)
    significant = [r for r in records.values() if r.total_amount > settings.secondary_result_floor]
    significant.sort(key=lambda r: r.total_amount, reverse=True)
    return significant[: settings.secondary_results_per_source]


async def _expand_secondary(
    provider: ChainDataProvider,
    nodes: Sequence[GraphNode],
    *,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    majors = [n for n in nodes if n.category != CATEGORY_DEVELOPER and n.amount > settings.secondary_source_floor]
    majors.sort(key=lambda n: n.amount, reverse=True)
    seen = {n.id for n in nodes}
    new_nodes: list[GraphNode] = []
    new_edges: list[GraphEdge] = []
    for source in majors[: settings.secondary_top_sources]:
        # A failed hop drops that source's expansion only
        try:
            records = await get_secondary_flows(provider, source.id, tables=tables, settings=settings)
        except Exception as e:
            logger.warning("fund_flow_secondary_failed", address=short_address(source.id), error=str(e))
            continue
        for index, record in enumerate(records):
            if record.address in seen:
                continue
            seen.add(record.address)
            new_nodes.append(
                _record_node(
                    record,
                    group=SECONDARY_GROUP_BASE + index,
                    default_label=SECONDARY_LABEL,
                    tables=tables,
                    settings=settings,
                )
            )
            new_edges.append(_record_edge(record, source.id, EDGE_FUNDING))
    return new_nodes, new_edges


async def _analyze(
    developer_address: str,
    provider: ChainDataProvider,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> FundFlowResult:
    signatures, transactions = await load_history(
        provider, developer_address, settings.fund_flow_signature_limit, settings.fund_flow_tx_limit
    )
    batches = _flow_batches(transactions, developer_address, settings)
    records = aggregate_flows(batches, tables=tables, settings=settings)
    total_received, total_sent = flow_totals(batches)

    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    funding_sources = 0
    for group, record in enumerate(
        material_records(records, exclude=developer_address, settings=settings), start=1
    ):
        nodes.append(_record_node(record, group=group, default_label=None, tables=tables, settings=settings))
        edges.append(_record_edge(record, developer_address, classify_flow_type(record.flow_type)))
        if record.direction == DIRECTION_INCOMING:
            funding_sources += 1

    nodes.insert(
        0,
        developer_node(
            developer_address,
            amount=total_received + total_sent,
            transaction_count=len(signatures),
            value=funding_sources,
        ),
    )

    patterns = detect_patterns(nodes, edges, total_received, total_sent, settings=settings)
    risk_score = calculate_flow_risk(nodes, edges, total_received, total_sent, patterns, settings=settings)

    secondary_nodes, secondary_edges = await _expand_secondary(provider, nodes, tables=tables, settings=settings)
    capped_nodes, capped_edges = cap_graph(
        nodes + secondary_nodes,
        edges + secondary_edges,
        keep=[developer_address],
        settings=settings,
    )
    return FundFlowResult(
        nodes=tuple(capped_nodes),
        edges=tuple(capped_edges),
        total_funds_received=total_received,
        total_funds_sent=total_sent,
        funding_sources=funding_sources,
        risk_score=risk_score,
        suspicious_patterns=tuple(patterns[: settings.max_patterns]),
    )


async def analyze_fund_flows(
    developer_address: str,
    provider: ChainDataProvider,
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> FundFlowResult:
    """Fund-flow graph for developer_address. Only address validation errors propagate."""
    validate_address(developer_address, "Invalid developer address format")
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    try:
        result = await _analyze(developer_address, provider, tables, settings)
    except Exception:
        logger.exception("fund_flow_analysis_failed", address=short_address(developer_address))
        return minimal_fund_flow_result(developer_address, settings)
    logger.info(
        "fund_flow_analyzed",
        address=short_address(developer_address),
        nodes=len(result.nodes),
        links=len(result.edges),
        risk_score=result.risk_score,
        patterns=len(result.suspicious_patterns),
    )
    return result
