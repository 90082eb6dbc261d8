"""
Developer network: addresses the developer transacted with, weighted by activity.

Each recent transaction contributes at most one connection (the first other
account with a balance change), credited with the developer's absolute
balance change. The largest connections become funding edges into the
developer node. On unexpected failure only the developer node is returned.
"""

from __future__ import annotations

from backend_solscope.analytics.address_classifier import classify
from backend_solscope.analytics.balance_delta import extract_connection
from backend_solscope.analytics.flow_aggregator import aggregate_funding, cap_graph, largest_sources
from backend_solscope.analytics.history import load_history
from backend_solscope.analytics.models import (
    CATEGORY_DEVELOPER,
    CATEGORY_WALLET,
    EDGE_FUNDING,
    FundingGraphResult,
    GraphEdge,
    GraphNode,
)
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings
from backend_solscope.ingestion.helius_client import ChainDataProvider, validate_address
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)

DEVELOPER_LABEL = "Developer"


def _developer_node(address: str, amount: int = 0, value: int = 0) -> GraphNode:
    return GraphNode(
        id=address,
        category=CATEGORY_DEVELOPER,
        amount=amount,
        transaction_count=0,
        label=DEVELOPER_LABEL,
        value=value,
        group=0,
    )


async def _analyze(
    developer_address: str,
    provider: ChainDataProvider,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> FundingGraphResult:
    _, transactions = await load_history(
        provider, developer_address, settings.developer_signature_limit, settings.developer_tx_limit
    )
    connections, total_activity = aggregate_funding(
        extract_connection(tx, developer_address) for tx in transactions
    )
    top = largest_sources(connections, settings.developer_connection_limit)

    nodes = [_developer_node(developer_address, amount=total_activity, value=len(top))]
    edges: list[GraphEdge] = []
    for index, conn in enumerate(top):
        nodes.append(
            GraphNode(
                id=conn.address,
                category=classify(conn.address, default=CATEGORY_WALLET, tables=tables, settings=settings),
                amount=conn.amount,
                transaction_count=conn.transaction_count,
                label=tables.label_for(conn.address) or f"Connection {index + 1}",
                value=conn.transaction_count,
                group=1 + index,
            )
        )
        edges.append(
            GraphEdge(
                source=conn.address,
                target=developer_address,
                amount=conn.amount,
                count=conn.transaction_count,
                type=EDGE_FUNDING,
            )
        )

    capped_nodes, capped_edges = cap_graph(nodes, edges, keep=[developer_address], settings=settings)
    return FundingGraphResult(
        nodes=tuple(capped_nodes),
        edges=tuple(capped_edges),
        total_funding=sum(c.amount for c in top),
        funding_sources=len(top),
    )


async def analyze_developer_network(
    developer_address: str,
    provider: ChainDataProvider,
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> FundingGraphResult:
    validate_address(developer_address, "Invalid developer address format")
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    try:
        result = await _analyze(developer_address, provider, tables, settings)
    except Exception:
        logger.exception("developer_network_failed", address=short_address(developer_address))
        return FundingGraphResult(nodes=(_developer_node(developer_address),), edges=())
    logger.info(
        "developer_network_analyzed",
        address=short_address(developer_address),
        connections=result.funding_sources,
    )
    return result
