"""
Token fund-source analysis: who funded a mint and, optionally, its deployer.

Deployer side: fee-tolerant funding attribution over recent transactions;
the largest sources become funding edges into the deployer, plus an
estimated deployment edge deployer -> mint. Mint side: the earliest
transactions of the mint; the largest sources become creation edges.
A failed fetch on one side leaves that side empty; any other unexpected
failure returns only the mint node.
"""

from __future__ import annotations

from backend_solscope.analytics.address_classifier import classify
from backend_solscope.analytics.balance_delta import extract_funding_source
from backend_solscope.analytics.flow_aggregator import aggregate_funding, cap_graph, largest_sources
from backend_solscope.analytics.history import load_history
from backend_solscope.analytics.models import (
    CATEGORY_DEVELOPER,
    CATEGORY_FUND_SOURCE,
    CATEGORY_MINT,
    EDGE_CREATION,
    EDGE_DEPLOYMENT,
    EDGE_FUNDING,
    FundingGraphResult,
    FundingSource,
    GraphEdge,
    GraphNode,
)
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings
from backend_solscope.ingestion.helius_client import ChainDataProvider, validate_address
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)

MINT_LABEL = "Mint Address"
DEPLOYER_LABEL = "Deployer"
DEPLOYER_SOURCE_GROUP_BASE = 2
MINT_SOURCE_GROUP_BASE = 100


def mint_node(address: str, amount: int = 0, value: int = 0) -> GraphNode:
    return GraphNode(
        id=address,
        category=CATEGORY_MINT,
        amount=amount,
        transaction_count=0,
        label=MINT_LABEL,
        value=value,
        group=0,
    )


async def get_funding_sources(
    provider: ChainDataProvider,
    address: str,
    signature_limit: int,
    tx_limit: int,
    source_limit: int,
    *,
    earliest: bool = False,
    settings: AnalysisSettings,
) -> tuple[list[FundingSource], int]:
    """(largest funding sources, total received) for address."""
    _, transactions = await load_history(provider, address, signature_limit, tx_limit, earliest=earliest)
    sources, total = aggregate_funding(
        extract_funding_source(tx, address, settings=settings) for tx in transactions
    )
    return largest_sources(sources, source_limit), total


async def _sources_or_empty(
    provider: ChainDataProvider,
    address: str,
    signature_limit: int,
    tx_limit: int,
    source_limit: int,
    *,
    earliest: bool = False,
    settings: AnalysisSettings,
) -> tuple[list[FundingSource], int]:
    """get_funding_sources, with any failure logged and treated as no sources."""
    try:
        return await get_funding_sources(
            provider, address, signature_limit, tx_limit, source_limit, earliest=earliest, settings=settings
        )
    except Exception as e:
        logger.warning("fund_sources_side_failed", address=short_address(address), error=str(e))
        return [], 0


def _source_node(
    source: FundingSource,
    *,
    group: int,
    fallback_label: str,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> GraphNode:
    return GraphNode(
        id=source.address,
        category=classify(source.address, default=CATEGORY_FUND_SOURCE, tables=tables, settings=settings),
        amount=source.amount,
        transaction_count=source.transaction_count,
        label=tables.label_for(source.address) or fallback_label,
        value=source.transaction_count,
        group=group,
    )


async def _analyze(
    mint_address: str,
    deployer_address: str | None,
    provider: ChainDataProvider,
    tables: AddressTables,
    settings: AnalysisSettings,
) -> FundingGraphResult:
    nodes: dict[str, GraphNode] = {}
    edges: list[GraphEdge] = []
    total_funding = 0
    funding_sources = 0

    if deployer_address:
        sources, received = await _sources_or_empty(
            provider,
            deployer_address,
            settings.deployer_signature_limit,
            settings.deployer_tx_limit,
            settings.deployer_source_limit,
            settings=settings,
        )
        nodes[deployer_address] = GraphNode(
            id=deployer_address,
            category=CATEGORY_DEVELOPER,
            amount=received,
            transaction_count=0,
            label=DEPLOYER_LABEL,
            value=len(sources),
            group=1,
        )
        for index, source in enumerate(sources):
            nodes.setdefault(
                source.address,
                _source_node(
                    source,
                    group=DEPLOYER_SOURCE_GROUP_BASE + index,
                    fallback_label=f"Source {index + 1}",
                    tables=tables,
                    settings=settings,
                ),
            )
            edges.append(
                GraphEdge(
                    source=source.address,
                    target=deployer_address,
                    amount=source.amount,
                    count=source.transaction_count,
                    type=EDGE_FUNDING,
                )
            )
            total_funding += source.amount
            funding_sources += 1
        edges.append(
            GraphEdge(
                source=deployer_address,
                target=mint_address,
                amount=settings.deployment_cost,
                count=1,
                type=EDGE_DEPLOYMENT,
            )
        )

    mint_sources, mint_received = await _sources_or_empty(
        provider,
        mint_address,
        settings.mint_signature_limit,
        settings.mint_tx_limit,
        settings.mint_source_limit,
        earliest=True,
        settings=settings,
    )
    for index, source in enumerate(mint_sources):
        if source.address not in nodes and source.address != mint_address:
            nodes[source.address] = _source_node(
                source,
                group=MINT_SOURCE_GROUP_BASE + index,
                fallback_label=f"Direct Source {index + 1}",
                tables=tables,
                settings=settings,
            )
        edges.append(
            GraphEdge(
                source=source.address,
                target=mint_address,
                amount=source.amount,
                count=source.transaction_count,
                type=EDGE_CREATION,
            )
        )
        total_funding += source.amount
        funding_sources += 1

    all_nodes = [mint_node(mint_address, amount=mint_received, value=len(mint_sources)), *nodes.values()]
    keep = [mint_address] + ([deployer_address] if deployer_address else [])
    capped_nodes, capped_edges = cap_graph(all_nodes, edges, keep=keep, settings=settings)
    return FundingGraphResult(
        nodes=tuple(capped_nodes),
        edges=tuple(capped_edges),
        total_funding=total_funding,
        funding_sources=funding_sources,
    )


async def analyze_fund_sources(
    mint_address: str,
    provider: ChainDataProvider,
    deployer_address: str | None = None,
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> FundingGraphResult:
    """Funding graph around mint_address (and deployer_address when given)."""
    validate_address(mint_address, "Invalid mint address format")
    if deployer_address:
        validate_address(deployer_address, "Invalid deployer address format")
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    try:
        result = await _analyze(mint_address, deployer_address or None, provider, tables, settings)
    except Exception:
        logger.exception("fund_sources_analysis_failed", mint=short_address(mint_address))
        return FundingGraphResult(nodes=(mint_node(mint_address),), edges=())
    logger.info(
        "fund_sources_analyzed",
        mint=short_address(mint_address),
        has_deployer=bool(deployer_address),
        nodes=len(result.nodes),
        funding_sources=result.funding_sources,
    )
    return result
