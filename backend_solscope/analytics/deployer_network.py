"""
Deployer network: account co-occurrence graph around a deployer.

Every account key seen alongside the deployer becomes a node (program when it
is neither signer nor writable, wallet otherwise) with one transfer edge from
the deployer whose count is the number of transactions they share.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_solscope.analytics.flow_aggregator import cap_graph
from backend_solscope.analytics.history import load_history
from backend_solscope.analytics.models import (
    CATEGORY_DEVELOPER,
    CATEGORY_PROGRAM,
    CATEGORY_WALLET,
    EDGE_TRANSFER,
    GraphEdge,
    GraphNode,
    NetworkGraphResult,
)
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings
from backend_solscope.ingestion.helius_client import ChainDataProvider, validate_address
from backend_solscope.ingestion.models import Transaction
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)

DEPLOYER_LABEL = "Deployer"
DEPLOYER_GROUP = 1
WALLET_GROUP = 2
PROGRAM_GROUP = 3
DEPLOYER_VALUE = 10
WALLET_VALUE = 3
PROGRAM_VALUE = 5


@dataclass
class _Cooccurrence:
    is_program: bool
    count: int = 0
    last_seen: int = 0


def _deployer_node(address: str) -> GraphNode:
    return GraphNode(
        id=address,
        category=CATEGORY_DEVELOPER,
        amount=0,
        transaction_count=0,
        label=DEPLOYER_LABEL,
        value=DEPLOYER_VALUE,
        group=DEPLOYER_GROUP,
    )


def build_network_graph(
    deployer_address: str,
    transactions: list[Transaction],
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> NetworkGraphResult:
    tables = tables or get_address_tables()
    seen: dict[str, _Cooccurrence] = {}
    for tx in transactions:
        # Count each account once per transaction
        for key in {k.pubkey: k for k in tx.account_keys}.values():
            if not key.pubkey or key.pubkey == deployer_address:
                continue
            entry = seen.setdefault(key.pubkey, _Cooccurrence(is_program=key.is_program))
            entry.count += 1
            entry.last_seen = max(entry.last_seen, tx.timestamp or 0)

    nodes = [_deployer_node(deployer_address)]
    edges: list[GraphEdge] = []
    for address, entry in seen.items():
        category = CATEGORY_PROGRAM if entry.is_program else CATEGORY_WALLET
        nodes.append(
            GraphNode(
                id=address,
                category=category,
                amount=0,
                transaction_count=entry.count,
                label=tables.label_for(address) or category.upper(),
                value=PROGRAM_VALUE if entry.is_program else WALLET_VALUE,
                group=PROGRAM_GROUP if entry.is_program else WALLET_GROUP,
                last_seen=entry.last_seen,
            )
        )
        edges.append(
            GraphEdge(source=deployer_address, target=address, amount=0, count=entry.count, type=EDGE_TRANSFER)
        )
    capped_nodes, capped_edges = cap_graph(nodes, edges, keep=[deployer_address], settings=settings)
    return NetworkGraphResult(nodes=tuple(capped_nodes), edges=tuple(capped_edges))


async def analyze_deployer_network(
    deployer_address: str,
    provider: ChainDataProvider,
    *,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> NetworkGraphResult:
    validate_address(deployer_address, "Invalid address format")
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    try:
        _, transactions = await load_history(
            provider,
            deployer_address,
            settings.deployer_network_signature_limit,
            settings.deployer_network_signature_limit,
        )
        result = build_network_graph(deployer_address, transactions, tables=tables, settings=settings)
    except Exception:
        logger.exception("deployer_network_failed", address=short_address(deployer_address))
        return NetworkGraphResult(nodes=(_deployer_node(deployer_address),), edges=())
    logger.info("deployer_network_analyzed", address=short_address(deployer_address), nodes=len(result.nodes))
    return result
