"""
Signature + transaction-detail loading shared by the graph analyses.

A failed signature listing degrades to an empty history (logged as a warning);
per-transaction failures are dropped by the provider. Block times from the
signature list fill in transactions that carry none.
"""

from __future__ import annotations

from dataclasses import replace

from backend_solscope.core.exceptions import ChainDataError
from backend_solscope.ingestion.helius_client import ChainDataProvider
from backend_solscope.ingestion.models import SignatureInfo, Transaction
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)


async def load_history(
    provider: ChainDataProvider,
    address: str,
    signature_limit: int,
    tx_limit: int,
    *,
    earliest: bool = False,
) -> tuple[list[SignatureInfo], list[Transaction]]:
    """
    List up to signature_limit signatures (newest first) and fetch details for
    tx_limit of them: the newest by default, the oldest when earliest=True.
    """
    try:
        signatures = await provider.get_signatures_for_address(address, signature_limit)
    except ChainDataError as e:
        logger.warning("history_signatures_unavailable", address=short_address(address), error=e.message)
        return [], []

    if tx_limit <= 0:
        selected: list[SignatureInfo] = []
    else:
        selected = signatures[-tx_limit:] if earliest else signatures[:tx_limit]
    if not selected:
        return signatures, []
    transactions = await provider.get_transaction_details([s.signature for s in selected])

    block_times = {s.signature: s.block_time for s in selected}
    filled = [
        replace(tx, timestamp=block_times.get(tx.signature)) if tx.timestamp is None else tx
        for tx in transactions
    ]
    logger.debug(
        "history_loaded",
        address=short_address(address),
        signatures=len(signatures),
        transactions=len(filled),
    )
    return signatures, filled
