"""
Wallet metrics: fold a wallet's enhanced transaction history and token balances
into the WalletAnalysis consumed by scoring, recommendations and the narrative.

Counts flagged counterparties, blacklisted/legitimate program usage, large
transfers and staking instructions; derives wallet age, trailing-30-day
frequency, counterparty diversity and staking ratio. `now` is injectable.
"""

from __future__ import annotations

import time
from typing import Any, Sequence

from backend_solscope.analytics.address_classifier import is_flagged
from backend_solscope.analytics.models import WalletAnalysis
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings
from backend_solscope.ingestion.models import Transaction

STAKE_PROGRAM_ID = "Stake11111111111111111111111111111111111111"
STAKING_DATA_MARKERS = ("stake", "delegate")
SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30
RECENT_WINDOW_DAYS = 30
MIN_WALLET_AGE_MONTHS = 0.1
DIVERSITY_TX_FACTOR = 0.5


def _is_staking_instruction(program_id: str, data: str) -> bool:
    if program_id == STAKE_PROGRAM_ID:
        return True
    return any(marker in data for marker in STAKING_DATA_MARKERS)


def _has_staked_tokens(token_balances: Sequence[dict[str, Any]]) -> bool:
    """True when any token account is staked or has a delegated amount."""
    for token in token_balances:
        try:
            info = token.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
        except AttributeError:
            continue
        if not isinstance(info, dict):
            continue
        if info.get("state") == "staked":
            return True
        delegated = info.get("delegatedAmount")
        if isinstance(delegated, dict):
            delegated = delegated.get("amount")
        try:
            if float(delegated or 0) > 0:
                return True
        except (TypeError, ValueError):
            continue
    return False


def analyze_wallet_data(
    transactions: Sequence[Transaction],
    token_balances: Sequence[dict[str, Any]],
    wallet_address: str,
    *,
    now: float | None = None,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> WalletAnalysis:
    """Build WalletAnalysis for wallet_address. Empty history yields zero metrics and a 0.1 month age."""
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    now = time.time() if now is None else now
    recent_cutoff = now - RECENT_WINDOW_DAYS * SECONDS_PER_DAY

    flagged = 0
    blacklisted = 0
    legitimate = 0
    large = 0
    volume = 0
    staking = 0
    recent = 0
    oldest = now
    counterparties: set[str] = set()
    programs: dict[str, None] = {}

    for tx in transactions:
        if tx.timestamp is not None:
            oldest = min(oldest, tx.timestamp)
            if tx.timestamp > recent_cutoff:
                recent += 1

        for transfer in tx.native_transfers:
            if is_flagged(transfer.from_address, tables) or is_flagged(transfer.to_address, tables):
                flagged += 1
            for side in (transfer.from_address, transfer.to_address):
                if side and side != wallet_address:
                    counterparties.add(side)
            if transfer.amount > settings.large_amount_threshold:
                large += 1
            volume += transfer.amount

        for token_transfer in tx.token_transfers:
            for side in (token_transfer.from_address, token_transfer.to_address):
                if side and side != wallet_address:
                    counterparties.add(side)

        for ix in tx.instructions:
            if not ix.program_id:
                continue
            programs.setdefault(ix.program_id, None)
            if ix.program_id in tables.blacklisted_programs:
                blacklisted += 1
            if ix.program_id in tables.legitimate_programs:
                legitimate += 1
            if _is_staking_instruction(ix.program_id, ix.data):
                staking += 1

    tx_count = len(transactions)
    if tx_count:
        age_months = max(MIN_WALLET_AGE_MONTHS, (now - oldest) / (DAYS_PER_MONTH * SECONDS_PER_DAY))
        diversity = min(1.0, len(counterparties) / max(1.0, tx_count * DIVERSITY_TX_FACTOR))
        staking_ratio = staking / tx_count
    else:
        age_months = MIN_WALLET_AGE_MONTHS
        diversity = 0.0
        staking_ratio = 0.0

    return WalletAnalysis(
        flagged_interactions=flagged,
        blacklisted_program_usage=blacklisted,
        legitimate_program_usage=legitimate,
        large_transfers=large,
        total_volume=volume,
        counterparty_count=len(counterparties),
        counterparty_diversity=diversity,
        wallet_age_months=age_months,
        transaction_count=tx_count,
        recent_transactions=recent,
        transaction_frequency=recent / RECENT_WINDOW_DAYS,
        staking_transactions=staking,
        staking_activity_ratio=staking_ratio,
        token_count=len(token_balances),
        has_staked_tokens=_has_staked_tokens(token_balances),
        programs_used=tuple(programs),
        unique_programs=len(programs),
    )
