"""
Address classification: map an address to a semantic category.

Pure function over the static address tables and numeric thresholds; no I/O.
Priority: exchange table, large amount (whale), flow-type hint, program-like
address pattern, then the caller's default category. Scam-list membership is
not a category; use is_flagged() for that penalty signal.
"""

from __future__ import annotations

from backend_solscope.analytics.models import (
    CATEGORY_CONTRACT,
    CATEGORY_EXCHANGE,
    CATEGORY_FUND_SOURCE,
    CATEGORY_WHALE,
    FLOW_DEX_TRADE,
    FLOW_STAKING,
    FLOW_TOKEN_TRANSFER,
)
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings

CANONICAL_ADDRESS_LENGTH = 44
SYSTEM_PATTERN = "1111"
SYSTEM_PROGRAM_PREFIX = "11111"
WRAPPED_SOL_PREFIX = "So1"


def is_contract_address(address: str) -> bool:
    """Program-like address: canonical length with the all-ones pattern or wrapped-SOL prefix."""
    if address.startswith(SYSTEM_PROGRAM_PREFIX):
        return True
    return len(address) == CANONICAL_ADDRESS_LENGTH and (
        SYSTEM_PATTERN in address or address.startswith(WRAPPED_SOL_PREFIX)
    )


def is_flagged(address: str, tables: AddressTables | None = None) -> bool:
    """True when address is on the scam list."""
    tables = tables or get_address_tables()
    return address in tables.scam_addresses


def classify(
    address: str,
    amount: int | None = None,
    flow_type: str | None = None,
    *,
    default: str = CATEGORY_FUND_SOURCE,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> str:
    """Return the category for address given optional observed amount (lamports) and flow type."""
    tables = tables or get_address_tables()
    settings = settings or get_settings()

    if address in tables.exchanges:
        return CATEGORY_EXCHANGE
    if amount is not None and amount > settings.large_amount_threshold:
        return CATEGORY_WHALE
    if flow_type == FLOW_DEX_TRADE:
        return CATEGORY_EXCHANGE
    if flow_type in (FLOW_STAKING, FLOW_TOKEN_TRANSFER):
        return CATEGORY_CONTRACT
    if is_contract_address(address):
        return CATEGORY_CONTRACT
    return default


def label_for(address: str, category: str, tables: AddressTables | None = None) -> str:
    """Known label for address, else the upper-cased category."""
    tables = tables or get_address_tables()
    return tables.label_for(address) or category.upper()
