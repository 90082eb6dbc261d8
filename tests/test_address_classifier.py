"""
Tests for address classification priority and stability.
"""

from __future__ import annotations

from backend_solscope.analytics.address_classifier import classify, is_contract_address, is_flagged, label_for
from backend_solscope.analytics.models import (
    CATEGORY_CONTRACT,
    CATEGORY_EXCHANGE,
    CATEGORY_FUND_SOURCE,
    CATEGORY_WALLET,
    CATEGORY_WHALE,
    FLOW_DEX_TRADE,
    FLOW_STAKING,
    FLOW_TOKEN_TRANSFER,
    FLOW_TRANSFER,
)
from backend_solscope.config.settings import sol

EXCHANGE = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
SCAM = "9hFtS2YFdEYjLzuM1jMjqTADVPT3R7RLLxd3nJyHzLh1"
PLAIN = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
ALL_ONES_44 = "Vote111111111111111111111111111111111111111x"
WRAPPED_44 = "So1aBcDeFgHiJkMnPqRsTuVwXyZaBcDeFgHiJkMnPqRs"


def test_exchange_table_wins_over_amount(tables, settings):
    assert classify(EXCHANGE, sol(500), FLOW_TRANSFER, tables=tables, settings=settings) == CATEGORY_EXCHANGE


def test_whale_above_large_threshold(tables, settings):
    assert classify(PLAIN, sol(10) + 1, tables=tables, settings=settings) == CATEGORY_WHALE
    assert classify(PLAIN, sol(10), tables=tables, settings=settings) == CATEGORY_FUND_SOURCE


def test_flow_type_hints(tables, settings):
    assert classify(PLAIN, sol(1), FLOW_DEX_TRADE, tables=tables, settings=settings) == CATEGORY_EXCHANGE
    assert classify(PLAIN, sol(1), FLOW_STAKING, tables=tables, settings=settings) == CATEGORY_CONTRACT
    assert classify(PLAIN, sol(1), FLOW_TOKEN_TRANSFER, tables=tables, settings=settings) == CATEGORY_CONTRACT
    assert classify(PLAIN, sol(1), FLOW_TRANSFER, tables=tables, settings=settings) == CATEGORY_FUND_SOURCE


def test_contract_address_pattern():
    assert len(ALL_ONES_44) == 44 and len(WRAPPED_44) == 44
    assert is_contract_address(ALL_ONES_44)
    assert is_contract_address(WRAPPED_44)
    assert is_contract_address("11111111111111111111111111111111")
    assert not is_contract_address(PLAIN)
    assert not is_contract_address(ALL_ONES_44[:-1])


def test_default_category_comes_from_caller(tables, settings):
    assert classify(PLAIN, tables=tables, settings=settings) == CATEGORY_FUND_SOURCE
    assert classify(PLAIN, default=CATEGORY_WALLET, tables=tables, settings=settings) == CATEGORY_WALLET
    assert classify(ALL_ONES_44, default=CATEGORY_WALLET, tables=tables, settings=settings) == CATEGORY_CONTRACT


def test_classification_is_stable(tables, settings):
    results = {classify(PLAIN, sol(3), FLOW_STAKING, tables=tables, settings=settings) for _ in range(20)}
    assert results == {CATEGORY_CONTRACT}


def test_flagged_is_not_a_category(tables, settings):
    assert is_flagged(SCAM, tables)
    assert not is_flagged(PLAIN, tables)
    assert classify(SCAM, tables=tables, settings=settings) == CATEGORY_FUND_SOURCE


def test_label_for(tables):
    assert label_for(EXCHANGE, CATEGORY_EXCHANGE, tables) == "Binance"
    assert label_for(PLAIN, CATEGORY_WHALE, tables) == "WHALE"
