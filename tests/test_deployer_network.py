"""
Tests for the deployer co-occurrence network.
"""

from __future__ import annotations

import asyncio

import pytest

from backend_solscope.analytics.deployer_network import analyze_deployer_network, build_network_graph
from backend_solscope.core.exceptions import InvalidAddressError
from backend_solscope.ingestion.models import AccountKey, Transaction

DEPLOYER = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
WALLET = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
OTHER_WALLET = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
PROGRAM = "11111111111111111111111111111111"


def _history(make_tx):
    return [
        make_tx("t1", {DEPLOYER: -5000, WALLET: 0, PROGRAM: 0}, timestamp=100, readonly=[PROGRAM]),
        make_tx("t2", {DEPLOYER: -5000, WALLET: 0, PROGRAM: 0, OTHER_WALLET: 0}, timestamp=200, readonly=[PROGRAM]),
    ]


def test_build_network_graph(make_tx, tables, settings):
    result = build_network_graph(DEPLOYER, _history(make_tx), tables=tables, settings=settings)
    nodes = {n.id: n for n in result.nodes}

    assert result.nodes[0].id == DEPLOYER
    deployer = nodes[DEPLOYER]
    assert (deployer.label, deployer.group, deployer.value) == ("Deployer", 1, 10)

    wallet = nodes[WALLET]
    assert (wallet.category, wallet.label, wallet.group, wallet.value) == ("wallet", "WALLET", 2, 3)
    assert wallet.transaction_count == 2
    assert wallet.last_seen == 200

    program = nodes[PROGRAM]
    assert (program.category, program.label, program.group, program.value) == ("program", "System Program", 3, 5)
    assert nodes[OTHER_WALLET].transaction_count == 1

    edges = {e.target: e for e in result.edges}
    assert set(edges) == {WALLET, PROGRAM, OTHER_WALLET}
    assert all(e.source == DEPLOYER and e.type == "transfer" for e in edges.values())
    assert edges[WALLET].count == 2


def test_repeated_keys_count_once_per_transaction(tables, settings):
    tx = Transaction(
        signature="dup",
        account_keys=(
            AccountKey(pubkey=DEPLOYER, signer=True, writable=True),
            AccountKey(pubkey=WALLET, writable=True),
            AccountKey(pubkey=WALLET, writable=True),
            AccountKey(pubkey=""),
        ),
    )
    result = build_network_graph(DEPLOYER, [tx], tables=tables, settings=settings)
    assert [n.id for n in result.nodes] == [DEPLOYER, WALLET]
    assert result.edges[0].count == 1


def test_graph_is_capped(tables, settings):
    keys = (AccountKey(pubkey=DEPLOYER, signer=True, writable=True),) + tuple(
        AccountKey(pubkey=f"Account{i:03d}", writable=True) for i in range(100)
    )
    tx = Transaction(signature="wide", account_keys=keys)
    result = build_network_graph(DEPLOYER, [tx], tables=tables, settings=settings)
    assert len(result.nodes) == 30
    assert result.nodes[0].id == DEPLOYER
    assert len(result.edges) == 29


def test_analyze_deployer_network(fake_provider, make_tx, tables, settings):
    fake_provider.add_history(DEPLOYER, _history(make_tx))
    result = asyncio.run(analyze_deployer_network(DEPLOYER, fake_provider, tables=tables, settings=settings))
    assert {n.id for n in result.nodes} == {DEPLOYER, WALLET, PROGRAM, OTHER_WALLET}
    assert set(result.to_dict()) == {"nodes", "links"}


def test_failure_returns_deployer_node_only(fake_provider, make_tx, tables, settings):
    fake_provider.add_history(DEPLOYER, _history(make_tx))
    fake_provider.failures["get_transaction_details"] = RuntimeError("boom")
    result = asyncio.run(analyze_deployer_network(DEPLOYER, fake_provider, tables=tables, settings=settings))
    assert [n.id for n in result.nodes] == [DEPLOYER]
    assert result.edges == ()


def test_invalid_address_raises(fake_provider, tables, settings):
    with pytest.raises(InvalidAddressError) as exc_info:
        asyncio.run(analyze_deployer_network("short", fake_provider, tables=tables, settings=settings))
    assert exc_info.value.message == "Invalid address format"
