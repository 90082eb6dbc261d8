"""
Pytest fixtures for Solscope tests.

Chain data comes from an in-memory FakeProvider so no test touches the network;
the HTTP client overrides the provider and explainer dependencies.
"""

from __future__ import annotations

from typing import Any, Sequence

import pytest

from backend_solscope.config.settings import LAMPORTS_PER_SOL, AddressTables, AnalysisSettings
from backend_solscope.ingestion.models import AccountKey, Instruction, SignatureInfo, Transaction

SCAM_ADDRESS = "9hFtS2YFdEYjLzuM1jMjqTADVPT3R7RLLxd3nJyHzLh1"
EXCHANGE_ADDRESS = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
BLACKLISTED_PROGRAM = "ScamProgram111111111111111111111111111111111"
LEGITIMATE_PROGRAM = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"
BASE_BALANCE = 1_000 * LAMPORTS_PER_SOL


class FakeProvider:
    """
    In-memory ChainDataProvider. `failures` maps a method name to the exception
    it raises; `address_failures` maps an address to the exception raised when
    its signatures are listed.
    """

    def __init__(self, failures: dict[str, Exception] | None = None) -> None:
        self.history: dict[str, list[Transaction]] = {}
        self.balances: dict[str, list[dict[str, Any]]] = {}
        self.accounts: dict[str, dict[str, Any]] = {}
        self.signatures: dict[str, list[SignatureInfo]] = {}
        self.transactions: dict[str, Transaction] = {}
        self.metadata: dict[str, dict[str, Any]] = {}
        self.failures = failures or {}
        self.address_failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []
        self.detail_requests: list[str] = []

    def _record(self, method: str, arg: Any) -> None:
        self.calls.append((method, arg))
        exc = self.failures.get(method)
        if exc is not None:
            raise exc

    def add_history(self, address: str, transactions: Sequence[Transaction]) -> None:
        """Register transactions for address as signatures (newest first) plus details."""
        ordered = sorted(transactions, key=lambda tx: tx.timestamp or 0, reverse=True)
        self.signatures[address] = [
            SignatureInfo(signature=tx.signature, slot=i, err=None, block_time=tx.timestamp)
            for i, tx in enumerate(ordered)
        ]
        for tx in ordered:
            self.transactions[tx.signature] = tx

    async def get_transaction_history(self, address: str, limit: int = 100) -> list[Transaction]:
        self._record("get_transaction_history", address)
        return list(self.history.get(address, []))[:limit]

    async def get_token_balances(self, address: str) -> list[dict[str, Any]]:
        self._record("get_token_balances", address)
        return list(self.balances.get(address, []))

    async def get_account_info(self, address: str) -> dict[str, Any] | None:
        self._record("get_account_info", address)
        return self.accounts.get(address)

    async def get_signatures_for_address(self, address: str, limit: int = 100) -> list[SignatureInfo]:
        self._record("get_signatures_for_address", address)
        if address in self.address_failures:
            raise self.address_failures[address]
        return list(self.signatures.get(address, []))[:limit]

    async def get_transaction_detail(self, signature: str) -> Transaction | None:
        self._record("get_transaction_detail", signature)
        self.detail_requests.append(signature)
        return self.transactions.get(signature)

    async def get_transaction_details(self, signatures: Sequence[str]) -> list[Transaction]:
        self._record("get_transaction_details", list(signatures))
        txs = []
        for sig in signatures:
            self.detail_requests.append(sig)
            tx = self.transactions.get(sig)
            if tx is not None:
                txs.append(tx)
        return txs

    async def get_token_metadata(self, mint_address: str) -> dict[str, Any] | None:
        self._record("get_token_metadata", mint_address)
        return self.metadata.get(mint_address)


def build_tx(
    signature: str,
    deltas: dict[str, int],
    *,
    timestamp: int | None = 1_700_000_000,
    program_ids: Sequence[str] = (),
    readonly: Sequence[str] = (),
) -> Transaction:
    """RPC-style transaction: one account key per entry of deltas (lamports, post - pre)."""
    keys = []
    pre = []
    post = []
    for i, (address, delta) in enumerate(deltas.items()):
        keys.append(AccountKey(pubkey=address, signer=i == 0, writable=address not in readonly))
        pre.append(BASE_BALANCE)
        post.append(BASE_BALANCE + delta)
    return Transaction(
        signature=signature,
        timestamp=timestamp,
        instructions=tuple(Instruction(program_id=p) for p in program_ids),
        account_keys=tuple(keys),
        pre_balances=tuple(pre),
        post_balances=tuple(post),
    )


@pytest.fixture
def settings() -> AnalysisSettings:
    """Reference settings without retry sleeps."""
    return AnalysisSettings(retry_backoff=0.0)


@pytest.fixture
def tables() -> AddressTables:
    return AddressTables.build(
        scam_addresses=[SCAM_ADDRESS],
        blacklisted_programs=[BLACKLISTED_PROGRAM],
        legitimate_programs={LEGITIMATE_PROGRAM: "Jupiter"},
        exchanges={EXCHANGE_ADDRESS: "Binance"},
        labels={"11111111111111111111111111111111": "System Program"},
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_tx():
    """Factory for RPC-style transactions: make_tx(signature, {address: delta}, timestamp=...)."""
    return build_tx


@pytest.fixture
def client(fake_provider):
    """FastAPI TestClient with the chain-data provider and explainer replaced by local fakes."""
    from fastapi.testclient import TestClient

    from backend_solscope.analytics.narrative import NarrativeExplainer
    from backend_solscope.api_server.server import app, get_explainer, get_provider

    app.dependency_overrides[get_provider] = lambda: fake_provider
    app.dependency_overrides[get_explainer] = lambda: NarrativeExplainer()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
