"""
Tests for the reputability pipeline: validation before I/O, graceful
degradation on upstream failure, and composition of score, narrative and
recommendations.
"""

from __future__ import annotations

import asyncio

import pytest

from backend_solscope.analytics.analytics_pipeline import run_reputability_analysis
from backend_solscope.analytics.models import WalletAnalysis
from backend_solscope.analytics.narrative import NarrativeExplainer, fallback_explanation
from backend_solscope.analytics.recommendations import generate_recommendations
from backend_solscope.analytics.reputability_engine import calculate_reputability
from backend_solscope.analytics.wallet_metrics import analyze_wallet_data
from backend_solscope.config.settings import sol
from backend_solscope.core.exceptions import ChainDataError, InvalidAddressError
from backend_solscope.ingestion.models import Instruction, NativeTransfer, Transaction

WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
A = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
JUPITER = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"
NOW = 1_700_000_000


class EchoGenerator:
    async def generate(self, prompt, *, max_tokens, temperature):
        return "generated narrative"


def _run(provider, tables, settings, explainer=None, address=WALLET):
    return asyncio.run(
        run_reputability_analysis(address, provider, explainer, now=NOW, tables=tables, settings=settings)
    )


def test_invalid_address_raises_before_fetching(fake_provider, tables, settings):
    with pytest.raises(InvalidAddressError):
        _run(fake_provider, tables, settings, address="nope")
    assert fake_provider.calls == []


def test_upstream_failures_degrade_to_empty_wallet(fake_provider, tables, settings):
    fake_provider.failures["get_transaction_history"] = ChainDataError("API Error (503): down")
    fake_provider.failures["get_token_balances"] = ChainDataError("RPC Error: down")
    result = _run(fake_provider, tables, settings)
    assert result.score == 50
    assert result.risk_level == "high"
    assert result.analysis == analyze_wallet_data([], [], WALLET, now=NOW, tables=tables, settings=settings)
    assert result.explanation == fallback_explanation(result.analysis, 50)
    assert list(result.recommendations) == generate_recommendations(WalletAnalysis())


def test_pipeline_composes_score_narrative_and_recommendations(fake_provider, tables, settings):
    history = [
        Transaction(
            signature=f"s{i}",
            timestamp=NOW - i * 86_400 * 10,
            native_transfers=(NativeTransfer(A, WALLET, sol(2)),),
            instructions=(Instruction(program_id=JUPITER),),
        )
        for i in range(6)
    ]
    fake_provider.history[WALLET] = history
    explainer = NarrativeExplainer(EchoGenerator(), settings=settings)
    result = _run(fake_provider, tables, settings, explainer)

    analysis = analyze_wallet_data(history, [], WALLET, now=NOW, tables=tables, settings=settings)
    expected = calculate_reputability(analysis)
    assert result.analysis == analysis
    assert result.score == expected.score
    assert result.factors == expected.factors
    assert result.risk_level == expected.risk_level
    assert result.explanation == "generated narrative"
    assert list(result.recommendations) == generate_recommendations(analysis)
    assert result.to_dict()["wallet_analysis"]["legitimate_program_usage"] == 6


def test_pipeline_is_idempotent(fake_provider, tables, settings):
    fake_provider.history[WALLET] = [
        Transaction(signature="s", timestamp=NOW - 86_400, native_transfers=(NativeTransfer(WALLET, A, sol(20)),))
    ]
    first = _run(fake_provider, tables, settings)
    second = _run(fake_provider, tables, settings)
    assert first == second
