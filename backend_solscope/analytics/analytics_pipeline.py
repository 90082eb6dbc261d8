"""
Reputability pipeline: fetch -> metrics -> score -> narrative -> recommendations.

Validation errors propagate (no upstream call is made for a malformed
address). Upstream failures degrade locally: missing history scores as an
empty wallet, missing balances as an empty portfolio, a failed narrative
falls back to templates.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from backend_solscope.analytics.models import ReputabilityResult
from backend_solscope.analytics.narrative import NarrativeExplainer
from backend_solscope.analytics.recommendations import generate_recommendations
from backend_solscope.analytics.reputability_engine import calculate_reputability
from backend_solscope.analytics.wallet_metrics import analyze_wallet_data
from backend_solscope.config.settings import AddressTables, AnalysisSettings, get_address_tables, get_settings
from backend_solscope.ingestion.helius_client import ChainDataProvider, validate_address
from backend_solscope.solscope_logging import bind_address, get_logger, short_address

logger = get_logger(__name__)

T = TypeVar("T")


async def _fetch_or_default(awaitable: Awaitable[T], default: T, event: str, address: str) -> T:
    try:
        return await awaitable
    except Exception as e:
        logger.warning(event, address=short_address(address), error=str(e))
        return default


async def run_reputability_analysis(
    wallet_address: str,
    provider: ChainDataProvider,
    explainer: NarrativeExplainer | None = None,
    *,
    now: float | None = None,
    tables: AddressTables | None = None,
    settings: AnalysisSettings | None = None,
) -> ReputabilityResult:
    """Score wallet_address from whatever chain data could be retrieved."""
    validate_address(wallet_address)
    tables = tables or get_address_tables()
    settings = settings or get_settings()
    explainer = explainer or NarrativeExplainer(settings=settings)

    log = bind_address(wallet_address)
    log.info("reputability_analysis_start")
    transactions, balances = await asyncio.gather(
        _fetch_or_default(
            provider.get_transaction_history(wallet_address, settings.history_limit),
            [],
            "reputability_history_unavailable",
            wallet_address,
        ),
        _fetch_or_default(
            provider.get_token_balances(wallet_address),
            [],
            "reputability_balances_unavailable",
            wallet_address,
        ),
    )

    analysis = analyze_wallet_data(transactions, balances, wallet_address, now=now, tables=tables, settings=settings)
    result = calculate_reputability(analysis)
    explanation = await explainer.explain(analysis, result.score)
    recommendations = generate_recommendations(analysis)

    log.info(
        "reputability_analysis_done",
        score=result.score,
        risk_level=result.risk_level,
        tx_count=analysis.transaction_count,
    )
    return ReputabilityResult(
        score=result.score,
        explanation=explanation,
        factors=result.factors,
        risk_level=result.risk_level,
        recommendations=tuple(recommendations),
        analysis=analysis,
    )
