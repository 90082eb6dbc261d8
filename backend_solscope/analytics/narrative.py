"""
Narrative explainer: short natural-language explanation of a reputability score.

Text generation is delegated to an injected TextGenerator (xAI grok through the
OpenAI-compatible API in production). Any failure, timeout or missing API key
falls back to a deterministic template chosen by score bracket. The explainer
never raises; the narrative is best-effort and never blocks scoring.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import openai
from openai import AsyncOpenAI

from backend_solscope.analytics.models import WalletAnalysis
from backend_solscope.config.env import get_xai_api_key, get_xai_base_url, get_xai_model
from backend_solscope.config.settings import AnalysisSettings, get_settings
from backend_solscope.core.exceptions import NarrativeUnavailableError
from backend_solscope.solscope_logging import get_logger

logger = get_logger(__name__)

EXCELLENT_MIN_SCORE = 80
GOOD_MIN_SCORE = 60

PROMPT_TEMPLATE = """
Analyze this Solana wallet's reputability based on real blockchain data:

Wallet Metrics:
- Flagged address interactions: {flagged}
- Blacklisted program usage: {blacklisted}
- Large transfers (>10 SOL): {large}
- Counterparty diversity: {diversity:.1f}%
- Staking activity ratio: {staking:.1f}%
- Wallet age: {age:.1f} months
- Total transactions: {tx_count}
- Recent activity: {recent} transactions in last 30 days
- Legitimate DeFi usage: {legitimate} interactions
- Unique programs used: {programs}

Calculated reputability score: {score}/100

Provide a clear, professional explanation (2-3 sentences) of this wallet's trustworthiness. Focus on the most significant factors that influenced the score, both positive and negative. Be specific about what the data reveals about the wallet's behavior patterns.
"""


class TextGenerator(Protocol):
    """Capability: turn a prompt into text. Raises NarrativeUnavailableError on failure."""

    async def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str: ...


class XaiTextGenerator:
    """TextGenerator backed by xAI's OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        *,
        timeout: float | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        key = api_key if api_key is not None else get_xai_api_key()
        self.model = model or get_xai_model()
        if client is not None:
            self._client: AsyncOpenAI | None = client
        elif key:
            self._client = AsyncOpenAI(
                api_key=key,
                base_url=base_url or get_xai_base_url(),
                timeout=timeout or get_settings().narrative_timeout,
                max_retries=1,
            )
        else:
            self._client = None

    async def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        if self._client is None:
            raise NarrativeUnavailableError("XAI_API_KEY is not configured")
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            raise NarrativeUnavailableError(f"Text generation failed: {e}") from e
        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not text:
            raise NarrativeUnavailableError("Text generation returned no content")
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


def build_prompt(analysis: WalletAnalysis, score: int) -> str:
    return PROMPT_TEMPLATE.format(
        flagged=analysis.flagged_interactions,
        blacklisted=analysis.blacklisted_program_usage,
        large=analysis.large_transfers,
        diversity=analysis.counterparty_diversity * 100,
        staking=analysis.staking_activity_ratio * 100,
        age=analysis.wallet_age_months,
        tx_count=analysis.transaction_count,
        recent=analysis.recent_transactions,
        legitimate=analysis.legitimate_program_usage,
        programs=analysis.unique_programs,
        score=score,
    )


def fallback_explanation(analysis: WalletAnalysis, score: int) -> str:
    """Template explanation for the score bracket (>= 80, >= 60, else)."""
    age = f"{analysis.wallet_age_months:.1f}"
    if score >= EXCELLENT_MIN_SCORE:
        return (
            f"This wallet demonstrates excellent reputability with a score of {score}/100. "
            "The analysis shows no interactions with flagged addresses, consistent staking activity, "
            f"and healthy transaction patterns across {analysis.counterparty_count} unique counterparties. "
            f"The {age}-month history and {analysis.legitimate_program_usage} verified DeFi interactions "
            "support its trustworthiness."
        )
    if score >= GOOD_MIN_SCORE:
        return (
            f"This wallet shows good reputability with a score of {score}/100. "
            f"While there are {analysis.flagged_interactions} flagged interactions and "
            f"{analysis.large_transfers} large transfers, the {analysis.staking_transactions} staking "
            "transactions and diverse counterparty interactions indicate legitimate usage patterns "
            f"over {age} months."
        )
    return (
        f"This wallet has concerning reputability indicators with a score of {score}/100. "
        f"The analysis reveals {analysis.flagged_interactions} flagged address interactions, "
        f"{analysis.blacklisted_program_usage} blacklisted program usage, and "
        f"{analysis.large_transfers} large transfers. The limited staking activity and "
        f"{age}-month age suggest elevated risk."
    )


class NarrativeExplainer:
    """Explain a score with the injected generator, falling back to templates."""

    def __init__(
        self,
        generator: TextGenerator | None = None,
        *,
        settings: AnalysisSettings | None = None,
    ) -> None:
        self._generator = generator
        self._settings = settings or get_settings()

    async def explain(self, analysis: WalletAnalysis, score: int) -> str:
        if self._generator is None:
            return fallback_explanation(analysis, score)
        prompt = build_prompt(analysis, score)
        try:
            return await asyncio.wait_for(
                self._generator.generate(
                    prompt,
                    max_tokens=self._settings.narrative_max_tokens,
                    temperature=self._settings.narrative_temperature,
                ),
                timeout=self._settings.narrative_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("narrative_timeout", timeout_sec=self._settings.narrative_timeout)
        except NarrativeUnavailableError as e:
            logger.warning("narrative_unavailable", error=e.message)
        except Exception as e:
            logger.warning("narrative_failed", error=str(e))
        return fallback_explanation(analysis, score)
