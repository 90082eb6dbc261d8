"""
Reputability engine: compute a 0-100 wallet reputability score from WalletAnalysis.

Formula: base 50, minus penalties for flagged interactions, blacklisted
programs and large transfers (capped), plus bonuses for counterparty
diversity, staking ratio, wallet age (capped), legitimate program usage
(capped) and recent activity (capped). Clamped to 0-100.
Risk level: >= 80 low, >= 60 medium, else high.

Each factor's polarity follows its own threshold and is not derived from the
sign of its impact. Rounding is half-up (2.5 -> 3), not banker's rounding.
"""

from __future__ import annotations

import math

from backend_solscope.analytics.models import (
    POLARITY_NEGATIVE,
    POLARITY_NEUTRAL,
    POLARITY_POSITIVE,
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    ScoreFactor,
    ScoreResult,
    WalletAnalysis,
)
from backend_solscope.solscope_logging import get_logger

logger = get_logger(__name__)

BASE_SCORE = 50
SCORE_MIN = 0
SCORE_MAX = 100
LOW_RISK_MIN_SCORE = 80
MEDIUM_RISK_MIN_SCORE = 60

FLAGGED_PENALTY = 15
BLACKLISTED_PENALTY = 20
LARGE_TRANSFER_PENALTY = 3
LARGE_TRANSFER_PENALTY_CAP = 30
LARGE_TRANSFER_NEGATIVE_ABOVE = 5
DIVERSITY_WEIGHT = 20
DIVERSITY_POSITIVE_ABOVE = 0.3
STAKING_WEIGHT = 25
STAKING_POSITIVE_ABOVE = 0.1
AGE_WEIGHT = 2
AGE_BONUS_CAP = 24
AGE_POSITIVE_ABOVE_MONTHS = 3
LEGITIMATE_WEIGHT = 2
LEGITIMATE_BONUS_CAP = 20
ACTIVITY_WEIGHT = 5
ACTIVITY_BONUS_CAP = 15
ACTIVITY_POSITIVE_RANGE = (0.1, 10)

FACTOR_FLAGGED = "Flagged Address Interactions"
FACTOR_BLACKLISTED = "Blacklisted Program Usage"
FACTOR_LARGE_TRANSFERS = "Large Transfer Activity"
FACTOR_DIVERSITY = "Counterparty Diversity"
FACTOR_STAKING = "Staking Activity"
FACTOR_AGE = "Wallet Age"
FACTOR_LEGITIMATE = "Legitimate Program Usage"
FACTOR_ACTIVITY = "Transaction Activity"


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def risk_level_for_score(score: int) -> str:
    if score >= LOW_RISK_MIN_SCORE:
        return RISK_LOW
    if score >= MEDIUM_RISK_MIN_SCORE:
        return RISK_MEDIUM
    return RISK_HIGH


def calculate_reputability(analysis: WalletAnalysis) -> ScoreResult:
    """Score analysis and return (score, ordered factors, risk level). Pure function of its input."""
    factors: list[ScoreFactor] = []
    score = BASE_SCORE

    flagged_penalty = analysis.flagged_interactions * FLAGGED_PENALTY
    score -= flagged_penalty
    factors.append(
        ScoreFactor(
            name=FACTOR_FLAGGED,
            impact=-flagged_penalty,
            description=f"{analysis.flagged_interactions} interactions with known scam/malicious addresses",
            polarity=POLARITY_NEGATIVE if analysis.flagged_interactions > 0 else POLARITY_POSITIVE,
        )
    )

    blacklisted_penalty = analysis.blacklisted_program_usage * BLACKLISTED_PENALTY
    score -= blacklisted_penalty
    factors.append(
        ScoreFactor(
            name=FACTOR_BLACKLISTED,
            impact=-blacklisted_penalty,
            description=f"{analysis.blacklisted_program_usage} interactions with blacklisted programs",
            polarity=POLARITY_NEGATIVE if analysis.blacklisted_program_usage > 0 else POLARITY_POSITIVE,
        )
    )

    large_penalty = min(analysis.large_transfers * LARGE_TRANSFER_PENALTY, LARGE_TRANSFER_PENALTY_CAP)
    score -= large_penalty
    factors.append(
        ScoreFactor(
            name=FACTOR_LARGE_TRANSFERS,
            impact=-large_penalty,
            description=f"{analysis.large_transfers} large transfers (>10 SOL) detected",
            polarity=POLARITY_NEGATIVE
            if analysis.large_transfers > LARGE_TRANSFER_NEGATIVE_ABOVE
            else POLARITY_NEUTRAL,
        )
    )

    diversity_bonus = round_half_up(analysis.counterparty_diversity * DIVERSITY_WEIGHT)
    score += diversity_bonus
    factors.append(
        ScoreFactor(
            name=FACTOR_DIVERSITY,
            impact=diversity_bonus,
            description=(
                f"{analysis.counterparty_count} unique counterparties "
                f"({analysis.counterparty_diversity * 100:.1f}% diversity)"
            ),
            polarity=POLARITY_POSITIVE
            if analysis.counterparty_diversity > DIVERSITY_POSITIVE_ABOVE
            else POLARITY_NEUTRAL,
        )
    )

    staking_bonus = round_half_up(analysis.staking_activity_ratio * STAKING_WEIGHT)
    score += staking_bonus
    factors.append(
        ScoreFactor(
            name=FACTOR_STAKING,
            impact=staking_bonus,
            description=(
                f"{analysis.staking_transactions} staking transactions "
                f"({analysis.staking_activity_ratio * 100:.1f}% of activity)"
            ),
            polarity=POLARITY_POSITIVE
            if analysis.staking_activity_ratio > STAKING_POSITIVE_ABOVE
            else POLARITY_NEUTRAL,
        )
    )

    age_bonus = min(round_half_up(analysis.wallet_age_months * AGE_WEIGHT), AGE_BONUS_CAP)
    score += age_bonus
    factors.append(
        ScoreFactor(
            name=FACTOR_AGE,
            impact=age_bonus,
            description=f"{analysis.wallet_age_months:.1f} months of on-chain history",
            polarity=POLARITY_POSITIVE
            if analysis.wallet_age_months > AGE_POSITIVE_ABOVE_MONTHS
            else POLARITY_NEUTRAL,
        )
    )

    legitimate_bonus = min(analysis.legitimate_program_usage * LEGITIMATE_WEIGHT, LEGITIMATE_BONUS_CAP)
    score += legitimate_bonus
    factors.append(
        ScoreFactor(
            name=FACTOR_LEGITIMATE,
            impact=legitimate_bonus,
            description=f"{analysis.legitimate_program_usage} interactions with verified DeFi protocols",
            polarity=POLARITY_POSITIVE if analysis.legitimate_program_usage > 0 else POLARITY_NEUTRAL,
        )
    )

    activity_bonus = min(round_half_up(analysis.transaction_frequency * ACTIVITY_WEIGHT), ACTIVITY_BONUS_CAP)
    score += activity_bonus
    low, high = ACTIVITY_POSITIVE_RANGE
    factors.append(
        ScoreFactor(
            name=FACTOR_ACTIVITY,
            impact=activity_bonus,
            description=f"{analysis.transaction_frequency:.2f} transactions per day (recent activity)",
            polarity=POLARITY_POSITIVE
            if low < analysis.transaction_frequency < high
            else POLARITY_NEUTRAL,
        )
    )

    score = max(SCORE_MIN, min(SCORE_MAX, round_half_up(score)))
    risk_level = risk_level_for_score(score)
    logger.debug("reputability_score_computed", score=score, risk_level=risk_level)
    return ScoreResult(score=score, factors=tuple(factors), risk_level=risk_level)
