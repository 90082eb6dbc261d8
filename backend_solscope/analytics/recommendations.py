"""
Recommendation generator: one advisory per triggered condition, in fixed order.
When nothing triggers, two default positive-reinforcement strings are returned.
"""

from __future__ import annotations

from backend_solscope.analytics.models import WalletAnalysis

REC_AVOID_FLAGGED = "Avoid future interactions with flagged or suspicious addresses to improve reputation"
REC_STOP_BLACKLISTED = "Cease using blacklisted programs and stick to verified DeFi protocols"
REC_STAKE = "Consider staking SOL or tokens to demonstrate long-term commitment to the ecosystem"
REC_DIVERSIFY = "Diversify transaction counterparties to show legitimate usage patterns"
REC_USE_VERIFIED = "Increase usage of verified DeFi protocols like Jupiter, Raydium, or Marinade"
REC_BUILD_HISTORY = "Continue building transaction history over time to establish credibility"
REC_FEWER_LARGE = "Reduce frequency of large transfers to avoid triggering risk algorithms"

DEFAULT_RECOMMENDATIONS = (
    "Maintain current positive behavior patterns and continue regular DeFi participation",
    "Consider increasing staking activity to further improve reputation score",
)

STAKING_RATIO_MIN = 0.1
DIVERSITY_MIN = 0.3
LEGITIMATE_USAGE_MIN = 3
WALLET_AGE_MIN_MONTHS = 3
LARGE_TRANSFERS_MAX = 10


def generate_recommendations(analysis: WalletAnalysis) -> list[str]:
    recs: list[str] = []
    if analysis.flagged_interactions > 0:
        recs.append(REC_AVOID_FLAGGED)
    if analysis.blacklisted_program_usage > 0:
        recs.append(REC_STOP_BLACKLISTED)
    if analysis.staking_activity_ratio < STAKING_RATIO_MIN:
        recs.append(REC_STAKE)
    if analysis.counterparty_diversity < DIVERSITY_MIN:
        recs.append(REC_DIVERSIFY)
    if analysis.legitimate_program_usage < LEGITIMATE_USAGE_MIN:
        recs.append(REC_USE_VERIFIED)
    if analysis.wallet_age_months < WALLET_AGE_MIN_MONTHS:
        recs.append(REC_BUILD_HISTORY)
    if analysis.large_transfers > LARGE_TRANSFERS_MAX:
        recs.append(REC_FEWER_LARGE)
    if not recs:
        recs.extend(DEFAULT_RECOMMENDATIONS)
    return recs
