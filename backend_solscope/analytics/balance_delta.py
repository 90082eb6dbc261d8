"""
Balance-delta extraction: who moved value to or from a target address in one transaction.

extract_flows is the generic extractor used by fund-flow graphs. By default
every counterparty whose own delta exceeds the noise threshold is recorded
with the direction of the target's delta and the target's absolute delta as
amount (one direction per transaction). With
AnalysisSettings.per_counterparty_attribution the counterparty's own sign and
amount are used instead.

extract_funding_source is the stricter, fee-tolerant variant used to trace
who funded an address; extract_connection picks the first counterparty with
any balance change (developer network).
"""

from __future__ import annotations

from backend_solscope.analytics.models import (
    DIRECTION_INCOMING,
    DIRECTION_OUTGOING,
    EDGE_CONTRACT_INTERACTION,
    EDGE_EXCHANGE,
    EDGE_FUNDING,
    FLOW_DEX_TRADE,
    FLOW_STAKING,
    FLOW_TOKEN_TRANSFER,
    FLOW_TRANSFER,
    FLOW_UNKNOWN,
    Flow,
    FundingFlow,
)
from backend_solscope.config.settings import AnalysisSettings, get_settings
from backend_solscope.ingestion.models import Transaction

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SERUM_DEX_PROGRAM_ID = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
STAKE_MARKER = "Stake"

_EDGE_TYPE_BY_FLOW = {
    FLOW_TRANSFER: EDGE_FUNDING,
    FLOW_DEX_TRADE: EDGE_EXCHANGE,
    FLOW_TOKEN_TRANSFER: EDGE_CONTRACT_INTERACTION,
    FLOW_STAKING: EDGE_CONTRACT_INTERACTION,
}


def determine_flow_type(tx: Transaction) -> str:
    """Flow type from the first instruction whose program is recognized."""
    for ix in tx.instructions:
        pid = ix.program_id
        if pid == SYSTEM_PROGRAM_ID:
            return FLOW_TRANSFER
        if pid == TOKEN_PROGRAM_ID:
            return FLOW_TOKEN_TRANSFER
        if pid == SERUM_DEX_PROGRAM_ID:
            return FLOW_DEX_TRADE
        if STAKE_MARKER in pid:
            return FLOW_STAKING
    return FLOW_UNKNOWN


def classify_flow_type(flow_type: str) -> str:
    """Edge type for a flow type; unrecognized types are funding."""
    return _EDGE_TYPE_BY_FLOW.get(flow_type, EDGE_FUNDING)


def extract_flows(
    tx: Transaction,
    target_address: str,
    *,
    settings: AnalysisSettings | None = None,
) -> list[Flow]:
    """Counterparty flows for target_address in tx; empty when the target is not an account of tx."""
    settings = settings or get_settings()
    target_index = tx.account_index(target_address)
    if target_index == -1:
        return []

    target_delta = tx.balance_delta(target_index)
    tx_direction = DIRECTION_INCOMING if target_delta > 0 else DIRECTION_OUTGOING
    flow_type = determine_flow_type(tx)

    flows: list[Flow] = []
    for i, key in enumerate(tx.account_keys):
        if i == target_index:
            continue
        delta = tx.balance_delta(i)
        if abs(delta) <= settings.noise_threshold:
            continue
        if settings.per_counterparty_attribution:
            # Counterparty lost value -> target received it
            direction = DIRECTION_INCOMING if delta < 0 else DIRECTION_OUTGOING
            amount = abs(delta)
        else:
            direction = tx_direction
            amount = abs(target_delta)
        flows.append(Flow(counterparty=key.pubkey, amount=amount, direction=direction, flow_type=flow_type))
    return flows


def extract_funding_source(
    tx: Transaction,
    target_address: str,
    *,
    settings: AnalysisSettings | None = None,
) -> FundingFlow | None:
    """
    First account whose decrease matches the target's increase within the fee
    tolerance. Amount is the target's increase. None when the target did not
    gain value or no matching source exists.
    """
    settings = settings or get_settings()
    target_index = tx.account_index(target_address)
    if target_index == -1:
        return None
    received = tx.balance_delta(target_index)
    if received <= 0:
        return None
    for i, key in enumerate(tx.account_keys):
        if i == target_index:
            continue
        sent = -tx.balance_delta(i)
        if sent > 0 and abs(sent - received) < settings.funding_fee_tolerance:
            return FundingFlow(source=key.pubkey, amount=received)
    return None


def extract_connection(tx: Transaction, target_address: str) -> FundingFlow | None:
    """First other account with any balance change, attributed the target's absolute delta."""
    target_index = tx.account_index(target_address)
    if target_index == -1:
        return None
    activity = abs(tx.balance_delta(target_index))
    if activity <= 0:
        return None
    for i, key in enumerate(tx.account_keys):
        if i != target_index and tx.balance_delta(i) != 0:
            return FundingFlow(source=key.pubkey, amount=activity)
    return None
