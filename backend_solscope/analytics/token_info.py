"""
Token contract lookup (check-ca).

The parsed mint account is authoritative for decimals and supply and must
exist. Helius token metadata is best-effort: any failure leaves the name,
symbol and creator fields at their defaults.
"""

from __future__ import annotations

from typing import Any

from backend_solscope.analytics.models import TokenInfo
from backend_solscope.core.exceptions import ChainDataError, TokenNotFoundError
from backend_solscope.ingestion.helius_client import ChainDataProvider, validate_address
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _clean(value: Any) -> str:
    # Metaplex pads fixed-width strings with NUL bytes
    return str(value or "").rstrip("\x00").strip()


def parse_mint_info(account: dict[str, Any] | None) -> dict[str, Any] | None:
    """data.parsed.info of a jsonParsed mint account, or None."""
    info = _dict(_dict(_dict(account).get("data")).get("parsed")).get("info")
    return info if isinstance(info, dict) and info else None


def build_token_info(mint_address: str, mint_info: dict[str, Any], metadata: dict[str, Any] | None) -> TokenInfo:
    meta = _dict(metadata)
    on_chain = _dict(_dict(meta.get("onChainMetadata")).get("metadata"))
    data = _dict(on_chain.get("data"))
    account = _dict(meta.get("account"))
    creators = data.get("creators") or []
    deployer = None
    if isinstance(creators, list) and creators and isinstance(creators[0], dict):
        deployer = creators[0].get("address")

    try:
        decimals = int(mint_info.get("decimals") or account.get("decimals") or 0)
    except (TypeError, ValueError):
        decimals = 0

    return TokenInfo(
        mint_address=mint_address,
        name=_clean(data.get("name")) or "Unknown",
        symbol=_clean(data.get("symbol")) or "Unknown",
        decimals=decimals,
        supply=str(mint_info.get("supply") or "0"),
        mint_authority=account.get("mintAuthority", mint_info.get("mintAuthority")),
        freeze_authority=account.get("freezeAuthority", mint_info.get("freezeAuthority")),
        metadata_uri=_clean(data.get("uri")) or None,
        deployer=deployer,
        is_mutable=bool(on_chain.get("isMutable", False)),
    )


async def get_token_info(mint_address: str, provider: ChainDataProvider) -> TokenInfo:
    """
    Raises InvalidAddressError for a malformed mint, TokenNotFoundError when the
    mint account is absent or not a parsed mint, ChainDataError when the account
    lookup itself fails.
    """
    validate_address(mint_address, "Invalid contract address format")
    account = await provider.get_account_info(mint_address)
    mint_info = parse_mint_info(account)
    if mint_info is None:
        raise TokenNotFoundError(mint_address)

    metadata: dict[str, Any] | None = None
    try:
        metadata = await provider.get_token_metadata(mint_address)
    except ChainDataError as e:
        logger.warning("token_metadata_unavailable", mint=short_address(mint_address), error=e.message)

    info = build_token_info(mint_address, mint_info, metadata)
    logger.info("token_info_fetched", mint=short_address(mint_address), symbol=info.symbol)
    return info
