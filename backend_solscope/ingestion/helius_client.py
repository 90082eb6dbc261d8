"""
Chain-data provider over Helius (enhanced API + JSON-RPC).

Validates address format before any upstream call, applies a per-request
timeout and a bounded linear-backoff retry on transport errors, 429 and 5xx.
Per-transaction detail fetches run under a semaphore so at most
fetch_concurrency requests are in flight; failed fetches are dropped
(logged at debug) instead of failing the batch.

Usage:
    async with HeliusClient() as client:
        txs = await client.get_transaction_history(address, limit=100)
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Protocol, Sequence

import httpx

from backend_solscope.config.env import (
    get_helius_api_base_url,
    get_helius_api_key,
    get_helius_rpc_url,
    mask_api_key,
)
from backend_solscope.config.settings import AnalysisSettings, get_settings
from backend_solscope.core.exceptions import ChainDataError, InvalidAddressError
from backend_solscope.ingestion.models import SignatureInfo, Transaction
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)

BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
HISTORY_LIMIT_MAX = 100
_RETRY_STATUS = frozenset({429, 500, 502, 503, 504})
_BODY_PREVIEW = 200


def is_valid_address(address: str | None) -> bool:
    return bool(address and BASE58_RE.match(address))


def validate_address(address: str | None, message: str = "Invalid wallet address format") -> str:
    """Return the address unchanged or raise InvalidAddressError."""
    if not is_valid_address(address):
        raise InvalidAddressError(address, message)
    return address  # type: ignore[return-value]


class ChainDataProvider(Protocol):
    """Read-only chain data used by the analyses. HeliusClient is the production implementation."""

    async def get_transaction_history(self, address: str, limit: int = 100) -> list[Transaction]: ...

    async def get_token_balances(self, address: str) -> list[dict[str, Any]]: ...

    async def get_account_info(self, address: str) -> dict[str, Any] | None: ...

    async def get_signatures_for_address(self, address: str, limit: int = 100) -> list[SignatureInfo]: ...

    async def get_transaction_detail(self, signature: str) -> Transaction | None: ...

    async def get_transaction_details(self, signatures: Sequence[str]) -> list[Transaction]: ...

    async def get_token_metadata(self, mint_address: str) -> dict[str, Any] | None: ...


class HeliusClient:
    """
    Async Helius client. Owns its httpx.AsyncClient unless one is passed in.
    Safe to use for a single request's lifetime; no state is kept between calls.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        rpc_url: str | None = None,
        api_base_url: str | None = None,
        settings: AnalysisSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else get_helius_api_key()
        self._rpc_url = rpc_url or get_helius_rpc_url()
        self._api_base_url = (api_base_url or get_helius_api_base_url()).rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._settings.request_timeout)
        self._rpc_id = 0

    async def __aenter__(self) -> "HeliusClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send one request, retrying up to max_retries times. Sleeps retry_backoff * attempt
        between attempts. Raises ChainDataError when every attempt failed.
        """
        attempts = 1 + max(0, self._settings.max_retries)
        last_status: int | None = None
        last_body: str | None = None
        last_err: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                r = await self._client.request(method, url, timeout=self._settings.request_timeout, **kwargs)
            except httpx.HTTPError as e:
                last_err = e
                logger.debug(
                    "helius_request_error",
                    url=mask_api_key(url),
                    attempt=attempt,
                    error=str(e),
                )
            else:
                if r.status_code not in _RETRY_STATUS:
                    return r
                last_status = r.status_code
                last_body = r.text[:_BODY_PREVIEW]
                last_err = None
                logger.debug(
                    "helius_request_retryable_status",
                    url=mask_api_key(url),
                    attempt=attempt,
                    status=r.status_code,
                )
            if attempt < attempts:
                await asyncio.sleep(self._settings.retry_backoff * attempt)
        if last_err is not None:
            raise ChainDataError(f"Request failed: {last_err}", cause=last_err)
        raise ChainDataError(
            f"API Error ({last_status}): {last_body}",
            http_status=last_status,
            body=last_body,
        )

    async def _get_json(self, method: str, url: str, **kwargs: Any) -> Any:
        r = await self._request_with_retry(method, url, **kwargs)
        if r.status_code >= 400:
            body = r.text[:_BODY_PREVIEW]
            raise ChainDataError(f"API Error ({r.status_code}): {body}", http_status=r.status_code, body=body)
        try:
            return r.json()
        except ValueError as e:
            raise ChainDataError("Upstream returned invalid JSON", http_status=r.status_code, cause=e) from e

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        self._rpc_id += 1
        body = {"jsonrpc": "2.0", "id": self._rpc_id, "method": method, "params": params}
        data = await self._get_json("POST", self._rpc_url, json=body)
        if not isinstance(data, dict):
            raise ChainDataError(f"RPC Error: unexpected response for {method}")
        if data.get("error"):
            err = data["error"]
            msg = err.get("message") if isinstance(err, dict) else str(err)
            raise ChainDataError(f"RPC Error: {msg}")
        return data.get("result")

    def _api_url(self, path: str) -> str:
        return f"{self._api_base_url}/{path.lstrip('/')}"

    def _api_params(self, **params: Any) -> dict[str, Any]:
        if self._api_key:
            params["api-key"] = self._api_key
        return params

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    async def get_transaction_history(self, address: str, limit: int = 100) -> list[Transaction]:
        """Enhanced transactions for address, newest first. limit is clamped to 1..100."""
        validate_address(address)
        valid_limit = min(max(1, int(limit)), HISTORY_LIMIT_MAX)
        data = await self._get_json(
            "GET",
            self._api_url(f"addresses/{address}/transactions"),
            params=self._api_params(limit=valid_limit),
        )
        if not isinstance(data, list):
            raise ChainDataError("Unexpected transaction history payload")
        txs = [Transaction.from_helius(item) for item in data if isinstance(item, dict)]
        logger.info("helius_history_fetched", address=short_address(address), count=len(txs))
        return txs

    async def get_token_balances(self, address: str) -> list[dict[str, Any]]:
        validate_address(address)
        result = await self._rpc(
            "getTokenAccountsByOwner",
            [address, {"programId": TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        value = (result or {}).get("value") if isinstance(result, dict) else None
        return [v for v in value or [] if isinstance(v, dict)]

    async def get_account_info(self, address: str) -> dict[str, Any] | None:
        """Parsed account (result.value) or None when the account does not exist."""
        validate_address(address)
        result = await self._rpc("getAccountInfo", [address, {"encoding": "jsonParsed"}])
        if not isinstance(result, dict):
            return None
        value = result.get("value")
        return value if isinstance(value, dict) else None

    async def get_signatures_for_address(self, address: str, limit: int = 100) -> list[SignatureInfo]:
        validate_address(address)
        result = await self._rpc("getSignaturesForAddress", [address, {"limit": int(limit)}])
        infos: list[SignatureInfo] = []
        for item in result or []:
            try:
                infos.append(SignatureInfo.from_rpc_item(item))
            except (KeyError, TypeError) as e:
                logger.debug("helius_signature_item_skipped", error=str(e))
        return infos

    async def get_transaction_detail(self, signature: str) -> Transaction | None:
        """Fetch one transaction; None when missing or when every retry failed."""
        try:
            result = await self._rpc(
                "getTransaction",
                [signature, {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0}],
            )
        except ChainDataError as e:
            logger.debug("helius_transaction_skipped", signature=signature[:16] + "...", error=e.message)
            return None
        if not isinstance(result, dict):
            return None
        return Transaction.from_rpc(result, signature=signature)

    async def get_transaction_details(self, signatures: Sequence[str]) -> list[Transaction]:
        """
        Fetch details with at most fetch_concurrency requests in flight.
        Output keeps input order; missing transactions are dropped.
        """
        if not signatures:
            return []
        sem = asyncio.Semaphore(max(1, self._settings.fetch_concurrency))

        async def _one(sig: str) -> Transaction | None:
            async with sem:
                return await self.get_transaction_detail(sig)

        results = await asyncio.gather(*(_one(s) for s in signatures))
        txs = [tx for tx in results if tx is not None]
        logger.debug("helius_details_fetched", requested=len(signatures), received=len(txs))
        return txs

    async def get_token_metadata(self, mint_address: str) -> dict[str, Any] | None:
        """First item of the Helius token-metadata response, or None."""
        validate_address(mint_address, "Invalid contract address format")
        data = await self._get_json(
            "POST",
            self._api_url("token-metadata"),
            params=self._api_params(),
            json={"mintAccounts": [mint_address]},
        )
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0]
        return None
