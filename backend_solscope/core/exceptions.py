"""
Exception taxonomy for Solscope.

Validation errors are raised before any upstream call and surface as 4xx.
ChainDataError is raised by the chain-data provider once retries are exhausted;
analysis entry points recover from it locally. The API layer maps any
SolscopeError to {"error": message} with its status_code.
"""

from __future__ import annotations


class SolscopeError(Exception):
    """Base error with a stable machine code and an HTTP status for the API layer."""

    code = "solscope_error"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(SolscopeError):
    code = "validation_error"
    status_code = 400


class InvalidAddressError(ValidationError):
    """Address is not a 32-44 character base58 string."""

    code = "invalid_address"

    def __init__(self, address: str | None = None, message: str = "Invalid wallet address format") -> None:
        super().__init__(message)
        self.address = address


class MissingFieldError(ValidationError):
    code = "missing_field"

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required")
        self.field = field


class ChainDataError(SolscopeError):
    """Upstream (Helius / RPC) request failed after retries or returned an RPC error."""

    code = "upstream_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None = None,
        body: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.body = body
        self.cause = cause


class TokenNotFoundError(SolscopeError):
    code = "token_not_found"
    status_code = 404

    def __init__(self, mint_address: str, message: str = "Invalid contract address or token not found") -> None:
        super().__init__(message)
        self.mint_address = mint_address


class NarrativeUnavailableError(SolscopeError):
    """Text generation failed or is not configured; the explainer falls back to templates."""

    code = "narrative_unavailable"
    status_code = 503
