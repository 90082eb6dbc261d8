"""Core types shared across Solscope: exception taxonomy."""

from backend_solscope.core.exceptions import (
    ChainDataError,
    InvalidAddressError,
    MissingFieldError,
    NarrativeUnavailableError,
    SolscopeError,
    TokenNotFoundError,
    ValidationError,
)

__all__ = [
    "ChainDataError",
    "InvalidAddressError",
    "MissingFieldError",
    "NarrativeUnavailableError",
    "SolscopeError",
    "TokenNotFoundError",
    "ValidationError",
]
