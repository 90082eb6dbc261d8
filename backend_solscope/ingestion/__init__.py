"""Chain-data ingestion: Helius provider and normalized transaction models."""

from backend_solscope.ingestion.helius_client import (
    ChainDataProvider,
    HeliusClient,
    is_valid_address,
    validate_address,
)
from backend_solscope.ingestion.models import (
    AccountKey,
    Instruction,
    NativeTransfer,
    SignatureInfo,
    TokenTransfer,
    Transaction,
)

__all__ = [
    "AccountKey",
    "ChainDataProvider",
    "HeliusClient",
    "Instruction",
    "NativeTransfer",
    "SignatureInfo",
    "TokenTransfer",
    "Transaction",
    "is_valid_address",
    "validate_address",
]
