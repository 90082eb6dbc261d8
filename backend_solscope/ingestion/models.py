"""
Data models for chain data consumed by the analytics layer.

Responsibilities:
- Normalize Helius enhanced-transaction payloads (nativeTransfers,
  tokenTransfers, instructions) and RPC getTransaction payloads
  (accountKeys, pre/post balances) into one immutable Transaction type.
- Parse getSignaturesForAddress items into SignatureInfo.
Parsing is tolerant: missing or malformed sub-fields become empty values,
never exceptions, so one odd payload cannot abort a whole analysis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _as_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_opt_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


@dataclass(frozen=True)
class SignatureInfo:
    """
    Normalized transaction signature info from getSignaturesForAddress.
    """

    signature: str
    slot: int
    err: Any  # None if success; dict/object from RPC if failed
    block_time: int | None  # Unix timestamp; None if not available
    memo: str | None = None
    confirmation_status: str | None = None  # processed | confirmed | finalized

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureInfo":
        """Build from a single getSignaturesForAddress result item."""
        return cls(
            signature=item["signature"],
            slot=_as_int(item.get("slot")),
            err=item.get("err"),
            block_time=_as_opt_int(item.get("blockTime")),
            memo=item.get("memo"),
            confirmation_status=item.get("confirmationStatus"),
        )


@dataclass(frozen=True)
class NativeTransfer:
    """SOL transfer in lamports."""

    from_address: str
    to_address: str
    amount: int

    @classmethod
    def from_helius(cls, item: dict[str, Any]) -> "NativeTransfer":
        return cls(
            from_address=str(item.get("fromUserAccount") or ""),
            to_address=str(item.get("toUserAccount") or ""),
            amount=_as_int(item.get("amount")),
        )


@dataclass(frozen=True)
class TokenTransfer:
    from_address: str
    to_address: str
    mint: str
    token_amount: float
    symbol: str | None = None

    @classmethod
    def from_helius(cls, item: dict[str, Any]) -> "TokenTransfer":
        return cls(
            from_address=str(item.get("fromUserAccount") or ""),
            to_address=str(item.get("toUserAccount") or ""),
            mint=str(item.get("mint") or ""),
            token_amount=_as_float(item.get("tokenAmount")),
            symbol=item.get("symbol"),
        )


@dataclass(frozen=True)
class Instruction:
    """
    One top-level instruction. program_id falls back to the parsed program
    name ("system", "spl-token") when the payload carries no programId.
    """

    program_id: str
    data: str = ""

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "Instruction":
        program_id = item.get("programId") or item.get("program") or ""
        data = item.get("data")
        if not isinstance(data, str):
            parsed = item.get("parsed")
            if isinstance(parsed, dict):
                data = str(parsed.get("type") or "")
            elif isinstance(parsed, str):
                data = parsed
            else:
                data = ""
        return cls(program_id=str(program_id), data=data)


@dataclass(frozen=True)
class AccountKey:
    """Account referenced by a transaction message, with its signer/writable flags."""

    pubkey: str
    signer: bool = False
    writable: bool = False

    @property
    def is_program(self) -> bool:
        """Read-only, non-signer accounts are treated as programs."""
        return not self.signer and not self.writable


@dataclass(frozen=True)
class Transaction:
    """
    Normalized transaction. Enhanced payloads fill transfers; RPC payloads
    fill account_keys and balances. Either source may leave the other empty.
    """

    signature: str
    timestamp: int | None = None
    native_transfers: tuple[NativeTransfer, ...] = ()
    token_transfers: tuple[TokenTransfer, ...] = ()
    instructions: tuple[Instruction, ...] = ()
    account_keys: tuple[AccountKey, ...] = ()
    pre_balances: tuple[int, ...] = ()
    post_balances: tuple[int, ...] = ()

    def account_index(self, address: str) -> int:
        """Position of address in account_keys, or -1 when absent."""
        for i, key in enumerate(self.account_keys):
            if key.pubkey == address:
                return i
        return -1

    def balance_delta(self, index: int) -> int:
        """post - pre for the account at index; missing balances count as 0."""
        pre = self.pre_balances[index] if 0 <= index < len(self.pre_balances) else 0
        post = self.post_balances[index] if 0 <= index < len(self.post_balances) else 0
        return post - pre

    @classmethod
    def from_helius(cls, item: dict[str, Any]) -> "Transaction":
        """Build from one Helius enhanced-transactions API item."""
        return cls(
            signature=str(item.get("signature") or ""),
            timestamp=_as_opt_int(item.get("timestamp")),
            native_transfers=tuple(
                NativeTransfer.from_helius(t) for t in _as_list(item.get("nativeTransfers")) if isinstance(t, dict)
            ),
            token_transfers=tuple(
                TokenTransfer.from_helius(t) for t in _as_list(item.get("tokenTransfers")) if isinstance(t, dict)
            ),
            instructions=tuple(
                Instruction.from_payload(ix) for ix in _as_list(item.get("instructions")) if isinstance(ix, dict)
            ),
        )

    @classmethod
    def from_rpc(cls, result: dict[str, Any], signature: str | None = None) -> "Transaction":
        """
        Build from a getTransaction result (json or jsonParsed encoding).
        For versioned transactions meta.loadedAddresses are appended to the keys
        (writable first, then readonly) so indices line up with the balances.
        """
        tx_obj = result.get("transaction") if isinstance(result.get("transaction"), dict) else {}
        message = tx_obj.get("message") if isinstance(tx_obj.get("message"), dict) else {}
        meta = result.get("meta") if isinstance(result.get("meta"), dict) else {}

        keys: list[AccountKey] = []
        header = message.get("header") if isinstance(message.get("header"), dict) else {}
        raw_keys = _as_list(message.get("accountKeys"))
        for i, k in enumerate(raw_keys):
            if isinstance(k, dict):
                keys.append(
                    AccountKey(
                        pubkey=str(k.get("pubkey") or ""),
                        signer=bool(k.get("signer")),
                        writable=bool(k.get("writable")),
                    )
                )
            elif isinstance(k, str):
                keys.append(AccountKey(pubkey=k, **_legacy_key_flags(i, len(raw_keys), header)))
        loaded = meta.get("loadedAddresses") if isinstance(meta.get("loadedAddresses"), dict) else {}
        for role in ("writable", "readonly"):
            for addr in _as_list(loaded.get(role)):
                keys.append(AccountKey(pubkey=str(addr), writable=role == "writable"))

        signatures = _as_list(tx_obj.get("signatures"))
        sig = signature or (str(signatures[0]) if signatures else "")
        return cls(
            signature=sig,
            timestamp=_as_opt_int(result.get("blockTime")),
            instructions=tuple(
                Instruction.from_payload(ix) for ix in _as_list(message.get("instructions")) if isinstance(ix, dict)
            ),
            account_keys=tuple(keys),
            pre_balances=tuple(_as_int(b) for b in _as_list(meta.get("preBalances"))),
            post_balances=tuple(_as_int(b) for b in _as_list(meta.get("postBalances"))),
        )


def _legacy_key_flags(index: int, total: int, header: dict[str, Any]) -> dict[str, bool]:
    """Derive signer/writable from the message header for non-parsed account keys."""
    n_sig = _as_int(header.get("numRequiredSignatures"))
    ro_signed = _as_int(header.get("numReadonlySignedAccounts"))
    ro_unsigned = _as_int(header.get("numReadonlyUnsignedAccounts"))
    if index < n_sig:
        return {"signer": True, "writable": index < n_sig - ro_signed}
    return {"signer": False, "writable": index < total - ro_unsigned}
