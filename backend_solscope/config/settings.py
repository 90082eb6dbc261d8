"""
Analysis settings and static address tables.

Responsibilities:
- Expose every heuristic threshold, graph cap and fetch limit as a typed,
  immutable settings object (monetary values in lamports).
- Load the static address tables (scam addresses, blacklisted and legitimate
  programs, exchanges, labels) from JSON so they can be updated without code
  changes. Tables are immutable once loaded and shared read-only.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from backend_solscope.config.env import get_data_dir, load_solscope_env
from backend_solscope.solscope_logging import get_logger

logger = get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000

ENV_PREFIX = "SOLSCOPE_"

SCAM_ADDRESSES_FILE = "scam_addresses.json"
BLACKLISTED_PROGRAMS_FILE = "blacklisted_programs.json"
LEGITIMATE_PROGRAMS_FILE = "legitimate_programs.json"
EXCHANGES_FILE = "exchanges.json"
ADDRESS_LABELS_FILE = "address_labels.json"


def sol(amount: float) -> int:
    """SOL-equivalent units to lamports."""
    return int(amount * LAMPORTS_PER_SOL)


@dataclass(frozen=True)
class AnalysisSettings:
    """Thresholds and caps for scoring and graph construction (monetary values in lamports)."""

    # Address classification / risk
    large_amount_threshold: int = sol(10)
    very_large_amount_threshold: int = sol(100)

    # Balance-delta extraction
    noise_threshold: int = 10_000
    funding_fee_tolerance: int = 1_000
    per_counterparty_attribution: bool = False

    # Aggregation
    materiality_threshold: int = sol(0.001)
    max_nodes: int = 30
    max_edges: int = 50

    # Pattern detection
    max_patterns: int = 5
    wash_trading_ratio: float = 0.8
    wash_trading_floor: int = sol(5)
    unknown_source_floor: int = sol(1)
    unknown_source_limit: int = 3
    high_frequency_count: int = 20
    high_frequency_edge_limit: int = 2
    no_exchange_floor: int = sol(10)

    # Fund-flow risk score
    flow_risk_base: int = 30
    flow_risk_pattern_weight: int = 15
    flow_risk_no_exchange_penalty: int = 20
    flow_risk_unknown_weight: int = 5
    flow_risk_high_risk_weight: int = 10
    flow_risk_whale_penalty: int = 10
    flow_risk_whale_limit: int = 2
    flow_risk_exchange_credit: int = 8
    flow_risk_contract_credit: int = 5
    flow_risk_contract_limit: int = 5
    flow_risk_fallback: int = 50

    # Secondary hops
    secondary_source_floor: int = sol(1)
    secondary_top_sources: int = 3
    secondary_signature_limit: int = 5
    secondary_tx_limit: int = 3
    secondary_result_floor: int = sol(0.1)
    secondary_results_per_source: int = 2

    # Fetch limits per analysis
    history_limit: int = 100
    fund_flow_signature_limit: int = 200
    fund_flow_tx_limit: int = 100
    deployer_signature_limit: int = 50
    deployer_tx_limit: int = 20
    deployer_source_limit: int = 10
    mint_signature_limit: int = 20
    mint_tx_limit: int = 10
    mint_source_limit: int = 5
    developer_signature_limit: int = 50
    developer_tx_limit: int = 20
    developer_connection_limit: int = 10
    deployer_network_signature_limit: int = 50
    deployment_cost: int = sol(0.01)

    # Upstream I/O
    request_timeout: float = 10.0
    max_retries: int = 3
    retry_backoff: float = 0.5
    fetch_concurrency: int = 4

    # Narrative
    narrative_max_tokens: int = 250
    narrative_temperature: float = 0.7
    narrative_timeout: float = 15.0

    @classmethod
    def from_env(cls) -> "AnalysisSettings":
        """Build settings with SOLSCOPE_<FIELD_NAME> environment overrides."""
        load_solscope_env()
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = (os.getenv(ENV_PREFIX + f.name.upper()) or "").strip()
            if not raw:
                continue
            try:
                overrides[f.name] = _coerce(raw, f.default)
            except ValueError:
                logger.warning("settings_override_invalid", name=f.name, value=raw)
        return cls(**overrides)


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        return raw.lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


@dataclass(frozen=True)
class AddressTables:
    """Static lookup tables used by classification and scoring."""

    scam_addresses: frozenset[str] = frozenset()
    blacklisted_programs: frozenset[str] = frozenset()
    legitimate_programs: frozenset[str] = frozenset()
    exchanges: frozenset[str] = frozenset()
    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def safe_addresses(self) -> frozenset[str]:
        """Known-safe counterparties for risk assessment."""
        return self.exchanges

    def label_for(self, address: str) -> str | None:
        return self.labels.get(address)

    @classmethod
    def build(
        cls,
        scam_addresses: Any = (),
        blacklisted_programs: Any = (),
        legitimate_programs: Any = (),
        exchanges: Mapping[str, str] | Any = (),
        labels: Mapping[str, str] | None = None,
    ) -> "AddressTables":
        """Build tables from plain iterables; exchange names are merged into labels."""
        merged: dict[str, str] = {}
        if isinstance(exchanges, Mapping):
            merged.update({str(k): str(v) for k, v in exchanges.items()})
        merged.update({str(k): str(v) for k, v in (labels or {}).items()})
        return cls(
            scam_addresses=frozenset(str(a) for a in scam_addresses),
            blacklisted_programs=frozenset(str(a) for a in blacklisted_programs),
            legitimate_programs=frozenset(str(a) for a in legitimate_programs),
            exchanges=frozenset(str(a) for a in exchanges),
            labels=MappingProxyType(merged),
        )

    @classmethod
    def load(cls, data_dir: Path | None = None) -> "AddressTables":
        """Load all tables from data_dir (default: package data); each file overridable by env path."""
        base = data_dir or get_data_dir()
        return cls.build(
            scam_addresses=_load_json_table("SCAM_ADDRESSES_PATH", base / SCAM_ADDRESSES_FILE, list),
            blacklisted_programs=_load_json_table(
                "BLACKLISTED_PROGRAMS_PATH", base / BLACKLISTED_PROGRAMS_FILE, list
            ),
            legitimate_programs=_load_json_table(
                "LEGITIMATE_PROGRAMS_PATH", base / LEGITIMATE_PROGRAMS_FILE, dict
            ),
            exchanges=_load_json_table("EXCHANGES_PATH", base / EXCHANGES_FILE, dict),
            labels=_load_json_table("ADDRESS_LABELS_PATH", base / ADDRESS_LABELS_FILE, dict),
        )


def _load_json_table(env_name: str, default_path: Path, expected: type) -> Any:
    """Load one JSON table. Returns an empty container on missing or malformed files."""
    path_str = os.getenv(env_name, "").strip() or str(default_path)
    path = Path(path_str)
    if not path.is_file():
        logger.warning("address_table_missing", path=path_str)
        return expected()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("address_table_load_failed", path=path_str, error=str(e))
        return expected()
    if not isinstance(data, expected):
        logger.warning("address_table_wrong_shape", path=path_str, expected=expected.__name__)
        return expected()
    if expected is list:
        return [str(a).strip() for a in data if a]
    return data


@lru_cache(maxsize=1)
def get_settings() -> AnalysisSettings:
    """Return the process-wide analysis settings (env overrides applied once)."""
    return AnalysisSettings.from_env()


@lru_cache(maxsize=1)
def get_address_tables() -> AddressTables:
    """Return the process-wide address tables (read-only, safe to share across requests)."""
    return AddressTables.load()
