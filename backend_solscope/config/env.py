"""
Environment variable loading for Solscope.

- HELIUS_API_KEY: Helius API key (enhanced transactions API and RPC URL)
- HELIUS_RPC_URL: explicit RPC endpoint (overrides the key-derived URL)
- HELIUS_API_BASE_URL: enhanced API base (default https://api.helius.xyz/v0)
- XAI_API_KEY / XAI_BASE_URL / XAI_MODEL: narrative text generation
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_solscope/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_API_BASE_URL = "https://api.helius.xyz/v0"
XAI_BASE_URL = "https://api.x.ai/v1"
XAI_DEFAULT_MODEL = "grok-3-mini"


def load_solscope_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def get_data_dir() -> Path:
    """Directory holding the static JSON address tables."""
    return _BACKEND_DIR / "data"


def get_helius_api_key() -> str:
    load_solscope_env()
    return (os.getenv("HELIUS_API_KEY") or "").strip()


def get_helius_rpc_url() -> str:
    """
    Resolve the RPC URL.
    Order: HELIUS_RPC_URL > HELIUS_API_KEY (mainnet) > public mainnet RPC.
    """
    load_solscope_env()
    url = (os.getenv("HELIUS_RPC_URL") or "").strip()
    if url:
        return url
    key = get_helius_api_key()
    if key:
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return MAINNET_RPC_URL


def get_helius_api_base_url() -> str:
    load_solscope_env()
    return ((os.getenv("HELIUS_API_BASE_URL") or "").strip() or HELIUS_API_BASE_URL).rstrip("/")


def get_xai_api_key() -> str:
    load_solscope_env()
    return (os.getenv("XAI_API_KEY") or "").strip()


def get_xai_base_url() -> str:
    load_solscope_env()
    return (os.getenv("XAI_BASE_URL") or "").strip() or XAI_BASE_URL


def get_xai_model() -> str:
    load_solscope_env()
    return (os.getenv("XAI_MODEL") or "").strip() or XAI_DEFAULT_MODEL


def mask_api_key(url: str) -> str:
    """Mask the api-key query value so URLs can be logged."""
    if "api-key=" not in url:
        return url
    return url.split("api-key=")[0] + "api-key=***"
