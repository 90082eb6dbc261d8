"""
Configuration management for Backend Solscope.

Loads settings from environment variables and the .env file, and the static
address tables from JSON. Exposes a single source of truth for thresholds,
caps and upstream endpoints.
"""

from backend_solscope.config.settings import (  # noqa: F401
    AddressTables,
    AnalysisSettings,
    get_address_tables,
    get_settings,
)

__all__ = ["AddressTables", "AnalysisSettings", "get_address_tables", "get_settings"]
