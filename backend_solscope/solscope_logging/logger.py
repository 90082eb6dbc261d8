"""
structlog setup for Solscope.

Every record carries event_type, level, logger and an ISO-8601 UTC timestamp.
Analyses log addresses truncated through short_address().

Env: LOG_LEVEL (default INFO), LOG_FORMAT (json | console, default json).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

ADDRESS_PREFIX_LENGTH = 16


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Expose the event name as event_type (and message) for log aggregators."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog() -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        _event_type,
    ]
    if LOG_FORMAT == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger:

        logger = get_logger(__name__)
        logger.info("fund_flow_analyzed", address=short_address(addr), nodes=12)
    """
    return structlog.get_logger(name).bind(logger=name)


def short_address(address: str | None) -> str:
    return (address or "")[:ADDRESS_PREFIX_LENGTH] + "..."


def bind_address(address: str) -> structlog.BoundLogger:
    """Logger with the truncated subject address bound to every call."""
    return get_logger("backend_solscope").bind(address=short_address(address))
