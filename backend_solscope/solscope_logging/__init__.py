"""
Structured logging for Backend Solscope.

JSON logs with timestamp, event_type and address context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_solscope.solscope_logging.logger import bind_address, get_logger, short_address

__all__ = ["bind_address", "get_logger", "short_address"]
