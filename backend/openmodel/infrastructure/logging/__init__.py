"""
Logging configuration and utilities.
"""

from .logging_config import (
    HumanFormatter,
    LogContext,
    StructuredFormatter,
    get_log_level,
    get_logger,
    log_context,
    set_log_level,
    setup_logging,
    setup_logging_from_settings,
)

__all__ = [
    "HumanFormatter",
    "LogContext",
    "StructuredFormatter",
    "get_log_level",
    "get_logger",
    "log_context",
    "set_log_level",
    "setup_logging",
    "setup_logging_from_settings",
]
