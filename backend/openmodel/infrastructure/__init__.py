"""
Infrastructure Module - Core infrastructure components.

Provides:
- logging: Logging configuration and utilities
"""

from openmodel.infrastructure.logging import get_logger, log_context, setup_logging

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
]
