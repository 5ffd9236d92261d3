"""
Global logging configuration for openmodel.

Features:
- Log level control via the OPENMODEL_LOG_LEVEL environment variable or config
- Structured JSON logging with timestamps
- Human readable coloured console output
- Optional rotating log file
- Context values attached to every record inside a log_context block
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = os.getenv("OPENMODEL_LOG_LEVEL", "INFO")

_current_log_level = DEFAULT_LOG_LEVEL.upper()


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = {**LogContext.get_context(), **getattr(record, "context", {})}
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        base_msg = f"[{timestamp}] {color}{record.levelname:8}{self.RESET} | {record.name:30} | {record.getMessage()}"

        context = {**LogContext.get_context(), **getattr(record, "context", {})}
        if context:
            base_msg += f" | context={json.dumps(context, ensure_ascii=False, default=str)}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


class LogContext:
    """Context manager for adding context to logs."""

    _current_context: dict[str, Any] = {}

    def __init__(self, **kwargs: Any):
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._old_context = LogContext._current_context.copy()
        LogContext._current_context = {**self._old_context, **self._new_context}
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        LogContext._current_context = self._old_context

    @classmethod
    def get_context(cls) -> dict[str, Any]:
        return cls._current_context.copy()


def setup_logging(
    level: str | None = None,
    enable_console: bool = True,
    log_file: str | Path | None = None,
    structured: bool = False,
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable console logging
        log_file: Write JSON lines to this rotating file as well
        structured: Use JSON lines on the console too
    """
    global _current_log_level

    if level:
        _current_log_level = level.upper()

    numeric_level = getattr(logging, _current_log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(StructuredFormatter() if structured else HumanFormatter())
        console_handler.setLevel(numeric_level)
        root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=MAX_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        file_handler.setLevel(numeric_level)
        root_logger.addHandler(file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def setup_logging_from_settings(settings: Any) -> None:
    """Setup logging from a LoggingSettings instance."""
    setup_logging(
        level=settings.level,
        log_file=settings.file,
        structured=settings.structured,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """
    Dynamically set the log level.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    global _current_log_level
    _current_log_level = level.upper()

    logging.getLogger().setLevel(getattr(logging, _current_log_level, logging.INFO))

    for handler in logging.getLogger().handlers:
        handler.setLevel(getattr(logging, _current_log_level, logging.INFO))


def get_log_level() -> str:
    """
    Get the current log level.

    Returns:
        Current log level string
    """
    return _current_log_level


@contextmanager
def log_context(**kwargs: Any):
    """
    Context manager for adding context to logs.

    Usage:
        with log_context(model="orders"):
            logger.debug("Loading rows")
    """
    with LogContext(**kwargs):
        yield
