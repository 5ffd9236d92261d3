"""
Tests for the logging configuration.
"""

import json
import logging

import pytest

from openmodel.core.config import LoggingSettings
from openmodel.infrastructure.logging import (
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


@pytest.fixture
def root_logger():
    """Restore the root logger after a test reconfigured it."""
    root = logging.getLogger()
    level = root.level
    log_level = get_log_level()
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    set_log_level(log_level)
    root.setLevel(level)


def make_record(level=logging.INFO, message="Loaded 3 rows"):
    return logging.LogRecord("openmodel.storage", level, __file__, 10, message, None, None)


class TestFormatters:
    """Tests for the log formatters."""

    def test_structured(self):
        data = json.loads(StructuredFormatter().format(make_record(logging.WARNING)))

        assert data["level"] == "WARNING"
        assert data["logger"] == "openmodel.storage"
        assert data["message"] == "Loaded 3 rows"
        assert "context" not in data

    def test_structured_context(self):
        with log_context(model="orders"):
            data = json.loads(StructuredFormatter().format(make_record()))

        assert data["context"] == {"model": "orders"}

    def test_human(self):
        output = HumanFormatter().format(make_record())

        assert "INFO" in output
        assert "openmodel.storage" in output
        assert output.endswith("| Loaded 3 rows")

    def test_human_context(self):
        with log_context(model="orders"):
            output = HumanFormatter().format(make_record())

        assert output.endswith('context={"model": "orders"}')


class TestLogContext:
    """Tests for LogContext."""

    def test_nesting_restores(self):
        with log_context(model="orders"):
            with log_context(operation="save"):
                assert LogContext.get_context() == {"model": "orders", "operation": "save"}
            assert LogContext.get_context() == {"model": "orders"}

        assert LogContext.get_context() == {}


class TestSetup:
    """Tests for setup_logging and the level helpers."""

    def test_log_file(self, root_logger, tmp_path):
        path = tmp_path / "logs" / "openmodel.log"
        setup_logging(level="debug", enable_console=False, log_file=path)

        with log_context(model="orders"):
            get_logger("openmodel.test").debug("Saved row")

        data = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
        assert get_log_level() == "DEBUG"
        assert data["message"] == "Saved row"
        assert data["context"] == {"model": "orders"}

    def test_console_handler(self, root_logger):
        setup_logging(level="WARNING", structured=True)

        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)

    def test_set_log_level(self, root_logger):
        setup_logging(level="INFO")
        set_log_level("error")

        assert get_log_level() == "ERROR"
        assert root_logger.level == logging.ERROR
        assert root_logger.handlers[0].level == logging.ERROR

    def test_from_settings(self, root_logger):
        setup_logging_from_settings(LoggingSettings(level="ERROR"))

        assert isinstance(root_logger.handlers[0].formatter, HumanFormatter)
        assert get_log_level() == "ERROR"
