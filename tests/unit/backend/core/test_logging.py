"""
Unit Tests for Centralized Logging.

Tests the logging setup, structured fields and source handling.
"""

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from modules.backend.core.config_schema import LoggingSchema
from modules.backend.core.logging import VALID_SOURCES, get_logger, log_with_source, setup_logging


@pytest.fixture
def logging_config(tmp_path):
    """Real LoggingSchema pointing its file handler into tmp_path."""
    return LoggingSchema(
        level="INFO",
        format="json",
        handlers={
            "console": {"enabled": True},
            "file": {
                "enabled": False,
                "path": "logs/system.jsonl",
                "max_bytes": 1048576,
                "backup_count": 2,
            },
        },
    )


@pytest.fixture
def _stub_config(logging_config, tmp_path):
    app_config = SimpleNamespace(logging=logging_config)
    with (
        patch("modules.backend.core.config.get_app_config", return_value=app_config),
        patch("modules.backend.core.config.find_project_root", return_value=tmp_path),
    ):
        yield
    logging.getLogger().handlers.clear()


class TestValidSources:
    """Tests for VALID_SOURCES."""

    def test_contains_expected_values(self):
        assert {"web", "cli", "events", "listing"} <= VALID_SOURCES

    def test_is_frozenset(self):
        assert isinstance(VALID_SOURCES, frozenset)


@pytest.mark.usefixtures("_stub_config")
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_uses_config_level(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_override_takes_precedence(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_console_handler(self):
        setup_logging(format_type="console", enable_file_logging=False)
        handler_types = [type(h).__name__ for h in logging.getLogger().handlers]
        assert handler_types == ["StreamHandler"]

    def test_file_handler_under_project_root(self, tmp_path):
        setup_logging(enable_console=False, enable_file_logging=True)
        handlers = logging.getLogger().handlers
        assert [type(h).__name__ for h in handlers] == ["RotatingFileHandler"]
        assert (tmp_path / "logs").is_dir()

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging(enable_file_logging=False)
        setup_logging(enable_file_logging=False)
        assert len(logging.getLogger().handlers) == 1

    def test_quiets_noisy_loggers(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestGetLogger:
    def test_returns_structlog_logger(self):
        logger = get_logger("test.module")
        assert hasattr(logger, "bind")
        assert hasattr(logger, "info")


class TestLogWithSource:
    """Tests for log_with_source."""

    def test_adds_source_field(self):
        logger = MagicMock()
        log_with_source(logger, "listing", "info", "Snapshot applied", records=3)
        logger.info.assert_called_once_with("Snapshot applied", source="listing", records=3)

    @pytest.mark.parametrize("level", ["debug", "info", "warning", "error", "critical"])
    def test_levels(self, level):
        logger = MagicMock()
        log_with_source(logger, "cli", level.upper(), "message")
        getattr(logger, level).assert_called_once()

    def test_invalid_level_raises(self):
        logger = get_logger("test")
        with pytest.raises(AttributeError):
            log_with_source(logger, "web", "nonexistent_level", "Test")
