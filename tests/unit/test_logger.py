"""
Unit tests for logging setup.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from flatcache import logger as logger_module
from flatcache.config import LoggingSettings, Settings


def _settings(**logging_overrides: Any) -> Settings:
    return Settings(_env_file=None, logging=LoggingSettings(**logging_overrides))


class TestBuildLoggingConfig:
    """Tests for the dictConfig payload."""

    def test_console_only_by_default(self) -> None:
        """Test that no file handler is configured without a directory."""
        config = logger_module._build_logging_config(_settings())

        assert set(config["handlers"]) == {"console"}
        assert config["loggers"]["flatcache"]["handlers"] == ["console"]
        assert config["loggers"]["flatcache"]["level"] == logging.INFO

    def test_rotating_file_handler(self, tmp_path: Path) -> None:
        """Test file handler settings when a log directory is configured."""
        log_dir = tmp_path / "logs"
        config = logger_module._build_logging_config(
            _settings(directory=log_dir, level="DEBUG", max_bytes=1024, backup_count=2)
        )

        handler = config["handlers"]["file"]
        assert log_dir.is_dir()
        assert handler["filename"] == str(log_dir / "flatcache.log")
        assert handler["maxBytes"] == 1024
        assert handler["backupCount"] == 2
        assert handler["level"] == logging.DEBUG


class TestSetupLogging:
    """Tests for setup_logging idempotence."""

    def test_applies_config_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that repeated setup calls apply dictConfig only once."""
        applied: list[dict[str, Any]] = []
        monkeypatch.setattr(logger_module, "dictConfig", applied.append)
        monkeypatch.setattr(logger_module, "_LOGGER_CONFIGURED", False)
        try:
            first = logger_module.setup_logging(_settings(level="WARNING"))
            second = logger_module.setup_logging(_settings(level="WARNING"))
            applied_level = first.level
        finally:
            logging.getLogger("flatcache").setLevel(logging.NOTSET)

        assert len(applied) == 1
        assert first is second
        assert first.name == "flatcache"
        assert applied_level == logging.WARNING

    def test_rejects_unknown_level(self) -> None:
        """Test level resolution errors."""
        with pytest.raises(ValueError):
            logger_module._resolve_log_level("LOUD")
