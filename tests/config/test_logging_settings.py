"""
Test module for imagescraper.config.settings
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from imagescraper.config.settings import (
    ImageScraperSettings,
    LoggingSettings,
    LogLevel,
    get_settings,
    reset_settings,
)
from imagescraper.exceptions import ConfigurationException


class TestLoggingSettings:
    """Test cases for LoggingSettings."""

    def test_defaults(self):
        settings = LoggingSettings()

        assert settings.level is LogLevel.INFO
        assert settings.log_dir == "logs"
        assert settings.console_output is True
        assert settings.flush_timeout_ms == 5000
        assert settings.backlog_warning_threshold == 10000
        assert settings.log_file_path == str(Path("logs") / "app.log")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SCRAPER_LOG_LEVEL", "debug")
        monkeypatch.setenv("SCRAPER_LOG_LOG_DIR", "/var/log/scraper")
        monkeypatch.setenv("SCRAPER_LOG_FLUSH_TIMEOUT_MS", "250")
        monkeypatch.setenv("SCRAPER_LOG_DEBUG_FILES", "false")

        settings = LoggingSettings()

        assert settings.level is LogLevel.DEBUG
        assert settings.log_file_path == str(Path("/var/log/scraper") / "app.log")
        assert settings.flush_timeout_ms == 250
        assert settings.debug_files is False

    def test_warning_alias(self):
        assert LoggingSettings(level="warning").level is LogLevel.WARN

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level="TRACE")

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            LoggingSettings(flush_timeout_ms=-1)


class TestSettingsSingleton:
    """Test cases for get_settings() and reset_settings()."""

    def test_singleton(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_settings() is get_settings()

    def test_reset_creates_new_instance(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        first = get_settings()
        reset_settings()
        assert get_settings() is not first

    def test_nested_logging_reads_environment(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SCRAPER_LOG_CONSOLE_OUTPUT", "false")

        assert isinstance(get_settings(), ImageScraperSettings)
        assert get_settings().logging.console_output is False

    def test_dotenv_file_is_loaded(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("SCRAPER_LOG_LOG_FILE_NAME=scraper.log\n", encoding="utf-8")

        try:
            assert get_settings().logging.log_file_name == "scraper.log"
        finally:
            os.environ.pop("SCRAPER_LOG_LOG_FILE_NAME", None)

    def test_invalid_settings_raise_configuration_exception(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with patch("imagescraper.config.settings.ImageScraperSettings", side_effect=ValueError("bad")):
            with pytest.raises(ConfigurationException) as exc_info:
                get_settings()

        assert exc_info.value.details["error_type"] == "ValueError"
