"""
Unified Configuration System for the image scraper

Single source of truth for configuration using pydantic-settings.

ARCHITECTURAL PRINCIPLES:
- Only this module accesses environment variables directly
- All other modules receive configuration via dependency injection
- Type-safe validation with automatic conversion
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# LOGGING ENUMS
# =============================================================================

class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# NESTED CONFIGURATION SECTIONS
# =============================================================================

class LoggingSettings(BaseSettings):
    """Queued logging subsystem configuration"""
    level: LogLevel = Field(default=LogLevel.INFO)

    # Shared log file
    log_dir: str = Field(default="logs")
    log_file_name: str = Field(default="app.log")

    # Console mirroring of queued lines
    console_output: bool = Field(default=True)

    # Drain behaviour
    flush_timeout_ms: int = Field(default=5000, ge=0)
    backlog_warning_threshold: int = Field(default=10000, ge=1)

    # Per-module private debug files
    debug_files: bool = Field(default=True)

    # Diagnostics channel rendering
    diagnostics_json: bool = Field(default=True)

    model_config = SettingsConfigDict(env_prefix="SCRAPER_LOG_", extra="ignore")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value):
        if isinstance(value, str):
            value = value.strip().upper()
            if value == "WARNING":
                return LogLevel.WARN
        return value

    @property
    def log_file_path(self) -> str:
        """Full path of the shared log file."""
        return str(Path(self.log_dir) / self.log_file_name)


class ImageScraperSettings(BaseSettings):
    """
    Unified configuration for the image scraper.

    All configuration access should go through this class via dependency injection.
    """

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )


# =============================================================================
# SINGLETON MANAGEMENT
# =============================================================================

_settings_instance: Optional[ImageScraperSettings] = None


def get_settings() -> ImageScraperSettings:
    """
    Get global settings instance (singleton pattern).

    Raises:
        ConfigurationException: If settings validation fails
    """
    global _settings_instance
    if _settings_instance is None:
        try:
            from dotenv import find_dotenv, load_dotenv

            load_dotenv(find_dotenv(usecwd=True), override=False)
            _settings_instance = ImageScraperSettings()
        except Exception as e:
            from imagescraper.exceptions import ConfigurationException
            raise ConfigurationException(
                f"Settings initialization failed: {e}",
                details={"original_error": str(e), "error_type": type(e).__name__},
            ) from e
    return _settings_instance


def reset_settings() -> None:
    """
    Reset settings instance (primarily for testing).

    Forces recreation of settings on next get_settings() call.
    """
    global _settings_instance
    _settings_instance = None
