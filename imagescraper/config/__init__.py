"""Configuration Package

Purpose: Centralized configuration management for the image scraper

This package contains configuration-related modules including:
- Environment-based settings
- Logging subsystem options
"""

from .settings import ImageScraperSettings, LoggingSettings, get_settings, reset_settings

__all__ = [
    "ImageScraperSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
]
