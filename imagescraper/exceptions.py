"""Custom exceptions for the image scraper application."""

from typing import Any, Dict, Optional


class ImageScraperException(Exception):
    """Base exception for all image scraper errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationException(ImageScraperException):
    """Raised when configuration is invalid."""
    pass


class LogSinkError(ImageScraperException):
    """Raised when a log sink fails to persist a line."""

    def __init__(self, message: str, path: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.path = path
