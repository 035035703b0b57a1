"""
Diagnostics Logging Configuration

Configures structlog for the logging subsystem's own diagnostics channel:
initialization notices, sink write failures, flush timeouts, backlog warnings
and critical alerts. Queued application lines never pass through here.
"""

import logging
import os
import threading
from typing import Any, Dict, Optional

import structlog


class DiagnosticsLogConfig:
    """
    structlog configuration for subsystem diagnostics.

    Diagnostics must stay synchronous and independent of the log queue, since
    they report on the queue itself (a failing sink, a stalled drain).
    """

    def __init__(self, json_output: bool = True, level: int = logging.INFO):
        """
        Initialize the diagnostics configuration.

        Args:
            json_output: Render events as JSON instead of console key/values
            level: Minimum stdlib level for diagnostics events
        """
        self.json_output = json_output
        self.level = level
        self.configure_structlog()

    def configure_structlog(self) -> None:
        """
        Configure structlog with the diagnostics processor chain.

        Sets up:
        - Log level filtering
        - Logger name and level
        - ISO timestamps
        - Stack and exception formatting
        - Process and thread identification
        - JSON or console rendering
        """
        logging.basicConfig(
            format="%(message)s",
            level=self.level,
        )

        renderer = (
            structlog.processors.JSONRenderer()
            if self.json_output
            else structlog.dev.ConsoleRenderer(colors=False)
        )

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                self.add_thread_info,
                renderer,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )

    @staticmethod
    def add_thread_info(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add process and thread identification.

        Diagnostics are emitted both by producers and by the drain worker
        thread, so the emitting thread is part of every event.
        """
        event_dict.setdefault("pid", os.getpid())
        event_dict.setdefault("thread", threading.current_thread().name)
        return event_dict


# Singleton configuration instance
_diagnostics_config: Optional[DiagnosticsLogConfig] = None


def configure_diagnostics(json_output: bool = True, level: int = logging.INFO) -> DiagnosticsLogConfig:
    """
    (Re)configure the diagnostics channel.

    Called by the logging bootstrap once settings are known; later
    get_logger() calls reuse this configuration.
    """
    global _diagnostics_config
    _diagnostics_config = DiagnosticsLogConfig(json_output=json_output, level=level)
    return _diagnostics_config


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a diagnostics logger.

    Configures structlog with defaults on first use.

    Args:
        name: Logger name, typically the module name

    Returns:
        Configured structlog BoundLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.warning("Flush timed out", pending=12)
    """
    global _diagnostics_config
    if _diagnostics_config is None:
        _diagnostics_config = DiagnosticsLogConfig()

    return structlog.get_logger(name)
