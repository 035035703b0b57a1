"""
Image Scraper Queued Logging Infrastructure

Ordered, non-blocking logging shared by request handlers, scraping workers
and process-wide exception hooks.

Key features:
- Single process-wide queue drained by one background worker
- Exact global enqueue order in the shared log file
- Producers never block on disk I/O and never see logging errors
- Cycle-safe context serialization
- Step/checkpoint timing and performance summaries

Components:
- queue: LogQueue, FileSink and the process-wide instance
- queued: QueuedLogger per-module facade
- detailed: DetailedLogger structured layer
- setup: bootstrap, error hooks, flush and shutdown
- config: structlog diagnostics channel for the subsystem itself
"""

from .config import configure_diagnostics, get_logger
from .detailed import (
    CanvasState,
    DetailedLogger,
    ExtractionSummary,
    PerformanceMetrics,
    create_detailed_logger,
    create_standard_loggers,
)
from .queue import FileSink, LogQueue, get_log_queue, initialize_log_queue, reset_log_queue
from .queued import QueuedLogger, get_application_logger, get_module_logger
from .records import LogRecord, Severity
from .serialization import safe_serialize
from .setup import (
    create_module_loggers,
    flush_logs,
    flush_logs_async,
    register_shutdown_flush,
    setup_error_handlers,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Core queue
    'LogQueue',
    'FileSink',
    'LogRecord',
    'Severity',
    'initialize_log_queue',
    'get_log_queue',
    'reset_log_queue',

    # Producer facades
    'QueuedLogger',
    'get_module_logger',
    'get_application_logger',
    'DetailedLogger',
    'PerformanceMetrics',
    'CanvasState',
    'ExtractionSummary',
    'create_detailed_logger',
    'create_standard_loggers',
    'safe_serialize',

    # Bootstrap
    'setup_logging',
    'setup_error_handlers',
    'create_module_loggers',
    'flush_logs',
    'flush_logs_async',
    'shutdown_logging',
    'register_shutdown_flush',

    # Diagnostics
    'configure_diagnostics',
    'get_logger',
]
