"""
Logging bootstrap for the application.

Creates the process-wide log queue from settings at startup, routes uncaught
exceptions into a module logger and drains the queue before shutdown.

Usage:
    queue = setup_logging()
    setup_error_handlers()
    register_shutdown_flush()
    # ... app runs ...
    shutdown_logging()
"""

import asyncio
import atexit
import sys
import threading
import traceback
from typing import Dict, Optional

from imagescraper.infrastructure.logging.config import configure_diagnostics, get_logger
from imagescraper.infrastructure.logging.console import configure_console
from imagescraper.infrastructure.logging.detailed import DetailedLogger, create_standard_loggers, set_default_log_level
from imagescraper.infrastructure.logging.queue import (
    DEFAULT_FLUSH_TIMEOUT_MS,
    LogQueue,
    get_log_queue,
    initialize_log_queue,
)
from imagescraper.infrastructure.logging.queued import QueuedLogger, get_module_logger

logger = get_logger(__name__)

ERROR_HANDLER_MODULE = "ErrorHandler"
_HOOK_MARKER = "_imagescraper_error_hook"


def setup_logging(settings=None) -> LogQueue:
    """
    Initialize application logging.

    Args:
        settings: LoggingSettings; defaults to get_settings().logging

    Returns:
        The process-wide LogQueue
    """
    if settings is None:
        from imagescraper.config.settings import get_settings
        settings = get_settings().logging

    configure_diagnostics(json_output=settings.diagnostics_json)
    if settings.console_output:
        configure_console()

    queue = initialize_log_queue(
        settings.log_file_path,
        console_output=settings.console_output,
        backlog_warning_threshold=settings.backlog_warning_threshold,
    )
    set_default_log_level(settings.level.value)
    logger.info(
        "Logs from all concurrent operations will be queued and written sequentially",
        log_file=queue.file_path,
        level=settings.level.value,
    )
    return queue


def _log_uncaught(error_logger: QueuedLogger, exc_value: BaseException, exc_tb, prefix: str) -> None:
    error_logger.error(f"{prefix}: {exc_value}")
    stack = "".join(traceback.format_exception(type(exc_value), exc_value, exc_tb)).rstrip()
    error_logger.error(f"Stack: {stack}")


def setup_error_handlers(
    loop: Optional[asyncio.AbstractEventLoop] = None,
    queue: Optional[LogQueue] = None,
) -> QueuedLogger:
    """
    Route uncaught exceptions into the ErrorHandler module logger.

    Installs ``sys.excepthook`` and ``threading.excepthook`` and, when a loop
    is given, the loop's exception handler for failures in tasks nobody
    awaited. Previously installed hooks still run afterwards. Installing
    twice does not log twice.

    Args:
        loop: Event loop whose unhandled task errors should be logged
        queue: Queue to log into; None uses the process-wide queue

    Returns:
        The ErrorHandler logger
    """
    error_logger = get_module_logger(ERROR_HANDLER_MODULE, queue)

    if not getattr(sys.excepthook, _HOOK_MARKER, False):
        previous_excepthook = sys.excepthook

        def handle_uncaught_exception(exc_type, exc_value, exc_tb):
            if not issubclass(exc_type, KeyboardInterrupt):
                _log_uncaught(error_logger, exc_value, exc_tb, "Uncaught Exception")
            previous_excepthook(exc_type, exc_value, exc_tb)

        setattr(handle_uncaught_exception, _HOOK_MARKER, True)
        sys.excepthook = handle_uncaught_exception

    if not getattr(threading.excepthook, _HOOK_MARKER, False):
        previous_thread_hook = threading.excepthook

        def handle_thread_exception(args):
            if args.exc_type is not SystemExit and args.exc_value is not None:
                _log_uncaught(error_logger, args.exc_value, args.exc_traceback, "Uncaught Exception")
            previous_thread_hook(args)

        setattr(handle_thread_exception, _HOOK_MARKER, True)
        threading.excepthook = handle_thread_exception

    if loop is not None and not getattr(loop.get_exception_handler(), _HOOK_MARKER, False):
        previous_loop_handler = loop.get_exception_handler()

        def handle_async_exception(event_loop, context):
            exception = context.get("exception")
            message = str(exception) if exception is not None else context.get("message", "unknown error")
            error_logger.error(f"Unhandled Rejection: {message}")
            if previous_loop_handler is not None:
                previous_loop_handler(event_loop, context)
            else:
                event_loop.default_exception_handler(context)

        setattr(handle_async_exception, _HOOK_MARKER, True)
        loop.set_exception_handler(handle_async_exception)

    return error_logger


def flush_logs(timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS, queue: Optional[LogQueue] = None) -> bool:
    """
    Wait for all queued logs to be written.

    Returns:
        True if the queue drained within the timeout
    """
    return (queue or get_log_queue()).flush(timeout_ms)


async def flush_logs_async(timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS, queue: Optional[LogQueue] = None) -> bool:
    """Awaitable flush_logs() for asyncio shutdown hooks."""
    return await (queue or get_log_queue()).aflush(timeout_ms)


def shutdown_logging(timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS, queue: Optional[LogQueue] = None) -> bool:
    """
    Drain the queue and stop its worker before process exit.

    Returns:
        True if every record was written
    """
    queue = queue or get_log_queue()
    drained = queue.stop(timeout_ms)
    logger.info(
        "Queue-based logging shut down",
        drained=drained,
        records_written=queue.records_written,
        write_failures=queue.write_failures,
    )
    return drained


def register_shutdown_flush(timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS) -> None:
    """Flush the process-wide queue automatically at interpreter exit."""
    atexit.register(flush_logs, timeout_ms)


def create_module_loggers(settings=None, queue: Optional[LogQueue] = None) -> Dict[str, DetailedLogger]:
    """
    Build the standard detailed loggers from settings.

    Private debug files are placed in the log directory unless disabled.
    """
    if settings is None:
        from imagescraper.config.settings import get_settings
        settings = get_settings().logging
    return create_standard_loggers(settings.log_dir if settings.debug_files else None, queue=queue)
