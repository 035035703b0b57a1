"""
Queued logger facade.

A QueuedLogger stamps, tags and enqueues records for one module. It never
touches a file or a stream itself, so request handlers can log without
stalling on disk latency.
"""

from typing import Any, Optional, Union

from imagescraper.infrastructure.logging.queue import LogQueue, get_log_queue
from imagescraper.infrastructure.logging.records import LogRecord, Severity, utc_now
from imagescraper.infrastructure.logging.serialization import safe_serialize


class QueuedLogger:
    """
    Per-module producer facade over a LogQueue.

    Attributes:
        module_name: Name every record from this logger is tagged with
    """

    def __init__(self, module_name: str, queue: Optional[LogQueue] = None):
        """
        Args:
            module_name: Module tag for emitted records
            queue: Queue to push to; None uses the process-wide queue
        """
        self.module_name = module_name
        self._queue = queue

    @property
    def queue(self) -> LogQueue:
        return self._queue if self._queue is not None else get_log_queue()

    def record(self, level: Union[Severity, int, str], message: str, context: Any = None) -> LogRecord:
        """
        Build a record for this module and enqueue it.

        Args:
            level: Severity of the event
            message: Log message
            context: Optional context value, serialized safely

        Returns:
            The enqueued record
        """
        entry = LogRecord(
            level=Severity.parse(level),
            module_name=self.module_name,
            message=str(message),
            context=safe_serialize(context) if context is not None else None,
            timestamp=utc_now(),
        )
        self.queue.enqueue(entry)
        return entry

    def enqueue_record(self, entry: LogRecord) -> None:
        """Enqueue a prebuilt record unchanged."""
        self.queue.enqueue(entry)

    def debug(self, message: str, context: Any = None) -> None:
        self.record(Severity.DEBUG, message, context)

    def info(self, message: str, context: Any = None) -> None:
        self.record(Severity.INFO, message, context)

    def warn(self, message: str, context: Any = None) -> None:
        self.record(Severity.WARN, message, context)

    warning = warn

    def error(self, message: str, context: Any = None) -> None:
        self.record(Severity.ERROR, message, context)

    def critical(self, message: str, context: Any = None) -> None:
        self.record(Severity.CRITICAL, message, context)

    def log(self, message: str, context: Any = None) -> None:
        """Console-style alias for info()."""
        self.info(message, context)

    def __repr__(self) -> str:
        return f"QueuedLogger({self.module_name!r})"


def get_module_logger(module_name: str, queue: Optional[LogQueue] = None) -> QueuedLogger:
    """Get a queued logger for a specific module."""
    return QueuedLogger(module_name, queue)


def get_application_logger(queue: Optional[LogQueue] = None) -> QueuedLogger:
    """Get the application-wide queued logger."""
    return QueuedLogger("Application", queue)
