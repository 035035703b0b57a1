"""
Ordered Log Queue

Central FIFO that serializes log lines from every producer (request handlers,
scraping workers, exception hooks) into a single ordered stream.

Producers only append under a short-lived lock; one background drain worker
takes records in enqueue order, appends each line to the sink and mirrors it
to the console. The shared log file is therefore written by exactly one
thread and lines from concurrent producers never interleave.
"""

import asyncio
import os
import threading
from collections import deque
from pathlib import Path
from typing import Deque, Optional, Union

from imagescraper.exceptions import LogSinkError
from imagescraper.infrastructure.logging.config import get_logger
from imagescraper.infrastructure.logging.console import get_console_logger
from imagescraper.infrastructure.logging.records import LogRecord

logger = get_logger(__name__)

DEFAULT_FLUSH_TIMEOUT_MS = 5000
DEFAULT_BACKLOG_WARNING_THRESHOLD = 10000


class FileSink:
    """
    Append-mode file sink.

    The file is opened per line so that a log file removed or rotated by an
    operator is recreated on the next write.
    """

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = str(path)
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def write_line(self, line: str) -> None:
        """
        Append one newline-terminated line.

        Raises:
            LogSinkError: If the line could not be written
        """
        try:
            with open(self.path, "a", encoding="utf-8", errors="backslashreplace") as handle:
                handle.write(line + "\n")
        except OSError as e:
            raise LogSinkError(f"Failed to write to log file: {e}", path=self.path) from e

    def __repr__(self) -> str:
        return f"FileSink({self.path!r})"


class LogQueue:
    """
    Process-wide ordered log buffer with a single drain worker.

    Invariants:
    - records reach the sink in exact enqueue order across all producers
    - ``queue_size`` counts records enqueued but not yet written, including
      the one currently being written
    - ``is_processing()`` is true only while a write is in flight

    Attributes:
        file_path: Path of the shared log file, if any
        sink: Destination for formatted lines, or None for console only
        console_output: Whether lines are mirrored to the console logger
        backlog_warning_threshold: Backlog size that triggers a warning
    """

    def __init__(
        self,
        file_path: Optional[Union[str, os.PathLike]] = None,
        sink=None,
        console_output: bool = True,
        backlog_warning_threshold: int = DEFAULT_BACKLOG_WARNING_THRESHOLD,
    ):
        """
        Initialize the queue.

        Args:
            file_path: Shared log file; wrapped in a FileSink
            sink: Custom sink exposing ``write_line(line)``; overrides file_path
            console_output: Mirror lines to the console logger
            backlog_warning_threshold: Warn once when this many records are pending
        """
        if sink is None and file_path is not None:
            sink = FileSink(file_path)
        self.sink = sink
        self.file_path = str(file_path) if file_path is not None else getattr(sink, "path", None)
        self.console_output = console_output
        self.backlog_warning_threshold = backlog_warning_threshold

        self._records: Deque[LogRecord] = deque()
        self._condition = threading.Condition(threading.Lock())
        self._processing = False
        self._stopping = False
        self._worker: Optional[threading.Thread] = None
        self._worker_active = False
        self._backlog_warned = False

        self.records_written = 0
        self.write_failures = 0

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, record: LogRecord) -> None:
        """
        Append a record to the tail of the queue.

        Never blocks on I/O, never raises and never drops the record.
        """
        with self._condition:
            self._records.append(record)
            self._ensure_worker()
            self._condition.notify_all()

    @property
    def queue_size(self) -> int:
        return len(self._records)

    def get_queue_size(self) -> int:
        """Number of records enqueued but not yet written."""
        return len(self._records)

    def is_processing(self) -> bool:
        """True while the drain worker is writing a record."""
        return self._processing

    def is_running(self) -> bool:
        """True while a drain worker is alive for this queue."""
        return self._worker_active

    def set_console_output(self, enabled: bool) -> None:
        self.console_output = enabled

    def attach_file(self, file_path: Union[str, os.PathLike]) -> None:
        """
        Bind a file sink to a queue created without one.

        Records still pending are written to the new file.
        """
        sink = FileSink(file_path)
        with self._condition:
            self.sink = sink
            self.file_path = sink.path

    # ------------------------------------------------------------------
    # Drain worker
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the drain worker. No-op while one is already running."""
        with self._condition:
            self._ensure_worker()

    def _ensure_worker(self) -> None:
        # Caller holds the condition lock.
        self._stopping = False
        if self._worker_active:
            return
        self._worker_active = True
        self._worker = threading.Thread(
            target=self._drain_loop,
            name="log-queue-drain",
            daemon=True,
        )
        self._worker.start()

    def _drain_loop(self) -> None:
        while True:
            with self._condition:
                while not self._records and not self._stopping:
                    self._condition.wait()
                if not self._records:
                    self._worker_active = False
                    self._condition.notify_all()
                    return
                record = self._records[0]
                backlog = len(self._records)
                self._processing = True

            try:
                self._check_backlog(backlog)
                self._write(record)
            except Exception as e:
                logger.error("Unexpected error in log drain worker", error=str(e), error_type=type(e).__name__)
            finally:
                with self._condition:
                    self._records.popleft()
                    self._processing = False
                    self._condition.notify_all()

    def _write(self, record: LogRecord) -> None:
        try:
            line = record.format_line()
        except Exception as e:
            self.write_failures += 1
            logger.error("Failed to format log record", module_name=record.module_name, error=str(e))
            return

        if self.sink is not None:
            try:
                self.sink.write_line(line)
                self.records_written += 1
            except Exception as e:
                # One bad write never halts the pipeline.
                self.write_failures += 1
                logger.error(
                    "Failed to write log record",
                    sink=repr(self.sink),
                    module_name=record.module_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        if self.console_output:
            try:
                get_console_logger().log(record.level.stdlib_level, line)
            except Exception as e:
                logger.error("Failed to mirror log record to console", error=str(e))

    def _check_backlog(self, backlog: int) -> None:
        if backlog >= self.backlog_warning_threshold and not self._backlog_warned:
            self._backlog_warned = True
            logger.warning(
                "Log queue backlog is high",
                pending=backlog,
                threshold=self.backlog_warning_threshold,
            )
        elif self._backlog_warned and backlog < self.backlog_warning_threshold // 2:
            self._backlog_warned = False

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def flush(self, timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS) -> bool:
        """
        Block until the queue is fully drained or the timeout elapses.

        Args:
            timeout_ms: Maximum wait in milliseconds

        Returns:
            True if every record was written, False on timeout. A timeout
            also emits a durability warning; callers must tolerate some
            records remaining unwritten.
        """
        with self._condition:
            drained = self._condition.wait_for(
                lambda: not self._records and not self._processing,
                timeout=max(timeout_ms, 0) / 1000.0,
            )
            pending = len(self._records)

        if not drained:
            logger.warning(
                "Flush timeout - some logs may not have been written",
                timeout_ms=timeout_ms,
                pending=pending,
            )
        return drained

    async def aflush(self, timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS) -> bool:
        """Awaitable flush for asyncio shutdown hooks."""
        return await asyncio.to_thread(self.flush, timeout_ms)

    def stop(self, timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS) -> bool:
        """
        Drain the queue and stop the worker.

        Records enqueued afterwards restart the worker.

        Returns:
            True if the queue was fully drained before stopping
        """
        drained = self.flush(timeout_ms)
        with self._condition:
            worker = self._worker
            self._stopping = True
            self._condition.notify_all()
        if worker is not None and drained:
            worker.join(timeout=max(timeout_ms, 0) / 1000.0)
        return drained

    def __repr__(self) -> str:
        return (
            f"LogQueue(file_path={self.file_path!r}, pending={self.get_queue_size()}, "
            f"processing={self.is_processing()})"
        )


# Process-wide queue instance
_log_queue: Optional[LogQueue] = None
_log_queue_lock = threading.Lock()


def initialize_log_queue(
    file_path: Optional[Union[str, os.PathLike]] = None,
    console_output: bool = True,
    backlog_warning_threshold: int = DEFAULT_BACKLOG_WARNING_THRESHOLD,
) -> LogQueue:
    """
    Create or reuse the process-wide log queue.

    Idempotent: a second call returns the existing instance without starting
    another worker or discarding buffered records. If the existing queue has
    no file yet, ``file_path`` is attached to it. ``console_output`` and
    ``backlog_warning_threshold`` are applied to the existing queue.

    Args:
        file_path: Shared log file path
        console_output: Mirror lines to the console
        backlog_warning_threshold: Backlog size that triggers a warning

    Returns:
        The process-wide LogQueue
    """
    global _log_queue
    with _log_queue_lock:
        if _log_queue is None:
            _log_queue = LogQueue(
                file_path=file_path,
                console_output=console_output,
                backlog_warning_threshold=backlog_warning_threshold,
            )
            _log_queue.start()
            logger.info("Queue-based logging initialized", log_file=_log_queue.file_path)
            return _log_queue

        # The latest explicit options win, including over a console-only queue
        # created implicitly by get_log_queue().
        _log_queue.set_console_output(console_output)
        _log_queue.backlog_warning_threshold = backlog_warning_threshold

        if file_path is not None:
            if _log_queue.file_path is None:
                _log_queue.attach_file(file_path)
                logger.info("Log file attached to existing queue", log_file=_log_queue.file_path)
            elif os.path.abspath(str(file_path)) != os.path.abspath(_log_queue.file_path):
                logger.warning(
                    "Log queue already initialized with a different file; keeping existing",
                    requested=str(file_path),
                    existing=_log_queue.file_path,
                )
        return _log_queue


def get_log_queue() -> LogQueue:
    """
    Get the process-wide log queue.

    Creates a console-only queue if initialize_log_queue() was never called.
    """
    global _log_queue
    if _log_queue is None:
        with _log_queue_lock:
            if _log_queue is None:
                _log_queue = LogQueue()
    return _log_queue


def reset_log_queue(timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS) -> None:
    """
    Stop and forget the process-wide queue.

    Primarily used for testing to ensure clean state between test runs.
    """
    global _log_queue
    with _log_queue_lock:
        queue, _log_queue = _log_queue, None
    if queue is not None:
        queue.stop(timeout_ms)
