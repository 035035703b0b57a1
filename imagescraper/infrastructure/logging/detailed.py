"""
Detailed Logger

Structured logging layer for extraction and scraping code, built on top of
the queued logger:

- Level gate applied before any serialization or enqueueing
- Cycle-safe context serialization
- Optional private debug file per logger, written synchronously
- CRITICAL events mirrored immediately to the alerts channel
- Step and checkpoint timing with a deterministic performance summary
- Helpers for method attempts, waits, canvas state and extraction summaries
"""

import threading
import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from imagescraper.infrastructure.logging.config import get_logger
from imagescraper.infrastructure.logging.queue import LogQueue
from imagescraper.infrastructure.logging.queued import QueuedLogger
from imagescraper.infrastructure.logging.records import LogRecord, Severity, format_timestamp, utc_now
from imagescraper.infrastructure.logging.serialization import safe_serialize

logger = get_logger(__name__)
alert_logger = get_logger("imagescraper.alerts")

LevelLike = Union[Severity, int, str]


@dataclass
class PerformanceMetrics:
    """
    Timing state of one DetailedLogger.

    Attributes:
        start_time: Clock reading at construction or last reset (seconds)
        checkpoints: Name -> clock reading of the last occurrence, in first-seen order
        totals: Step name -> cumulative elapsed milliseconds
    """
    start_time: float
    checkpoints: Dict[str, float] = field(default_factory=dict)
    totals: Dict[str, int] = field(default_factory=dict)


@dataclass
class CanvasState:
    """Canvas lookup result reported by the extraction engine."""
    found: bool
    width: Optional[int] = None
    height: Optional[int] = None
    selector: Optional[str] = None
    shadow_root: Optional[bool] = None
    location: Optional[str] = None


@dataclass
class ExtractionSummary:
    """Outcome of one image extraction."""
    image_id: str
    success: bool
    total_time: int
    method: Optional[str] = None
    data_size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    attempts: Optional[int] = None


class DetailedLogger:
    """
    Structured logger with filtering, safe context and timing instrumentation.

    Attributes:
        module_name: Module tag for every record
        log_level: Records below this severity are dropped
        debug_file: Optional private debug file path
        metrics: Timing state
    """

    def __init__(
        self,
        module_name: str,
        log_level: LevelLike = Severity.INFO,
        debug_file: Optional[Union[str, Path]] = None,
        queue: Optional[LogQueue] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            module_name: Module tag for emitted records
            log_level: Minimum severity that is logged
            debug_file: Private debug file receiving every emitted line
            queue: Shared queue; None uses the process-wide queue
            clock: Monotonic clock in seconds, injectable for tests
        """
        self.module_name = module_name
        self.queued_logger = QueuedLogger(module_name, queue)
        self.log_level = Severity.parse(log_level)
        self._clock = clock
        self._metrics_lock = threading.RLock()
        self._debug_file_lock = threading.Lock()
        self.metrics = PerformanceMetrics(start_time=self._clock())
        self.debug_file = str(debug_file) if debug_file else None

        if self.debug_file:
            self._ensure_debug_file(self.debug_file)

    # ------------------------------------------------------------------
    # Private debug file
    # ------------------------------------------------------------------

    def _ensure_debug_file(self, path: str) -> None:
        try:
            debug_path = Path(path)
            debug_path.parent.mkdir(parents=True, exist_ok=True)
            if not debug_path.exists():
                debug_path.write_text(
                    f"=== Detailed Debug Log Started: {format_timestamp(utc_now())} ===\n\n",
                    encoding="utf-8",
                )
        except OSError as e:
            logger.error("Failed to prepare debug file", debug_file=path, error=str(e))

    def _write_to_debug_file(self, line: str) -> None:
        # Caller holds _debug_file_lock.
        if not self.debug_file:
            return
        try:
            with open(self.debug_file, "a", encoding="utf-8", errors="backslashreplace") as handle:
                handle.write(line + "\n")
        except OSError as e:
            logger.error("Failed to write to debug file", debug_file=self.debug_file, error=str(e))

    # ------------------------------------------------------------------
    # Core logging
    # ------------------------------------------------------------------

    def is_enabled_for(self, level: LevelLike) -> bool:
        return Severity.parse(level) >= self.log_level

    def log(self, level: LevelLike, message: str, context: Any = None) -> None:
        """
        Emit a record if ``level`` passes the level gate.

        Never raises: context serialization degrades to markers and sink
        failures are absorbed downstream.
        """
        severity = Severity.parse(level)
        if severity < self.log_level:
            return

        entry = LogRecord(
            level=severity,
            module_name=self.module_name,
            message=str(message),
            context=safe_serialize(context) if context is not None else None,
            timestamp=utc_now(),
        )
        line = entry.format_line()

        # Debug file and shared queue see this logger's records in the same order.
        with self._debug_file_lock:
            self._write_to_debug_file(line)
            self.queued_logger.enqueue_record(entry)

        if severity is Severity.CRITICAL:
            alert_logger.critical("CRITICAL log event", module_name=self.module_name, line=line)

    def debug(self, message: str, context: Any = None) -> None:
        """DEBUG level - detailed step-by-step information."""
        self.log(Severity.DEBUG, message, context)

    def info(self, message: str, context: Any = None) -> None:
        self.log(Severity.INFO, message, context)

    def warn(self, message: str, context: Any = None) -> None:
        self.log(Severity.WARN, message, context)

    warning = warn

    def error(self, message: str, context: Any = None) -> None:
        self.log(Severity.ERROR, message, context)

    def critical(self, message: str, context: Any = None) -> None:
        """CRITICAL level - also mirrored synchronously to the alerts channel."""
        self.log(Severity.CRITICAL, message, context)

    def set_log_level(self, level: LevelLike) -> None:
        self.log_level = Severity.parse(level)
        self.info(f"Log level changed to: {self.log_level.label}")

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def _elapsed_ms(self, since: float) -> int:
        return int(round((self._clock() - since) * 1000))

    def step_start(self, step: str, context: Any = None) -> None:
        """Log the start of a step and remember when it began."""
        self.info(f"Starting step: {step}", _merge(context, step=step))
        with self._metrics_lock:
            self.metrics.checkpoints[step] = self._clock()

    def step_complete(self, step: str, success: bool = True, context: Any = None) -> int:
        """
        Log the end of a step and add its duration to the step's running total.

        A step completed without a matching start counts as 0ms.

        Returns:
            Elapsed milliseconds for this run of the step
        """
        with self._metrics_lock:
            started = self.metrics.checkpoints.get(step)
            elapsed = self._elapsed_ms(started) if started is not None else 0
            self.metrics.totals[step] = self.metrics.totals.get(step, 0) + elapsed

        outcome = "completed" if success else "failed"
        self.info(
            f"Step {outcome}: {step} ({elapsed}ms)",
            _merge(context, step=step, elapsed=elapsed, success=success),
        )
        return elapsed

    def checkpoint(self, name: str, context: Any = None) -> int:
        """
        Record a named time sample relative to construction.

        Returns:
            Milliseconds elapsed since construction (or the last reset)
        """
        with self._metrics_lock:
            elapsed = self._elapsed_ms(self.metrics.start_time)
            self.metrics.checkpoints[name] = self._clock()
        self.debug(
            f"Checkpoint: {name} (total elapsed: {elapsed}ms)",
            _merge(context, checkpoint=name, totalElapsed=elapsed),
        )
        return elapsed

    def get_performance_summary(self) -> str:
        """Render total, per-step and per-checkpoint timings as text."""
        with self._metrics_lock:
            start = self.metrics.start_time
            lines = [
                f"=== Performance Summary for {self.module_name} ===",
                f"Total elapsed time: {self._elapsed_ms(start)}ms",
                "",
                "Step timings:",
            ]
            for step, total in self.metrics.totals.items():
                lines.append(f"  {step}: {total}ms")

            lines.append("")
            lines.append("Checkpoints:")
            for name, reading in self.metrics.checkpoints.items():
                offset = int(round((reading - start) * 1000))
                lines.append(f"  {name}: +{offset}ms from start")

        return "\n".join(lines)

    def reset_metrics(self) -> None:
        """Clear all timing state. The shared queue is left untouched."""
        with self._metrics_lock:
            self.metrics = PerformanceMetrics(start_time=self._clock())

    # ------------------------------------------------------------------
    # Structured helpers
    # ------------------------------------------------------------------

    def log_wait(self, reason: str, duration_ms: int, context: Any = None) -> None:
        self.debug(
            f"Waiting {duration_ms}ms for: {reason}",
            _merge(context, waitReason=reason, durationMs=duration_ms),
        )

    def log_method_attempt(self, method: str, attempt: int, total: int, context: Any = None) -> None:
        self.info(
            f"Attempting method: {method} ({attempt}/{total})",
            _merge(context, method=method, attempt=attempt, totalAttempts=total),
        )

    def log_method_result(
        self,
        method: str,
        success: bool,
        error: Optional[str] = None,
        context: Any = None,
    ) -> None:
        method_context = _merge(context, method=method, success=success, error=error)
        if success:
            self.info(f"Method succeeded: {method}", method_context)
        else:
            self.warn(f"Method failed: {method} - {error}", method_context)

    def log_canvas_state(self, state: Union[CanvasState, Mapping], context: Any = None) -> None:
        """Log a canvas lookup: DEBUG when found, WARN when missing."""
        canvas = _coerce(CanvasState, state)
        canvas_context = _merge(context, canvas=canvas)
        if canvas.found:
            self.debug(
                f"Canvas found: {canvas.width}x{canvas.height} via {canvas.selector} "
                f"(shadow: {canvas.shadow_root}, location: {canvas.location})",
                canvas_context,
            )
        else:
            self.warn(f"Canvas not found with selector: {canvas.selector}", canvas_context)

    def log_dimension_change(self, before: Mapping, after: Mapping, context: Any = None) -> None:
        self.debug(
            f"Dimension change: {before.get('width')}x{before.get('height')} -> "
            f"{after.get('width')}x{after.get('height')}",
            _merge(context, before=dict(before), after=dict(after)),
        )

    def log_extraction_summary(self, summary: Union[ExtractionSummary, Mapping]) -> None:
        result = _coerce(ExtractionSummary, summary)
        self.info(
            f"Extraction summary for {result.image_id}: "
            f"{'SUCCESS' if result.success else 'FAILED'} "
            f"(method: {result.method or 'N/A'}, time: {result.total_time}ms, "
            f"size: {result.data_size or 0} bytes, dims: {result.width or 0}x{result.height or 0}, "
            f"attempts: {result.attempts or 0})",
            {"summary": asdict(result)},
        )

    def __repr__(self) -> str:
        return f"DetailedLogger({self.module_name!r}, level={self.log_level.label})"


def _merge(context: Any, **extra) -> Dict[str, Any]:
    if context is None:
        return dict(extra)
    if isinstance(context, Mapping):
        return {**context, **extra}
    if is_dataclass(context) and not isinstance(context, type):
        return {**{f.name: getattr(context, f.name) for f in fields(context)}, **extra}
    return {"context": context, **extra}


def _coerce(model, value):
    if isinstance(value, model):
        return value
    known = {f.name for f in fields(model)}
    return model(**{key: item for key, item in dict(value).items() if key in known})


_default_log_level = Severity.INFO


def set_default_log_level(level: LevelLike) -> None:
    """Set the level used by create_detailed_logger() when none is given."""
    global _default_log_level
    _default_log_level = Severity.parse(level)


def create_detailed_logger(
    module_name: str,
    log_level: Optional[LevelLike] = None,
    debug_file: Optional[Union[str, Path]] = None,
    queue: Optional[LogQueue] = None,
) -> DetailedLogger:
    """Create a detailed logger instance."""
    if log_level is None:
        log_level = _default_log_level
    return DetailedLogger(module_name, log_level=log_level, debug_file=debug_file, queue=queue)


# Standard module loggers: name -> (level, debug file name)
STANDARD_LOGGERS = {
    "Extraction": (Severity.DEBUG, "extraction-debug.log"),
    "Canvas": (Severity.DEBUG, "canvas-debug.log"),
    "Metadata": (Severity.DEBUG, "metadata-debug.log"),
    "Scraper": (Severity.INFO, "scraper-debug.log"),
}


def create_standard_loggers(
    log_dir: Optional[Union[str, Path]] = "logs",
    queue: Optional[LogQueue] = None,
) -> Dict[str, DetailedLogger]:
    """
    Build the standard Extraction/Canvas/Metadata/Scraper loggers.

    Args:
        log_dir: Directory for the private debug files; None disables them
        queue: Shared queue; None uses the process-wide queue

    Returns:
        Mapping of module name to DetailedLogger
    """
    loggers = {}
    for name, (level, file_name) in STANDARD_LOGGERS.items():
        debug_file = Path(log_dir) / file_name if log_dir is not None else None
        loggers[name] = create_detailed_logger(name, log_level=level, debug_file=debug_file, queue=queue)
    return loggers
