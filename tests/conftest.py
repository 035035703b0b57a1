"""Shared pytest fixtures and configuration for image scraper tests."""

import threading
import time
from typing import List

import pytest

from imagescraper.config.settings import reset_settings
from imagescraper.infrastructure.logging.queue import LogQueue, reset_log_queue


class RecordingSink:
    """In-memory sink keeping every written line."""

    def __init__(self):
        self.lines: List[str] = []
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)


class SlowSink(RecordingSink):
    """Sink that sleeps before every write."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    def write_line(self, line: str) -> None:
        time.sleep(self.delay)
        super().write_line(line)


class StalledSink(RecordingSink):
    """Sink that blocks every write until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def write_line(self, line: str) -> None:
        self.release.wait(timeout=10)
        super().write_line(line)


class FailingSink(RecordingSink):
    """Sink that fails for lines containing a marker."""

    def __init__(self, marker: str = "FAIL"):
        super().__init__()
        self.marker = marker

    def write_line(self, line: str) -> None:
        if self.marker in line:
            raise OSError("No space left on device")
        super().write_line(line)


@pytest.fixture(autouse=True)
def clean_logging_state():
    """Reset process-wide logging and settings singletons around each test."""
    reset_log_queue()
    reset_settings()
    yield
    reset_log_queue()
    reset_settings()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def log_queue(recording_sink):
    """Queue writing to an in-memory sink without console mirroring."""
    queue = LogQueue(sink=recording_sink, console_output=False)
    yield queue
    queue.stop(timeout_ms=2000)


@pytest.fixture
def slow_sink():
    return SlowSink(delay=0.05)


@pytest.fixture
def stalled_sink():
    sink = StalledSink()
    yield sink
    sink.release.set()


@pytest.fixture
def failing_sink():
    return FailingSink()


@pytest.fixture
def make_queue():
    """Factory for console-less queues over a given sink, stopped after the test."""
    queues = []

    def _make(sink, **options):
        options.setdefault("console_output", False)
        queue = LogQueue(sink=sink, **options)
        queues.append(queue)
        return queue

    yield _make
    for queue in queues:
        queue.stop(timeout_ms=2000)


@pytest.fixture
def log_file(tmp_path):
    return tmp_path / "logs" / "app.log"


@pytest.fixture
def file_queue(log_file):
    """Queue writing to a temporary log file without console mirroring."""
    queue = LogQueue(file_path=log_file, console_output=False)
    yield queue
    queue.stop(timeout_ms=2000)
