"""
Test module for imagescraper.infrastructure.logging.queued
"""

import json
import re

from imagescraper.infrastructure.logging.queue import get_log_queue, initialize_log_queue
from imagescraper.infrastructure.logging.queued import QueuedLogger, get_application_logger, get_module_logger
from imagescraper.infrastructure.logging.records import Severity

LINE_PATTERN = re.compile(
    r"^\[(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z)\] \[(DEBUG|INFO|WARN|ERROR|CRITICAL)\] \[([^\]]+)\] (.*)$"
)


class TestQueuedLogger:
    """Test cases for QueuedLogger."""

    def test_level_methods_tag_severity_and_module(self, log_queue, recording_sink):
        logger = QueuedLogger("Scraper", log_queue)

        logger.debug("d")
        logger.info("i")
        logger.warn("w")
        logger.error("e")
        logger.critical("c")
        log_queue.flush(timeout_ms=5000)

        parsed = [LINE_PATTERN.match(line).groups() for line in recording_sink.lines]
        assert [(level, module, message) for _, level, module, message in parsed] == [
            ("DEBUG", "Scraper", "d"),
            ("INFO", "Scraper", "i"),
            ("WARN", "Scraper", "w"),
            ("ERROR", "Scraper", "e"),
            ("CRITICAL", "Scraper", "c"),
        ]

    def test_queued_logger_has_no_level_filter(self, log_queue, recording_sink):
        logger = QueuedLogger("Scraper", log_queue)
        logger.debug("kept")
        log_queue.flush(timeout_ms=5000)
        assert len(recording_sink.lines) == 1

    def test_log_alias_and_warning_alias(self, log_queue, recording_sink):
        logger = QueuedLogger("Scraper", log_queue)
        logger.log("plain")
        logger.warning("careful")
        log_queue.flush(timeout_ms=5000)

        assert "[INFO] [Scraper] plain" in recording_sink.lines[0]
        assert "[WARN] [Scraper] careful" in recording_sink.lines[1]

    def test_context_is_appended_as_json(self, log_queue, recording_sink):
        logger = QueuedLogger("Scraper", log_queue)
        logger.info("Scraping started", {"url": "https://example.com", "count": 3})
        log_queue.flush(timeout_ms=5000)

        line = recording_sink.lines[0]
        message, context = line.split(" | ", 1)
        assert message.endswith("Scraping started")
        assert json.loads(context) == {"url": "https://example.com", "count": 3}

    def test_no_context_has_no_separator(self, log_queue, recording_sink):
        QueuedLogger("Scraper", log_queue).info("bare")
        log_queue.flush(timeout_ms=5000)
        assert " | " not in recording_sink.lines[0]

    def test_record_returns_enqueued_entry(self, log_queue):
        entry = QueuedLogger("Canvas", log_queue).record("warning", "odd size", {"width": 0})
        assert entry.level is Severity.WARN
        assert entry.module_name == "Canvas"
        assert entry.context == '{"width":0}'

    def test_cyclic_context_does_not_raise(self, log_queue, recording_sink):
        context = {"name": "root"}
        context["self"] = context

        QueuedLogger("Scraper", log_queue).info("cycle", context)
        log_queue.flush(timeout_ms=5000)

        assert recording_sink.lines[0].endswith('{"name":"root","self":"[Circular]"}')

    def test_three_producers_write_in_enqueue_order(self, log_queue, recording_sink):
        """Handler, scraper and canvas loggers interleave in exact call order."""
        handler = get_module_logger("Handler", log_queue)
        scraper = get_module_logger("Scraper", log_queue)
        canvas = get_module_logger("Canvas", log_queue)

        handler.info("request received")
        scraper.info("navigating")
        canvas.debug("canvas located")
        scraper.info("image extracted")
        handler.info("response sent")
        log_queue.flush(timeout_ms=5000)

        tails = [line.split("] ", 2)[-1] for line in recording_sink.lines]
        assert tails == [
            "[Handler] request received",
            "[Scraper] navigating",
            "[Canvas] canvas located",
            "[Scraper] image extracted",
            "[Handler] response sent",
        ]


class TestLoggerFactories:
    """Test cases for module logger factories."""

    def test_get_module_logger(self, log_queue):
        logger = get_module_logger("Metadata", log_queue)
        assert isinstance(logger, QueuedLogger)
        assert logger.module_name == "Metadata"
        assert logger.queue is log_queue

    def test_get_application_logger(self, log_queue):
        assert get_application_logger(log_queue).module_name == "Application"

    def test_default_queue_is_process_wide(self, log_file):
        queue = initialize_log_queue(log_file, console_output=False)
        logger = get_module_logger("Scraper")

        assert logger.queue is queue
        assert logger.queue is get_log_queue()

        logger.info("to the shared file")
        assert queue.flush(timeout_ms=5000)
        assert "[Scraper] to the shared file" in log_file.read_text(encoding="utf-8")

    def test_logger_created_before_initialize_uses_initialized_queue(self, log_file):
        logger = get_module_logger("Early")
        queue = initialize_log_queue(log_file, console_output=False)

        logger.info("after init")
        assert queue.flush(timeout_ms=5000)
        assert "[Early] after init" in log_file.read_text(encoding="utf-8")
