"""
Log record model and canonical line format.

Every line written to the shared log file or to a private debug file has the
form::

    [<ISO-8601 timestamp>] [<LEVEL>] [<module>] <message>[ | <context>]
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Union


class Severity(IntEnum):
    """Ordered log severities."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name

    @property
    def stdlib_level(self) -> int:
        """Matching stdlib logging level, used for console mirroring."""
        return _STDLIB_LEVELS[self]

    @classmethod
    def parse(cls, value: Union["Severity", int, str]) -> "Severity":
        """
        Resolve a severity from a member, an ordinal or a name.

        Names are case-insensitive and ``WARNING`` is accepted for ``WARN``.

        Raises:
            ValueError: If the value names no severity
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARNING":
                name = "WARN"
            try:
                return cls[name]
            except KeyError:
                raise ValueError(f"Unknown log level: {value!r}") from None
        return cls(int(value))


_STDLIB_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.CRITICAL: logging.CRITICAL,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(timestamp: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    else:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogRecord:
    """
    One immutable leveled log event.

    Attributes:
        level: Severity of the event
        module_name: Producer module the event is tagged with
        message: Human readable message
        context: Already serialized context, or None when none was supplied
        timestamp: Creation time (UTC)
    """
    level: Severity
    module_name: str
    message: str
    context: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)

    def format_line(self) -> str:
        """Render the canonical line, without the trailing newline."""
        line = (
            f"[{format_timestamp(self.timestamp)}] [{self.level.label}] "
            f"[{_single_line(self.module_name)}] {_single_line(self.message)}"
        )
        if self.context is not None:
            line = f"{line} | {_single_line(self.context)}"
        return line


def _single_line(text: str) -> str:
    # One record is always exactly one line in the sink.
    return text.replace("\r", "\\r").replace("\n", "\\n")
