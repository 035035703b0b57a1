"""
Cycle-safe serialization of log context values.

Context payloads come from scraping code and can be anything: nested dicts
with back references, callbacks, exceptions, dataclasses. ``safe_serialize``
turns any of them into compact JSON text and never raises.

Values are encoded by kind:

- primitives (None, bool, int, float, str)
- callables, rendered as ``[Function: name]``
- exceptions, rendered as ``{"name", "message", "stack"}``
- composites (mappings, sequences, sets, dataclasses, plain objects)

Every composite is remembered on first descent; meeting it again anywhere in
the same value renders ``[Circular]``, so cyclic graphs always terminate.
"""

import dataclasses
import json
import math
import traceback
from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum
from pathlib import PurePath
from typing import Any, Set

CIRCULAR_MARKER = "[Circular]"
UNSERIALIZABLE_MARKER = "[Unserializable]"

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def safe_serialize(value: Any) -> str:
    """
    Serialize a context value to compact JSON text.

    Args:
        value: Any Python object

    Returns:
        JSON text, or ``[Unserializable]`` if encoding failed for any reason
    """
    try:
        return json.dumps(_encode(value, set()), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except Exception:
        return UNSERIALIZABLE_MARKER


def _encode(value: Any, seen: Set[int]) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        if isinstance(value, Enum):
            return _encode(value.value, seen)
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Enum):
        return _encode(value.value, seen)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"[Bytes: {len(value)}]"
    if isinstance(value, BaseException):
        return _encode_error(value)
    if isinstance(value, type) or (callable(value) and not _is_composite(value)):
        return f"[Function: {getattr(value, '__name__', None) or 'anonymous'}]"

    if not _is_composite(value):
        return repr(value)

    if id(value) in seen:
        return CIRCULAR_MARKER
    seen.add(id(value))

    if isinstance(value, Mapping):
        return {str(key): _encode(item, seen) for key, item in value.items()}
    if isinstance(value, _SEQUENCE_TYPES):
        return [_encode(item, seen) for item in value]
    if dataclasses.is_dataclass(value):
        return {f.name: _encode(getattr(value, f.name), seen) for f in dataclasses.fields(value)}
    return {str(key): _encode(item, seen) for key, item in vars(value).items()}


def _is_composite(value: Any) -> bool:
    if isinstance(value, (Mapping,) + _SEQUENCE_TYPES):
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    return hasattr(value, "__dict__") and not callable(value)


def _encode_error(error: BaseException) -> dict:
    if error.__traceback__ is not None:
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip()
    else:
        stack = f"{type(error).__name__}: {error}"
    return {
        "name": type(error).__name__,
        "message": str(error),
        "stack": stack,
    }
