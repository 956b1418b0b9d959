"""
Structlog processors that shape the outgoing record.

Final record layout:
    timestamp, level, message, serviceName, [stack], <meta...>, [context]
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime, timezone
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from .formatters import safe_str

# Key used to carry the caller's level label through the pipeline.
LEVEL_LABEL_KEY = "_level"

STANDARD_FIELDS = ("timestamp", "level", "message", "serviceName", "stack")


def drop_event(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Discard every event. Installed at the head of the pipeline when silenced."""
    raise structlog.DropEvent


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 UTC timestamp to log event."""
    now = datetime.now(timezone.utc)
    event_dict["timestamp"] = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return event_dict


def add_level_label(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Uppercased level as the caller named it ("warn" -> "WARN")."""
    label = event_dict.pop(LEVEL_LABEL_KEY, None) or method_name
    event_dict["level"] = str(label).upper()
    return event_dict


def add_stack_trace(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Render exceptions into a ``stack`` field.

    Handles both ``exc_info`` and an exception passed as the message itself.
    """
    exc_info = event_dict.pop("exc_info", None)
    event = event_dict.get("event")
    if isinstance(event, BaseException):
        event_dict["event"] = safe_str(event)
        if not exc_info:
            exc_info = event

    stack = format_stack(exc_info)
    if stack:
        event_dict["stack"] = stack
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def order_record_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Put the standard fields first; everything else keeps call order."""
    record: EventDict = {key: event_dict[key] for key in STANDARD_FIELDS if key in event_dict}
    for key, value in event_dict.items():
        if key not in record:
            record[key] = value
    return record


def format_stack(exc_info: Any) -> str | None:
    """Format ``exc_info`` (True, an exception or a sys.exc_info() tuple)."""
    if not exc_info:
        return None
    if exc_info is True:
        exc_info = sys.exc_info()
    elif isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

    if not isinstance(exc_info, tuple) or exc_info[0] is None:
        return None
    return "".join(traceback.format_exception(*exc_info)).rstrip("\n")
