"""
Record formatters and color utilities.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson
from structlog.typing import EventDict

# =============================================================================
# JSON Serialization
# =============================================================================

_BASE_OPTIONS = orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS


def orjson_dumps(v: Any, *, default: Any = str, indent: bool = False) -> str:
    """Fast JSON serialization using orjson."""
    option = _BASE_OPTIONS | orjson.OPT_INDENT_2 if indent else _BASE_OPTIONS
    return orjson.dumps(v, default=default, option=option).decode()


class JsonRecordFormatter:
    """Renders a record as one JSON document.

    Args:
        pretty_print: indent with 2 spaces instead of the compact form
    """

    def __init__(self, pretty_print: bool = False):
        self.pretty_print = pretty_print

    def format(self, event_dict: EventDict) -> str:
        try:
            return orjson_dumps(event_dict, indent=self.pretty_print)
        except orjson.JSONEncodeError:
            # e.g. integers beyond 64 bits, which `default` never sees
            safe = {safe_str(k): _coerce(v) for k, v in event_dict.items()}
            return orjson_dumps(safe, indent=self.pretty_print)

    def format_as_strings(self, event_dict: EventDict) -> str:
        """Last-resort rendering: every value flattened to a string."""
        return orjson_dumps({safe_str(k): safe_str(v) for k, v in event_dict.items()}, indent=self.pretty_print)


def safe_str(v: Any) -> str:
    """``str(v)``, or a placeholder naming the type when ``__str__`` raises."""
    try:
        return str(v)
    except Exception:
        return f"<unrepresentable {type(v).__name__}>"


def _coerce(v: Any) -> Any:
    if isinstance(v, (str, float, bool, type(None))):
        return v
    if isinstance(v, int):
        return v if -(2**63) <= v < 2**64 else str(v)
    if isinstance(v, (list, tuple)):
        return [_coerce(i) for i in v]
    if isinstance(v, dict):
        return {safe_str(k): _coerce(val) for k, val in v.items()}
    return safe_str(v)


# =============================================================================
# Console Formatter (Aligned Columns)
# =============================================================================

COLORS = {
    "reset": "\033[0m",
    "dim": "\033[2m",
    "timestamp": "\033[90m",
    "service": "\033[35m",
    "key": "\033[34m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


class ConsoleFormatter:
    """Human-readable console rendering (fixed width, right-aligned columns).

    Format: timestamp | LEVEL | serviceName | message key=value ...
    """

    _RESET = "\x1b[0m"
    _LEVEL_COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARN": "\x1b[33m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[1;31m",
    }

    EXCLUDED_KEYS = {"level", "message", "serviceName", "timestamp", "stack"}
    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
    TIMESTAMP_WIDTH = 19
    LEVEL_WIDTH = 5
    SERVICE_WIDTH = 16
    SEPARATOR = " | "

    @staticmethod
    def _fit_right(text: str, width: int) -> str:
        if width <= 0:
            return text
        if len(text) > width:
            if width <= 3:
                text = text[-width:]
            else:
                text = "..." + text[-(width - 3) :]
        return f"{text:>{width}}"

    @classmethod
    def _format_timestamp(cls, raw_timestamp: str | None) -> str:
        if raw_timestamp:
            try:
                normalized = raw_timestamp.replace("Z", "+00:00")
                dt = datetime.fromisoformat(normalized)
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return dt.astimezone().strftime(cls.TIMESTAMP_FORMAT)
            except (ValueError, TypeError):
                pass
        return datetime.now().strftime(cls.TIMESTAMP_FORMAT)

    @classmethod
    def _colorize_level(cls, text: str, level_upper: str, use_color: bool) -> str:
        if not use_color:
            return text
        color = cls._LEVEL_COLORS.get(level_upper)
        if not color:
            return text
        return f"{color}{text}{cls._RESET}"

    @staticmethod
    def _maybe_color(text: str, color: str, use_color: bool) -> str:
        if not use_color:
            return text
        return colorize(text, color)

    @classmethod
    def format(cls, event_dict: EventDict, *, use_color: bool = True) -> str:
        """Format a record into an aligned line, followed by its stack if any."""
        level_upper = str(event_dict.get("level", "INFO")).upper()
        message_text = safe_str(event_dict.get("message", ""))
        service = str(event_dict.get("serviceName", ""))
        timestamp = cls._format_timestamp(event_dict.get("timestamp"))

        extras = []
        for k, v in event_dict.items():
            if k not in cls.EXCLUDED_KEYS:
                key_colored = cls._maybe_color(k, "key", use_color)
                value_colored = cls._maybe_color(safe_str(v), "dim", use_color)
                extras.append(f"{key_colored}={value_colored}")
        if extras:
            message_text = f"{message_text} " + " ".join(extras)

        line = "".join(
            [
                cls._maybe_color(cls._fit_right(timestamp, cls.TIMESTAMP_WIDTH), "timestamp", use_color),
                cls.SEPARATOR,
                cls._colorize_level(cls._fit_right(level_upper, cls.LEVEL_WIDTH), level_upper, use_color),
                cls.SEPARATOR,
                cls._maybe_color(cls._fit_right(service, cls.SERVICE_WIDTH), "service", use_color),
                cls.SEPARATOR,
                message_text,
            ]
        )

        stack = event_dict.get("stack")
        if stack:
            line = f"{line}\n{stack}"
        return line
