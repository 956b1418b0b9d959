"""
Level name resolution.

Level names arrive as free-form strings and are never rejected:
- for filtering, an unknown name resolves to NOTSET (nothing is filtered);
- for emission, an unknown name is sent at INFO severity under its own label.
"""

from __future__ import annotations

import logging

LEVEL_NUMBERS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Levels forwarded to the notification callback under their own name.
# Everything else, including "info", is reported as "log".
CALLBACK_LEVELS = frozenset({"error", "warn", "debug"})
CALLBACK_DEFAULT_LEVEL = "log"


def filter_level(name: object) -> int:
    """Minimum level for the filtering bound logger."""
    return LEVEL_NUMBERS.get(str(name).lower(), logging.NOTSET)


def emit_level(name: object) -> int:
    """Numeric severity a record is emitted at."""
    return LEVEL_NUMBERS.get(str(name).lower(), logging.INFO)


def callback_level(name: str) -> str:
    return name if name in CALLBACK_LEVELS else CALLBACK_DEFAULT_LEVEL
