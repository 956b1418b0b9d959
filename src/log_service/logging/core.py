"""
Structlog pipeline construction.

Each LogService owns its own pipeline built with ``structlog.wrap_logger``,
so the host application's global structlog configuration is left alone.
"""

from __future__ import annotations

from typing import Any, Sequence

import structlog
from structlog.typing import EventDict, FilteringBoundLogger, Processor, WrappedLogger

from .formatters import JsonRecordFormatter
from .levels import filter_level
from .processors import (
    add_level_label,
    add_stack_trace,
    add_timestamp,
    drop_event,
    order_record_fields,
    rename_event_key,
)
from .sinks import BaseSink


class MultiSinkRenderer:
    """Render a record once and hand it to every sink. Returns empty to suppress default output."""

    def __init__(self, sinks: Sequence[BaseSink], formatter: JsonRecordFormatter):
        self._sinks = tuple(sinks)
        self._formatter = formatter

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        try:
            rendered = self._formatter.format(event_dict)
        except Exception:
            rendered = self._formatter.format_as_strings(event_dict)
        for sink in self._sinks:
            try:
                sink.emit(event_dict, rendered)
            except Exception:
                pass  # Fail silently to avoid breaking the application
        return ""


# Custom logger target that discards the (empty) renderer output
class NopFile:
    def write(self, s: str) -> None:
        pass

    def flush(self) -> None:
        pass


_NOP_FILE = NopFile()


def build_processors(
    sinks: Sequence[BaseSink],
    *,
    pretty_print: bool = False,
    silent: bool = False,
) -> list[Processor]:
    """Processor chain ending in the multi-sink renderer."""
    processors: list[Processor] = [drop_event] if silent else []
    processors += [
        add_timestamp,
        add_stack_trace,
        add_level_label,
        rename_event_key,
        order_record_fields,
        MultiSinkRenderer(sinks, JsonRecordFormatter(pretty_print=pretty_print)),
    ]
    return processors


def build_logger(
    sinks: Sequence[BaseSink],
    *,
    level: str = "info",
    pretty_print: bool = False,
    silent: bool = False,
    **initial_values: Any,
) -> FilteringBoundLogger:
    """
    Build a bound logger writing to ``sinks``.

    Args:
        sinks: destinations for rendered records
        level: minimum level name; unknown names disable filtering
        pretty_print: indent JSON with 2 spaces
        silent: drop every record
        **initial_values: context bound into every record (e.g. serviceName)
    """
    return structlog.wrap_logger(
        structlog.PrintLogger(file=_NOP_FILE),
        processors=build_processors(sinks, pretty_print=pretty_print, silent=silent),
        wrapper_class=structlog.make_filtering_bound_logger(filter_level(level)),
        context_class=dict,
        cache_logger_on_first_use=False,
    ).bind(**initial_values)
