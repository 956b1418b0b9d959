"""
LogService: logging facade for a single service.

Attaches the service name to every record, renders records as JSON and ships
them to Logstash, optionally echoing to the console. Record delivery, retries
and child loggers are delegated to python-logstash-async and structlog.

Usage:
    config = LoggerConfiguration(
        service_name="billing",
        logstash_host="logstash.internal",
        logstash_port=5959,
    )
    log = LogService(config)
    log.warn("low balance", {"account": 42})
    log.log_with_context("request-7f3a", "info", "charge accepted")

Nothing here raises into the caller: logging must never break business logic.
"""

from __future__ import annotations

import asyncio
import logging
import pprint
import sys
import threading
import traceback
from typing import Any, Mapping, Optional, Sequence

from structlog.typing import FilteringBoundLogger

from log_service.config import LoggerConfiguration
from log_service.exceptions import SinkConstructionError
from log_service.hooks import UnhandledErrorHooks
from log_service.logging import BaseSink, LogstashSink, StdioSink, build_logger
from log_service.logging.formatters import safe_str
from log_service.logging.levels import callback_level, emit_level
from log_service.logging.processors import LEVEL_LABEL_KEY

# Diagnostics about the facade itself. With no handlers configured by the host,
# these reach stderr through the standard library's last-resort handler.
_diagnostics = logging.getLogger(__name__)

SERVICE_NAME_KEY = "serviceName"

# Meta keys that would shadow the standard record fields.
RESERVED_KEYS = frozenset({"timestamp", "level", "message", "event", "stack", "exc_info", LEVEL_LABEL_KEY})


class LogService:
    """
    Logging facade bound to one service name.

    Args:
        config: construction parameters; see LoggerConfiguration
        sinks: replaces the sinks derived from ``config`` (Logstash and
            console). Used by composition roots and tests.
    """

    def __init__(self, config: LoggerConfiguration, *, sinks: Optional[Sequence[BaseSink]] = None) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._sinks: tuple[BaseSink, ...] = tuple(sinks) if sinks is not None else _create_sinks(config)
        self._logger = self._build_logger(config)
        self._hooks = UnhandledErrorHooks(self._report_unhandled)

    # ── Configuration ─────────────────────────────────────────────

    @property
    def config(self) -> LoggerConfiguration:
        return self._config

    @property
    def service_name(self) -> str:
        return self._config.service_name

    @property
    def sinks(self) -> tuple[BaseSink, ...]:
        return self._sinks

    @property
    def remote_enabled(self) -> bool:
        """False when the Logstash sink could not be built."""
        return any(isinstance(sink, LogstashSink) for sink in self._sinks)

    def set_level(self, level: str) -> None:
        """Change the minimum level. Unknown names are accepted and disable filtering."""
        self._reconfigure(level=level)

    def set_stringify_logs(self, pretty_print: bool = False) -> None:
        """Rebuild the formatting pipeline: 2-space indented JSON or compact JSON."""
        self._reconfigure(pretty_print=pretty_print)

    def set_silent(self, silent: bool) -> None:
        """Drop every record while ``silent`` is true; calls still succeed."""
        self._reconfigure(silent=silent)

    def _reconfigure(self, **changes: Any) -> None:
        with self._lock:
            config = self._config.model_copy(update=changes)
            logger = self._build_logger(config)
            self._config, self._logger = config, logger

    def _build_logger(self, config: LoggerConfiguration) -> FilteringBoundLogger:
        return build_logger(
            self._sinks,
            level=config.level,
            pretty_print=config.pretty_print,
            silent=config.silent,
            **{SERVICE_NAME_KEY: config.service_name},
        )

    # ── Core Logging ──────────────────────────────────────────────

    def log(self, level: str, message: Any, meta: Optional[Mapping[str, Any]] = None) -> None:
        """
        Log ``message`` at ``level`` with ``meta`` merged into the record.

        The callback, when configured, is notified first with the level
        normalized to error/warn/debug, anything else becoming "log".
        ``serviceName`` in ``meta`` never overrides the configured one.
        """
        self._notify(level, message)
        self._write(self._logger, level, message, self._merge_meta(meta))

    def info(self, message: Any, meta: Optional[Mapping[str, Any]] = None) -> None:
        self.log("info", message, meta)

    def error(self, message: Any, meta: Optional[Mapping[str, Any]] = None) -> None:
        self.log("error", message, meta)

    def warn(self, message: Any, meta: Optional[Mapping[str, Any]] = None) -> None:
        self.log("warn", message, meta)

    def debug(self, message: Any, meta: Optional[Mapping[str, Any]] = None) -> None:
        self.log("debug", message, meta)

    def log_with_context(
        self,
        context: str,
        level: str,
        message: Any,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Log through a child logger tagged with ``context``. The child is not cached."""
        context_logger = self._logger.bind(context=context)
        self._notify(level, message)
        self._write(context_logger, level, message, self._merge_meta(meta))

    def log_stack_trace(self, error: BaseException) -> None:
        """Log the formatted traceback of ``error`` as the message, at error level."""
        text = "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip("\n")
        self._write(self._logger, "error", text)

    def log_nested_object(self, obj: Any, max_depth: Optional[int] = 1) -> None:
        """
        Log a pretty-printed rendering of ``obj`` at info level.

        ``max_depth`` levels of nesting below the top level are shown; deeper
        containers collapse to ``{...}`` / ``[...]``. None shows everything.
        """
        depth = None if max_depth is None else max(max_depth, 0) + 1
        try:
            text = pprint.pformat(obj, depth=depth)
        except Exception:
            text = f"<unrepresentable {type(obj).__name__}>"
        self._write(self._logger, "info", text)

    # ── Unhandled Errors ──────────────────────────────────────────

    def log_unhandled_errors(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Report uncaught exceptions process-wide at error level.

        Installs ``sys.excepthook`` and ``threading.excepthook`` once, plus an
        exception handler on ``loop`` (or the running loop, if any).

        Called before any event loop runs, only the process hooks are set;
        call again from inside the loop, or pass it, to cover asyncio too.
        """
        self._hooks.install(loop)

    def _report_unhandled(self, message: str, exc_info: Any, **fields: Any) -> None:
        self._write(self._logger, "error", message, fields, exc_info=exc_info)

    # ── Cleanup ───────────────────────────────────────────────────

    def flush(self) -> None:
        """Push queued records out of every sink."""
        for sink in self._sinks:
            try:
                sink.flush()
            except Exception:
                _diagnostics.warning("Flushing %s failed", type(sink).__name__, exc_info=True)

    def close(self) -> None:
        """Flush and close every sink. Call during shutdown."""
        for sink in self._sinks:
            try:
                sink.close()
            except Exception:
                _diagnostics.warning("Closing %s failed", type(sink).__name__, exc_info=True)

    # ── Helpers ───────────────────────────────────────────────────

    def _merge_meta(self, meta: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        fields = {safe_str(k): v for k, v in (meta or {}).items() if safe_str(k) not in RESERVED_KEYS}
        fields[SERVICE_NAME_KEY] = self._config.service_name
        return fields

    def _notify(self, level: str, message: Any) -> None:
        callback = self._config.callback
        if callback is None:
            return
        try:
            callback(callback_level(level), message)
        except Exception:
            _diagnostics.warning("Log callback raised for %r", message, exc_info=True)

    @staticmethod
    def _write(
        logger: FilteringBoundLogger,
        level: str,
        message: Any,
        fields: Optional[Mapping[str, Any]] = None,
        exc_info: Any = None,
    ) -> None:
        kw = dict(fields or {})
        if exc_info is not None:
            kw["exc_info"] = exc_info
        kw[LEVEL_LABEL_KEY] = level
        try:
            logger.log(emit_level(level), message, **kw)
        except Exception:
            _diagnostics.warning("Dropped %s record", level, exc_info=True)


def _create_sinks(config: LoggerConfiguration) -> tuple[BaseSink, ...]:
    """
    Build the Logstash sink and, if enabled, the console echo.

    A Logstash sink that cannot be built is reported locally and replaced by a
    JSON sink on stderr, so records are never silently lost.
    """
    sinks: list[BaseSink] = []
    try:
        sinks.append(
            LogstashSink(
                config.logstash_host,
                config.logstash_port,
                ssl_enable=config.ssl_enable,
                ssl_verify=config.ssl_verify,
                max_connect_retries=config.max_connect_retries,
                database_path=config.database_path,
                name=config.service_name,
            )
        )
    except SinkConstructionError:
        _diagnostics.exception("Cannot establish connection to logstash, falling back to stderr")
        if not config.enable_console:
            sinks.append(StdioSink(fmt="json", stream=sys.stderr))

    if config.enable_console:
        sinks.append(StdioSink(fmt=config.console_format.value, stream=sys.stdout))
    return tuple(sinks)
