"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, Literal, Optional

from logstash_async.constants import constants
from logstash_async.handler import AsynchronousLogstashHandler
from structlog.typing import EventDict

from log_service.exceptions import SinkConstructionError
from log_service.logging.formatters import ConsoleFormatter
from log_service.logging.levels import emit_level

LogFormat = Literal["console", "json"]


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    @abstractmethod
    def emit(self, event_dict: EventDict, rendered: str) -> None:
        """Emit a log event to the sink.

        Args:
            event_dict: the structured record
            rendered: the record already formatted as JSON
        """
        ...

    def flush(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class StdioSink(BaseSink):
    """Standard I/O sink with configurable format.

    Args:
        fmt: Output format - "console" (colored human-readable) or "json"
        stream: Output stream (default: stderr)
    """

    def __init__(self, fmt: LogFormat = "json", stream: Any = None):
        self._fmt = fmt
        self._stream = stream or sys.stderr

    def emit(self, event_dict: EventDict, rendered: str) -> None:
        if self._fmt == "console":
            use_color = bool(getattr(self._stream, "isatty", lambda: False)())
            output = ConsoleFormatter.format(event_dict, use_color=use_color)
        else:
            output = rendered

        self._stream.write(output + "\n")
        self._stream.flush()

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        pass


class LogstashSink(BaseSink):
    """Ships JSON records to a Logstash TCP input.

    Connection handling, TLS, queueing and retries all belong to
    ``AsynchronousLogstashHandler``; events are sent from its worker thread.

    Args:
        host: Logstash host
        port: Logstash TCP input port
        ssl_enable: use TLS
        ssl_verify: verify the server certificate
        max_connect_retries: failed flush attempts before a queued event
            expires; negative means it never expires
        database_path: SQLite file backing the event queue, None for memory
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        ssl_enable: bool = False,
        ssl_verify: bool = True,
        max_connect_retries: int = -1,
        database_path: Optional[str] = None,
        name: str = "log_service",
    ):
        if not host:
            raise SinkConstructionError(host=host, port=port, reason="host is empty")
        if not isinstance(port, int) or not 0 < port < 65536:
            raise SinkConstructionError(host=host, port=port, reason="port out of range")

        try:
            self._handler = AsynchronousLogstashHandler(
                host,
                port,
                database_path=database_path,
                ssl_enable=ssl_enable,
                ssl_verify=ssl_verify,
                event_ttl=event_ttl(max_connect_retries),
            )
        except Exception as exc:
            raise SinkConstructionError(host=host, port=port, reason=str(exc)) from exc

        # Records arrive pre-rendered; the handler only frames and sends them.
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._name = name

    def emit(self, event_dict: EventDict, rendered: str) -> None:
        levelno = emit_level(event_dict.get("level", "info"))
        record = logging.makeLogRecord(
            {
                "name": self._name,
                "msg": rendered,
                "levelno": levelno,
                "levelname": logging.getLevelName(levelno),
            }
        )
        self._handler.handle(record)

    def flush(self) -> None:
        self._handler.flush()

    def close(self) -> None:
        self._handler.close()


def event_ttl(max_connect_retries: int) -> Optional[float]:
    """Translate a retry budget into the transport's event time-to-live.

    The transport retries queued events once per flush interval, so an event
    that survives ``n + 1`` intervals has had ``n`` retries.
    """
    if max_connect_retries < 0:
        return None
    return (max_connect_retries + 1) * constants.QUEUED_EVENTS_FLUSH_INTERVAL
