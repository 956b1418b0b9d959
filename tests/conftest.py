import logging
import sys
import threading
import typing as t

import pytest

from log_service import LoggerConfiguration, LogService, reset_log_service
from log_service.logging import BaseSink
from log_service.logging import sinks as sinks_module


class MemorySink(BaseSink):
    """Keeps every record and its JSON rendering in memory."""

    def __init__(self) -> None:
        self.records: list[dict[str, t.Any]] = []
        self.rendered: list[str] = []
        self.flush_count = 0
        self.closed = False

    def emit(self, event_dict, rendered: str) -> None:
        self.records.append(dict(event_dict))
        self.rendered.append(rendered)

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        self.closed = True


class FakeLogstashHandler(logging.Handler):
    """Stands in for AsynchronousLogstashHandler; records instead of sending."""

    def __init__(self, host, port, **kwargs) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self.kwargs = kwargs
        self.messages: list[str] = []
        self.levels: list[int] = []
        self.flush_count = 0
        self.closed = False

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(self.format(record))
        self.levels.append(record.levelno)

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        self.closed = True
        super().close()


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def config() -> LoggerConfiguration:
    return LoggerConfiguration(
        service_name="billing",
        logstash_host="localhost",
        logstash_port=5959,
    )


@pytest.fixture
def service(config, memory_sink) -> LogService:
    return LogService(config, sinks=[memory_sink])


@pytest.fixture
def fake_transport(monkeypatch) -> list[FakeLogstashHandler]:
    """
    Replaces the Logstash handler class so no socket is ever opened.
    Returns the list of handlers created during the test.
    """
    created: list[FakeLogstashHandler] = []

    def factory(host, port, **kwargs):
        handler = FakeLogstashHandler(host, port, **kwargs)
        created.append(handler)
        return handler

    monkeypatch.setattr(sinks_module, "AsynchronousLogstashHandler", factory)
    return created


@pytest.fixture
def restore_process_hooks(monkeypatch):
    """
    Records calls reaching the previously installed process hooks and restores
    the real hooks after the test.
    """
    reached: dict[str, list] = {"sys": [], "thread": []}
    monkeypatch.setattr(sys, "excepthook", lambda *exc: reached["sys"].append(exc))
    monkeypatch.setattr(threading, "excepthook", lambda args: reached["thread"].append(args.exc_type))
    yield reached


@pytest.fixture(autouse=True)
def reset_singleton():
    yield
    reset_log_service()
