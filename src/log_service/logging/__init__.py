"""
Structured logging pipeline for the log service.

Provides a structlog processor chain feeding multiple sinks:
- logstash: remote aggregator over TCP/TLS (python-logstash-async)
- stdio: local console echo (json/console format)

Design Pattern: Strategy Pattern for sink abstraction.
Library: structlog + orjson for JSON serialization.
"""

from .core import build_logger
from .formatters import ConsoleFormatter, JsonRecordFormatter
from .sinks import BaseSink, LogstashSink, StdioSink

__all__ = [
    "BaseSink",
    "ConsoleFormatter",
    "JsonRecordFormatter",
    "LogstashSink",
    "StdioSink",
    "build_logger",
]
