"""
Log Service.

Structured logging facade that tags records with a service name, renders them
as JSON and ships them to Logstash.

Library: structlog for the pipeline, orjson for JSON, python-logstash-async
for the transport.
"""

from log_service.config import LoggerConfiguration, LogServiceSettings
from log_service.factory import get_log_service, reset_log_service
from log_service.service import LogService

__all__ = [
    "LogService",
    "LoggerConfiguration",
    "LogServiceSettings",
    "get_log_service",
    "reset_log_service",
]
