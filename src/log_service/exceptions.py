"""
Log service exception hierarchy.

None of these reach application code through the facade: the facade catches
them and degrades. They exist so the sink layer can report failures precisely.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LogServiceError(Exception):
    """Root of all log service errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class SinkError(LogServiceError):
    """A sink could not be built or operated."""

    pass


class SinkConstructionError(SinkError):
    """Raised when the remote transport cannot be set up."""

    def __init__(
        self,
        *,
        host: str,
        port: Any,
        reason: str,
    ) -> None:
        message = f"Cannot establish connection to logstash at {host}:{port}: {reason}"
        details = {
            "host": host,
            "port": port,
            "reason": reason,
        }
        super().__init__(message, code="SINK_CONSTRUCTION_FAILED", details=details)
