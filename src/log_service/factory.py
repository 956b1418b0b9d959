"""
Process-wide LogService instance.

Composition roots that can pass the service around explicitly should build a
``LogService`` themselves. This factory serves code that needs one shared
instance per process: the first call's configuration wins.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from log_service.config import LoggerConfiguration, LogServiceSettings
from log_service.service import LogService

_diagnostics = logging.getLogger(__name__)

# Module-level singleton cache
_log_service_instance: LogService | None = None
_initial_config: LoggerConfiguration | None = None
_lock = threading.Lock()


def get_log_service(config: Optional[LoggerConfiguration] = None) -> LogService:
    """
    Get the process-wide LogService, creating it on first use.

    Args:
        config: configuration for the first call. If None, it is loaded from
                environment variables through LogServiceSettings.

    Returns:
        The shared LogService. Configuration passed after creation is ignored;
        a differing one is reported as a warning.
    """
    global _log_service_instance, _initial_config

    instance = _log_service_instance
    if instance is None:
        with _lock:
            if _log_service_instance is None:
                _initial_config = config or LogServiceSettings().to_configuration()
                _log_service_instance = LogService(_initial_config)
                return _log_service_instance
            instance = _log_service_instance

    if config is not None and config != _initial_config:
        _diagnostics.warning(
            "LogService for %r already exists; ignoring configuration for %r",
            instance.service_name,
            config.service_name,
        )
    return instance


def reset_log_service() -> None:
    """Close and drop the cached instance (for tests)."""
    global _log_service_instance, _initial_config
    with _lock:
        if _log_service_instance is not None:
            _log_service_instance.close()
        _log_service_instance = None
        _initial_config = None


__all__ = ["get_log_service", "reset_log_service"]
