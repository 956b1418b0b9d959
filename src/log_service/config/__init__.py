"""
Log Service Configuration Module.

Two layers:

- ``LoggerConfiguration``: the immutable value a ``LogService`` is built from.
  Application code constructs it directly and hands it to the facade.
- ``LogServiceSettings``: optional environment-driven loader following the
  Nested Settings Pattern. Each sub-module owns one concern and its own
  environment variable prefix.

Multi-Environment Support:
    Set `LOG_SERVICE_ENV` to one of: development, testing, staging, production
    The system will load .env files in this order (later overrides earlier):
    1. .env
    2. .env.local
    3. .env.{environment}
    4. .env.{environment}.local

Usage:
    from log_service.config import LogServiceSettings

    settings = LogServiceSettings()
    settings.logstash.host
    settings.logging.level
    config = settings.to_configuration(callback=notify)
"""

from functools import cached_property
import os
from typing import Any, Callable, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .logging import ConsoleFormat, LoggerConfiguration, LoggingSettings
from .logstash import LogstashSettings


def _get_env_files() -> tuple[str, ...]:
    """
    Determine which .env files to load based on LOG_SERVICE_ENV.

    This function is called at module import time to configure the Settings class.
    """
    env = os.getenv("LOG_SERVICE_ENV", "development")
    return (
        ".env",
        ".env.local",
        f".env.{env}",
        f".env.{env}.local",
    )


class LogServiceSettings(BaseSettings):
    """
    Composite settings aggregating the service, transport and output domains.

    Each sub-settings object loads from its own env prefix the first time it
    is accessed.
    """

    model_config = SettingsConfigDict(
        env_file=_get_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def app(self) -> AppSettings:
        return AppSettings()

    @cached_property
    def logstash(self) -> LogstashSettings:
        return LogstashSettings()

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    def to_configuration(self, callback: Optional[Callable[[str, str], Any]] = None) -> LoggerConfiguration:
        """Build the facade configuration from the loaded settings."""
        return LoggerConfiguration(
            service_name=self.app.name,
            logstash_host=self.logstash.host,
            logstash_port=self.logstash.port,
            max_connect_retries=self.logstash.max_connect_retries,
            ssl_enable=self.logstash.ssl_enable,
            ssl_verify=self.logstash.ssl_verify,
            database_path=self.logstash.database_path,
            level=self.logging.level,
            pretty_print=self.logging.pretty_print,
            silent=self.logging.silent,
            enable_console=self.logging.enable_console,
            console_format=self.logging.console_format,
            callback=callback,
        )


__all__ = [
    "AppSettings",
    "ConsoleFormat",
    "LoggerConfiguration",
    "LoggingSettings",
    "LogServiceSettings",
    "LogstashSettings",
]
