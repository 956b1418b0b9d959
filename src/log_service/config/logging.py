"""
Logging Configuration.
"""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConsoleFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """Output behavior of the facade."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_SERVICE_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Level names are not validated: an unknown name disables filtering.
    level: str = Field(default="info", description="Minimum level (error, warn, info, debug)")
    pretty_print: bool = Field(default=False, description="Indent JSON records with 2 spaces")
    silent: bool = Field(default=False, description="Suppress all output")
    enable_console: bool = Field(default=False, description="Echo records to stdout")
    console_format: ConsoleFormat = Field(default=ConsoleFormat.JSON, description="Console echo format")


class LoggerConfiguration(BaseModel):
    """Configuration a LogService is constructed from.

    Immutable. The facade replaces it with ``model_copy(update=...)`` when
    ``level``, ``pretty_print`` or ``silent`` change at runtime.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_name: str = Field(description="Attached to every record as serviceName")
    logstash_host: str
    logstash_port: int
    max_connect_retries: int = Field(default=-1, description="-1 means retry forever")
    ssl_enable: bool = False
    ssl_verify: bool = True
    database_path: Optional[str] = None
    level: str = "info"
    pretty_print: bool = False
    silent: bool = False
    enable_console: bool = False
    console_format: ConsoleFormat = ConsoleFormat.JSON
    callback: Optional[Callable[[str, str], Any]] = Field(
        default=None,
        description="Called with (level, message) before each record is logged",
    )
