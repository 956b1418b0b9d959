"""
Logstash Transport Configuration.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogstashSettings(BaseSettings):
    """
    Remote aggregator connection settings.
    Prefix: LOG_SERVICE_LOGSTASH_
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_SERVICE_LOGSTASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    host: str = Field(default="localhost", description="Logstash TCP input host")
    port: int = Field(default=5959, description="Logstash TCP input port")
    max_connect_retries: int = Field(
        default=-1,
        description="Failed flush attempts before queued events expire (-1 = never)",
    )
    ssl_enable: bool = Field(default=False, description="Wrap the TCP connection in TLS")
    ssl_verify: bool = Field(default=True, description="Verify the server certificate when TLS is on")
    database_path: Optional[str] = Field(
        default=None,
        description="SQLite file for the transport's event queue (None = in memory)",
    )
