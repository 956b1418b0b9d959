"""
Application Configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Identity of the service emitting the logs."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_SERVICE_APP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    name: str = "log-service"
