# src/portal_api/settings.py
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_DEV_CONNECTION_STRING = (
    "Endpoint=http://localhost:5000;Region=us-east-1;"
    "AccessKeyId=mock;SecretAccessKey=mock;FileShareRoot=storage/shares"
)


class Settings(BaseSettings):
    """
    Settings for the retail and student portals.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    The storage gateway reads exactly one value from here, the connection
    string; everything else configures the web layer.

    Usage:
        from portal_api.settings import get_settings
        settings = get_settings()
        connection_string = settings.storage_connection_string
    """

    # Application Settings
    app_name: str = Field(
        default="portal-api",
        description="Application name"
    )

    # Storage credential
    storage_connection_string: str = Field(
        default=LOCAL_DEV_CONNECTION_STRING,
        description="Semicolon separated Key=Value pairs: Endpoint, Region, "
                    "AccessKeyId, SecretAccessKey, FileShareRoot",
    )

    # Web layer
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to call the API from a browser"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any case, store the upper-case level name."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return level

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
