"""Runtime settings for fast-rack, loaded from the environment."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fast_rack.utils.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_HEADER,
    DEFAULT_TRACE_HEADER,
)


class Settings(BaseSettings):
    """Validated environment configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PYTHON_LOG_LEVEL: str = "INFO"
    ENABLE_FILE_LOGGING: bool = False

    # Pipeline engine
    MAX_RETRIES: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    RETRY_HEADER: str = DEFAULT_RETRY_HEADER

    # Built-in middleware
    TRACE_HEADER: str = DEFAULT_TRACE_HEADER
    REQUEST_LOGGING_ENABLED: bool = True
    REQUEST_LOG_HEADERS: bool = False

    @field_validator("PYTHON_LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("RETRY_HEADER", "TRACE_HEADER")
    @classmethod
    def validate_header_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Header name must not be empty")
        return v.strip()


settings = Settings()
