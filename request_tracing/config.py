"""
Request tracing configuration using Pydantic settings.
"""
import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Request tracing settings."""

    # Service identity (stamped on every log line)
    APP_NAME: str = "request-tracing"
    VERSION: str = "1.0.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    LOG_FILE: Optional[str] = None

    # Inbound requests: accept X-Request-ID / X-Correlation-ID from upstream callers
    TRUST_INBOUND_REQUEST_ID: bool = True
    # Echo the resolved identifier back on responses
    ECHO_RESPONSE_HEADERS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if not isinstance(logging.getLevelName(v), int):
                raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("LOG_FILE", mode="before")
    @classmethod
    def empty_log_file_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


def get_settings() -> Settings:
    """Get request tracing settings."""
    return Settings()

settings = get_settings()
