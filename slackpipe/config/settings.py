"""Configuration management using Pydantic Settings.

Features:
- Environment variable loading (``SLACKPIPE_`` prefix, optional ``.env``)
- Type validation
- Default values for the webhook limits
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from slackpipe.utils.constants import (
    DEFAULT_CHANNEL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_RATE_LIMIT_WINDOW,
    DEFAULT_RETRY_AFTER_SECONDS,
    DEFAULT_SERVER_ERROR_BACKOFF,
    SLACK_MAX_MESSAGE_LENGTH,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Webhook limits
    size_limit: int = Field(
        SLACK_MAX_MESSAGE_LENGTH, description="Maximum characters per delivery"
    )
    rate_limit_window: float = Field(
        DEFAULT_RATE_LIMIT_WINDOW,
        description="Minimum seconds between consecutive deliveries",
    )

    # Retry policy
    default_retry_after: float = Field(
        DEFAULT_RETRY_AFTER_SECONDS,
        description="Wait used when a 429 carries no usable Retry-After header",
    )
    server_error_backoff: float = Field(
        DEFAULT_SERVER_ERROR_BACKOFF, description="Wait after a 5xx response"
    )
    http_timeout: float = Field(
        DEFAULT_HTTP_TIMEOUT, description="Timeout for one webhook request"
    )

    # Destination
    default_channel: str = Field(
        DEFAULT_CHANNEL, description="Channel used when none is configured"
    )
    config_file: Optional[Path] = Field(
        None, description="Channel configuration file (TOML)"
    )

    # Input handling
    echo: bool = Field(True, description="Copy every input line to stdout")

    # Monitoring
    log_level: str = Field("INFO", description="Logging level")
    log_file: Optional[Path] = Field(None, description="Optional log file")

    # Development
    debug: bool = Field(False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_prefix="SLACKPIPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("size_limit")
    @classmethod
    def validate_size_limit(cls, v: int) -> int:
        """Size limit must leave room for at least one character."""
        if v <= 0:
            raise ValueError("size_limit must be positive")
        return v

    @field_validator(
        "rate_limit_window", "default_retry_after", "server_error_backoff"
    )
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Waits cannot be negative."""
        if v < 0:
            raise ValueError("wait durations must not be negative")
        return v

    @field_validator("http_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()  # type: ignore[no-any-return]
