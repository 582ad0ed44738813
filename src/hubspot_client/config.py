"""
Configuration settings for the HubSpot client core.

All settings are loaded from environment variables (prefixed with HUBSPOT_)
with sensible defaults. Use a .env file for local development.

Components never read Settings directly: they receive the frozen slice
they need (RateLimitConfig, RetryConfig) at construction time.
"""

import logging
from dataclasses import dataclass

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate-limit slice of the settings."""

    enabled: bool
    max_burst: int
    daily_limit: int


@dataclass(frozen=True)
class RetryConfig:
    """Retry slice of the settings (durations in seconds)."""

    enabled: bool
    max_attempts: int
    initial_backoff: float
    max_backoff: float


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HUBSPOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Connection ===
    ACCESS_TOKEN: str = ""
    BASE_URL: str = "https://api.hubapi.com"
    TIMEOUT: float = 30.0  # seconds, per HTTP round trip
    USER_AGENT: str = "hubspot-client-python/0.1.0"

    # === Rate Limiting ===
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_BURST: int = 100  # requests per 10-second window
    RATE_LIMIT_DAILY_LIMIT: int = 250000

    # === Retry ===
    RETRY_ENABLED: bool = True
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_INITIAL_BACKOFF: float = 1.0  # seconds
    RETRY_MAX_BACKOFF: float = 30.0  # seconds

    # === Logging ===
    LOGGING_ENABLED: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Monitoring ===
    METRICS_ENABLED: bool = True

    @field_validator("BASE_URL")
    @classmethod
    def _normalise_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("BASE_URL must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("TIMEOUT")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("TIMEOUT must be > 0")
        return value

    @field_validator("RATE_LIMIT_MAX_BURST", "RETRY_MAX_ATTEMPTS")
    @classmethod
    def _check_at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("RATE_LIMIT_DAILY_LIMIT")
    @classmethod
    def _check_daily_limit(cls, value: int) -> int:
        if value < 0:
            raise ValueError("RATE_LIMIT_DAILY_LIMIT must be >= 0")
        return value

    @field_validator("RETRY_INITIAL_BACKOFF", "RETRY_MAX_BACKOFF")
    @classmethod
    def _check_backoff(cls, value: float) -> float:
        if value < 0:
            raise ValueError("backoff durations must be >= 0")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def _check_backoff_ceiling(self) -> "Settings":
        if self.RETRY_MAX_BACKOFF < self.RETRY_INITIAL_BACKOFF:
            raise ValueError("RETRY_MAX_BACKOFF must be >= RETRY_INITIAL_BACKOFF")
        return self

    @property
    def rate_limit(self) -> RateLimitConfig:
        return RateLimitConfig(
            enabled=self.RATE_LIMIT_ENABLED,
            max_burst=self.RATE_LIMIT_MAX_BURST,
            daily_limit=self.RATE_LIMIT_DAILY_LIMIT,
        )

    @property
    def retry(self) -> RetryConfig:
        return RetryConfig(
            enabled=self.RETRY_ENABLED,
            max_attempts=self.RETRY_MAX_ATTEMPTS,
            initial_backoff=self.RETRY_INITIAL_BACKOFF,
            max_backoff=self.RETRY_MAX_BACKOFF,
        )


# Global settings instance
settings = Settings()
