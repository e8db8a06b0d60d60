"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated retry and logging defaults from environment
variables. Supports .env files and nested configuration.

Example:
    >>> from retryer.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.strategy
    'exponential'
    >>> settings.retry.build_delayer()
    ExponentialDelayer(initial=0.5, multiplier=1.5, max_delay=0.0, jitter_percent=50)

    # Or with environment variables:
    # RETRYER_RETRY_STRATEGY=constant
    # RETRYER_RETRY_CONSTANT_DELAY=2.5
    # RETRYER_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from retryer.runtime.retry.backoff import Delayer


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYER_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class RetrySettings(BaseSettings):
    """Default retry configuration.

    Zero values for initial/max_delay and multipliers below 1 fall back to
    the exponential delayer's built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYER_RETRY_",
        extra="ignore",
    )

    strategy: Literal["none", "constant", "exponential"] = "exponential"
    constant_delay: NonNegativeFloat = Field(default=1.0, description="Delay in seconds for the constant strategy")
    initial: NonNegativeFloat = Field(default=0.5, description="First retry delay in seconds")
    multiplier: float = Field(default=1.5, description="Exponential growth factor")
    max_delay: NonNegativeFloat = Field(default=0.0, description="Delay cap in seconds (0 = no cap)")
    jitter_percent: Annotated[int, Field(ge=0, le=100)] = 50
    max_attempts: NonNegativeInt = Field(default=0, description="Maximum calls to the operation (0 = unbounded)")
    respect_deadline: bool = True

    @computed_field
    @property
    def is_unbounded(self) -> bool:
        """Whether retries continue until success, break or cancellation."""
        return self.max_attempts == 0

    def build_delayer(self) -> Delayer:
        """Build the delayer described by these settings."""
        from retryer.runtime.retry.backoff import ConstantDelayer, ExponentialDelayer, NopDelayer

        match self.strategy:
            case "none":
                return NopDelayer()
            case "constant":
                return ConstantDelayer(self.constant_delay)
            case _:
                return ExponentialDelayer(
                    initial=self.initial,
                    multiplier=self.multiplier,
                    max_delay=self.max_delay,
                    jitter_percent=self.jitter_percent,
                )


class RetryerSettings(BaseSettings):
    """Root settings for retryer.

    Loads configuration from environment variables with RETRYER_ prefix.

    Example environment variables:
        RETRYER_RETRY_MAX_ATTEMPTS=5
        RETRYER_RETRY_JITTER_PERCENT=20
        RETRYER_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)


@lru_cache(maxsize=1)
def get_settings() -> RetryerSettings:
    """Get the global settings instance (cached)."""
    return RetryerSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
