"""Application settings using Pydantic. No side effects at import time."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    BACKOFF_JITTER,
    BACKOFF_MAX_INTERVAL,
    BACKOFF_MIN_INTERVAL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PARALLELISM,
    DEFAULT_RATE_LIMIT_PER_MINUTE,
    DEFAULT_USER_AGENT,
)


class Settings(BaseSettings):
    """Defaults for run options, loaded from environment variables and .env.

    Every field can be overridden per run from the command line.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIST_FOREACH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # === Requests ===
    billing_project: str | None = Field(
        default=None, description="Project billed for quota (x-goog-user-project)"
    )
    http_timeout: Annotated[float, Field(gt=0)] = DEFAULT_HTTP_TIMEOUT
    user_agent: Annotated[str, Field(min_length=1)] = DEFAULT_USER_AGENT

    # === Concurrency / Rate Limits ===
    parallelism: Annotated[int, Field(ge=1)] = DEFAULT_PARALLELISM
    rate_limit_per_minute: Annotated[int, Field(ge=0)] = DEFAULT_RATE_LIMIT_PER_MINUTE

    # === Backoff ===
    max_retries: Annotated[int, Field(ge=0)] | None = None  # None = unlimited
    backoff_min_interval: Annotated[float, Field(gt=0)] = BACKOFF_MIN_INTERVAL
    backoff_max_interval: Annotated[float, Field(gt=0)] = BACKOFF_MAX_INTERVAL
    backoff_jitter: Annotated[float, Field(ge=0, le=1)] = BACKOFF_JITTER


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This is the recommended way to access settings to avoid
    repeated .env file parsing.
    """
    return Settings()
