"""Options for a single run.

Settings provide the defaults; the CLI overrides them per run.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from list_foreach.core.errors import ConfigurationError
from list_foreach.core.types import InputFormat, OutputFormat

from .constants import (
    BACKOFF_JITTER,
    BACKOFF_MAX_INTERVAL,
    BACKOFF_MIN_INTERVAL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PARALLELISM,
    DEFAULT_RATE_LIMIT_PER_MINUTE,
    DEFAULT_USER_AGENT,
)
from .settings import Settings


@dataclass(frozen=True)
class RunOptions:
    """Run configuration.

    Validated on construction; an invalid combination raises
    ConfigurationError before any request is made.
    """

    # === Collection ===
    collection: str | None = None
    auto_collection: bool = False

    # === Requests ===
    billing_project: str | None = None
    execute: bool = False
    auth: bool = True
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    # === Concurrency / Rate Limits ===
    parallelism: int = DEFAULT_PARALLELISM
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE

    # === Backoff ===
    max_retries: int | None = None  # None = retry until success or cancellation
    backoff_min_interval: float = BACKOFF_MIN_INTERVAL
    backoff_max_interval: float = BACKOFF_MAX_INTERVAL
    backoff_jitter: float = BACKOFF_JITTER

    # === I/O ===
    input_format: InputFormat = InputFormat.JSON
    output_format: OutputFormat = OutputFormat.JSON
    filter_errors: bool = False

    # === Diagnostics ===
    verbose: bool = False
    log_http: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> RunOptions:
        """Create options from settings, with per-run overrides.

        Overrides whose value is None keep the settings value.
        """
        names = {f.name for f in fields(cls)}
        values: dict[str, Any] = {
            "billing_project": settings.billing_project,
            "http_timeout": settings.http_timeout,
            "user_agent": settings.user_agent,
            "parallelism": settings.parallelism,
            "rate_limit_per_minute": settings.rate_limit_per_minute,
            "max_retries": settings.max_retries,
            "backoff_min_interval": settings.backoff_min_interval,
            "backoff_max_interval": settings.backoff_max_interval,
            "backoff_jitter": settings.backoff_jitter,
        }
        for key, value in overrides.items():
            if key not in names:
                raise ConfigurationError(f"unknown option: {key}")
            if value is not None:
                values[key] = value
        return cls(**values)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.auto_collection and self.collection:
            raise ConfigurationError("--auto-collection and --collection are exclusive")
        if self.parallelism < 1:
            raise ConfigurationError(f"parallelism must be >= 1, got {self.parallelism}")
        if self.rate_limit_per_minute < 0:
            raise ConfigurationError(
                f"rate limit must be >= 0, got {self.rate_limit_per_minute}"
            )
        if self.max_retries is not None and self.max_retries < 0:
            raise ConfigurationError(f"max retries must be >= 0, got {self.max_retries}")
        if self.http_timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.http_timeout}")
        if not 0 <= self.backoff_jitter <= 1:
            raise ConfigurationError(f"jitter must be in [0, 1], got {self.backoff_jitter}")
        object.__setattr__(self, "input_format", InputFormat(self.input_format))
        object.__setattr__(self, "output_format", OutputFormat(self.output_format))
