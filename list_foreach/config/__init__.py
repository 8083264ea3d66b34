"""Configuration module for list-foreach."""

from .constants import (
    # HTTP
    BILLING_PROJECT_HEADER,
    NEXT_PAGE_TOKEN_FIELD,
    PAGE_TOKEN_PARAM,
    # Backoff
    BACKOFF_JITTER,
    BACKOFF_MAX_INTERVAL,
    BACKOFF_MIN_INTERVAL,
    BACKOFF_MULTIPLIER,
)
from .options import RunOptions
from .settings import Settings, get_settings

__all__ = [
    "RunOptions",
    "Settings",
    "get_settings",
    "BILLING_PROJECT_HEADER",
    "NEXT_PAGE_TOKEN_FIELD",
    "PAGE_TOKEN_PARAM",
    "BACKOFF_JITTER",
    "BACKOFF_MAX_INTERVAL",
    "BACKOFF_MIN_INTERVAL",
    "BACKOFF_MULTIPLIER",
]
