"""Resilience components shared by all workers.

- RateLimiter: Token bucket algorithm
- ExponentialBackoff: Retry schedule with jitter
"""

from .backoff import BackoffController, BackoffPolicy, ExponentialBackoff, NoBackoff
from .rate_limiter import RateLimiter

__all__ = [
    "BackoffController",
    "BackoffPolicy",
    "ExponentialBackoff",
    "NoBackoff",
    "RateLimiter",
]
