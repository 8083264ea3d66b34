"""Token Bucket Rate Limiter.

One limiter is shared by every worker in a run:
- Each request consumes a token before it is sent
- Tokens refill at per_minute / 60 per second
- Burst allowed up to bucket capacity (default 1, i.e. strict spacing)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from list_foreach.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimiter:
    """Token bucket rate limiter.

    Usage:
        limiter = RateLimiter(per_minute=600)

        # Take before making request
        await limiter.take()
        await make_request()

    With per_minute=0 the limiter is unlimited and take() returns at once.
    The lock is held while waiting, so concurrent callers are served one
    at a time and m calls take at least (m - 1) * 60 / per_minute seconds.
    """

    # Configuration
    per_minute: int = 0  # 0 = unlimited
    burst: int = 1  # Maximum bucket capacity

    # State
    _tokens: float = field(init=False)
    _last_refill: float = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Initialize bucket to full capacity."""
        if self.per_minute < 0:
            raise ValueError(f"per_minute must be >= 0, got {self.per_minute}")
        if self.burst < 1:
            raise ValueError(f"burst must be >= 1, got {self.burst}")
        self._tokens = float(self.burst)
        self._last_refill = time.monotonic()

    @property
    def unlimited(self) -> bool:
        return self.per_minute == 0

    @property
    def rate(self) -> float:
        """Tokens per second."""
        return self.per_minute / 60.0

    async def take(self) -> float:
        """Take one token from the bucket.

        Blocks until a token is available.

        Returns:
            Wait time in seconds (0 if no wait needed)
        """
        if self.unlimited:
            return 0.0

        async with self._lock:
            wait_time = 0.0

            self._refill()

            if self._tokens >= 1:
                self._tokens -= 1
            else:
                # Need to wait for the next token
                wait_time = (1 - self._tokens) / self.rate
                logger.debug(f"Rate limited, waiting {wait_time:.3f}s")

                # Wait and then consume
                await asyncio.sleep(wait_time)
                self._tokens = 0
                self._last_refill = time.monotonic()

            return wait_time

    def _refill(self) -> None:
        """Refill tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self.burst, self._tokens + elapsed * self.rate)
        self._last_refill = now

    @property
    def available_tokens(self) -> float:
        """Get current number of available tokens (approximate)."""
        if self.unlimited:
            return float("inf")
        now = time.monotonic()
        elapsed = now - self._last_refill
        return min(self.burst, self._tokens + elapsed * self.rate)
