"""Backoff policies for retrying requests.

A policy computes the wait schedule; a controller walks one request
sequence through it:

    controller = policy.start(cancelled)
    while await controller.should_continue():
        ...  # attempt the request, `continue` to retry, `return` when done
    raise RetryExhaustedError()

The first should_continue() returns immediately. Later calls sleep for the
next interval first. Every call returns False as soon as the shared
cancellation event is set, including in the middle of a wait.
"""

from __future__ import annotations

import asyncio
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from list_foreach.config.constants import (
    BACKOFF_JITTER,
    BACKOFF_MAX_INTERVAL,
    BACKOFF_MIN_INTERVAL,
    BACKOFF_MULTIPLIER,
)


class BackoffPolicy(ABC):
    """Abstract base for backoff policies.

    A backoff policy determines how long to wait between retry attempts.
    """

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before the next retry.

        Args:
            attempt: The retry number (0-indexed)

        Returns:
            Delay in seconds before the next attempt
        """
        ...

    def max_attempts(self) -> int | None:
        """Maximum number of attempts (first try included). None = unlimited."""
        return None

    def max_elapsed(self) -> float | None:
        """Maximum seconds a request sequence may take. None = unlimited."""
        return None

    def start(self, cancelled: asyncio.Event | None = None) -> BackoffController:
        """Begin a new request sequence."""
        return BackoffController(self, cancelled)


@dataclass
class ExponentialBackoff(BackoffPolicy):
    """Exponential backoff with multiplicative jitter.

    delay = min(min_interval * multiplier^attempt, max_interval) * U(1 - jitter, 1 + jitter)

    Example with defaults:
        retry 0: 1s +/- 10%
        retry 1: 2s +/- 10%
        retry 2: 4s +/- 10%
        ...
        retry 6: 60s +/- 10% (capped at max)
    """

    min_interval: float = BACKOFF_MIN_INTERVAL
    max_interval: float = BACKOFF_MAX_INTERVAL
    multiplier: float = BACKOFF_MULTIPLIER
    jitter: float = BACKOFF_JITTER  # 0.0 to 1.0
    max_retries: int | None = None  # None = retry until success or cancellation
    max_elapsed_seconds: float | None = None

    def next_delay(self, attempt: int) -> float:
        """Calculate exponential delay with jitter."""
        delay = min(self.min_interval * (self.multiplier**attempt), self.max_interval)
        if self.jitter > 0:
            delay *= random.uniform(1 - self.jitter, 1 + self.jitter)
        return max(0.0, delay)

    def max_attempts(self) -> int | None:
        if self.max_retries is None:
            return None
        return self.max_retries + 1

    def max_elapsed(self) -> float | None:
        return self.max_elapsed_seconds


@dataclass
class NoBackoff(BackoffPolicy):
    """No backoff - immediate retry (for testing)."""

    max_retries: int | None = None

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def max_attempts(self) -> int | None:
        if self.max_retries is None:
            return None
        return self.max_retries + 1


class BackoffController:
    """Retry state for one request sequence.

    Created by BackoffPolicy.start() and discarded once the sequence resolves.
    """

    def __init__(self, policy: BackoffPolicy, cancelled: asyncio.Event | None = None) -> None:
        self.policy = policy
        self.attempts = 0
        self._cancelled = cancelled
        self._started = time.monotonic()

    @property
    def cancelled(self) -> bool:
        return self._cancelled is not None and self._cancelled.is_set()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    async def should_continue(self) -> bool:
        """Wait for the next attempt slot.

        Returns:
            True if another attempt may be made, False if the schedule is
            exhausted or the run was cancelled
        """
        if self.cancelled:
            return False

        cap = self.policy.max_attempts()
        if cap is not None and self.attempts >= cap:
            return False

        if self.attempts > 0:
            delay = self.policy.next_delay(self.attempts - 1)
            budget = self.policy.max_elapsed()
            if budget is not None and self.elapsed + delay > budget:
                return False
            if await self._wait(delay):
                return False

        self.attempts += 1
        return True

    async def _wait(self, delay: float) -> bool:
        """Sleep for delay seconds. Returns True if cancelled while waiting."""
        if self._cancelled is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
