"""Tests for list_foreach/resilience: backoff schedule and rate limiter."""

import asyncio
import time

import pytest

from list_foreach.resilience.backoff import ExponentialBackoff, NoBackoff
from list_foreach.resilience.rate_limiter import RateLimiter


# =============================================================================
# Backoff
# =============================================================================


class TestExponentialBackoff:
    """Tests for delay calculation."""

    def test_doubles_until_cap(self):
        """Delay doubles per retry and stops at max_interval."""
        backoff = ExponentialBackoff(min_interval=1.0, max_interval=10.0, jitter=0.0)

        assert [backoff.next_delay(n) for n in range(6)] == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_jitter_bounds(self):
        """Jittered delays stay within +/- jitter of the base delay."""
        backoff = ExponentialBackoff(min_interval=2.0, jitter=0.1)

        for _ in range(100):
            assert 1.8 <= backoff.next_delay(0) <= 2.2

    def test_unlimited_by_default(self):
        assert ExponentialBackoff().max_attempts() is None

    def test_max_retries(self):
        """max_retries counts retries, not the first attempt."""
        assert ExponentialBackoff(max_retries=3).max_attempts() == 4
        assert NoBackoff(max_retries=0).max_attempts() == 1


class TestBackoffController:
    """Tests for walking a request sequence through the schedule."""

    @pytest.mark.asyncio
    async def test_first_attempt_immediate(self):
        """The first attempt does not wait."""
        controller = ExponentialBackoff(min_interval=30.0, jitter=0.0).start()

        start = time.monotonic()
        assert await controller.should_continue() is True
        assert time.monotonic() - start < 1.0
        assert controller.attempts == 1

    @pytest.mark.asyncio
    async def test_stops_at_cap(self):
        """No more attempts once max_retries is used up."""
        controller = NoBackoff(max_retries=2).start()

        results = [await controller.should_continue() for _ in range(4)]

        assert results == [True, True, True, False]
        assert controller.attempts == 3

    @pytest.mark.asyncio
    async def test_waits_between_attempts(self):
        """The second attempt waits for the first interval."""
        controller = ExponentialBackoff(min_interval=0.05, jitter=0.0).start()

        await controller.should_continue()
        start = time.monotonic()
        await controller.should_continue()

        assert time.monotonic() - start >= 0.04

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self):
        """A cancelled run makes no attempts."""
        cancelled = asyncio.Event()
        cancelled.set()

        assert await NoBackoff().start(cancelled).should_continue() is False

    @pytest.mark.asyncio
    async def test_cancel_during_wait(self):
        """Cancellation ends a wait early."""
        cancelled = asyncio.Event()
        controller = ExponentialBackoff(min_interval=30.0, jitter=0.0).start(cancelled)
        await controller.should_continue()
        asyncio.get_running_loop().call_later(0.01, cancelled.set)

        result = await asyncio.wait_for(controller.should_continue(), timeout=5)

        assert result is False

    @pytest.mark.asyncio
    async def test_elapsed_budget(self):
        """A wait that would exceed the elapsed budget ends the sequence."""
        backoff = ExponentialBackoff(min_interval=10.0, jitter=0.0, max_elapsed_seconds=1.0)
        controller = backoff.start()

        assert await controller.should_continue() is True
        assert await controller.should_continue() is False


# =============================================================================
# Rate limiter
# =============================================================================


class TestRateLimiter:
    """Tests for the token bucket."""

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            RateLimiter(per_minute=-1)
        with pytest.raises(ValueError):
            RateLimiter(per_minute=60, burst=0)

    @pytest.mark.asyncio
    async def test_unlimited(self):
        """per_minute=0 never waits."""
        limiter = RateLimiter(per_minute=0)

        waits = [await limiter.take() for _ in range(100)]

        assert waits == [0.0] * 100
        assert limiter.available_tokens == float("inf")

    @pytest.mark.asyncio
    async def test_first_take_immediate(self):
        """A full bucket serves the first request without waiting."""
        assert await RateLimiter(per_minute=60).take() == 0.0

    @pytest.mark.asyncio
    async def test_spacing(self):
        """m takes at r per minute span at least (m - 1) * 60 / r seconds."""
        limiter = RateLimiter(per_minute=1200)

        start = time.monotonic()
        for _ in range(5):
            await limiter.take()
        elapsed = time.monotonic() - start

        assert elapsed >= 4 * 60 / 1200 - 0.01

    @pytest.mark.asyncio
    async def test_spacing_concurrent(self):
        """Concurrent takers are spaced the same way."""
        limiter = RateLimiter(per_minute=1200)

        start = time.monotonic()
        await asyncio.gather(*(limiter.take() for _ in range(5)))
        elapsed = time.monotonic() - start

        assert elapsed >= 4 * 60 / 1200 - 0.01

    @pytest.mark.asyncio
    async def test_burst(self):
        """Bucket capacity allows an initial burst."""
        limiter = RateLimiter(per_minute=60, burst=3)

        waits = [await limiter.take() for _ in range(3)]

        assert waits == [0.0, 0.0, 0.0]
