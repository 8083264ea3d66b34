"""Tests for list_foreach/pipeline/dispatcher.py."""

import asyncio
import random

import pytest

from list_foreach.core.errors import DispatchCancelledError
from list_foreach.pipeline.dispatcher import DispatchCoordinator

from .fixtures.fakes import make_seed


def seeds(n: int):
    return [make_seed(sequence=i) for i in range(n)]


class TestConcurrency:
    """Tests for bounded concurrency and ordering."""

    def test_invalid_parallelism(self):
        """Parallelism below 1 is rejected."""
        with pytest.raises(ValueError):
            DispatchCoordinator(parallelism=0)

    @pytest.mark.asyncio
    async def test_sequential_preserves_order(self):
        """With parallelism=1 jobs finish in submission order."""
        finished = []

        async def job(seed):
            await asyncio.sleep(random.uniform(0, 0.01))
            finished.append(seed.sequence)

        coordinator = DispatchCoordinator(parallelism=1)
        for seed in seeds(10):
            await coordinator.submit(seed, job)
        await coordinator.join()

        assert finished == list(range(10))

    @pytest.mark.asyncio
    async def test_bounded_in_flight(self):
        """No more than `parallelism` jobs run at once."""
        running = 0
        peak = 0

        async def job(seed):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        coordinator = DispatchCoordinator(parallelism=3)
        for seed in seeds(12):
            await coordinator.submit(seed, job)
            assert coordinator.active <= 3
        await coordinator.join()

        assert peak == 3
        assert coordinator.active == 0

    @pytest.mark.asyncio
    async def test_join_without_jobs(self):
        """join() returns at once when nothing was submitted."""
        await DispatchCoordinator().join()


class TestFailFast:
    """Tests for first-error cancellation."""

    @pytest.mark.asyncio
    async def test_first_error_cancels_others(self):
        """One failing job cancels the rest and join() re-raises its error."""
        cancelled = []

        async def job(seed):
            if seed.sequence == 2:
                await asyncio.sleep(0.01)
                raise ValueError("boom")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(seed.sequence)
                raise

        coordinator = DispatchCoordinator(parallelism=5)
        for seed in seeds(5):
            await coordinator.submit(seed, job)

        with pytest.raises(ValueError, match="boom"):
            await asyncio.wait_for(coordinator.join(), timeout=5)

        assert sorted(cancelled) == [0, 1, 3, 4]
        assert coordinator.cancelled.is_set()
        assert coordinator.active == 0

    @pytest.mark.asyncio
    async def test_only_first_error_kept(self):
        """Later failures do not replace the first one."""

        async def job(seed):
            await asyncio.sleep(0.001 * seed.sequence)
            raise RuntimeError(f"failure {seed.sequence}")

        coordinator = DispatchCoordinator(parallelism=2)
        with pytest.raises(DispatchCancelledError):
            for seed in seeds(4):
                await coordinator.submit(seed, job)

        with pytest.raises(RuntimeError, match="failure 0"):
            await coordinator.join()

    @pytest.mark.asyncio
    async def test_submit_after_cancel(self):
        """Submitting to a cancelled run raises DispatchCancelledError."""
        coordinator = DispatchCoordinator(parallelism=1)
        coordinator.cancelled.set()

        async def job(seed):
            raise AssertionError("must not run")

        with pytest.raises(DispatchCancelledError):
            await coordinator.submit(make_seed(), job)

        await coordinator.join()

    @pytest.mark.asyncio
    async def test_blocked_submit_wakes_on_cancel(self):
        """A submit waiting for a slot returns once the run is cancelled."""
        started = asyncio.Event()

        async def job(seed):
            started.set()
            await asyncio.sleep(10)

        coordinator = DispatchCoordinator(parallelism=1)
        await coordinator.submit(make_seed(sequence=0), job)
        await started.wait()

        waiting = asyncio.create_task(coordinator.submit(make_seed(sequence=1), job))
        await asyncio.sleep(0.01)
        assert not waiting.done()

        coordinator.fail(RuntimeError("stop"))
        with pytest.raises(DispatchCancelledError):
            await asyncio.wait_for(waiting, timeout=5)

        with pytest.raises(RuntimeError, match="stop"):
            await coordinator.join()
