"""Bounded-concurrency dispatcher with fail-fast cancellation.

The producer awaits submit() for every seed. A slot of the capacity pool is
acquired on the producer's task before the worker task is created, so with
parallelism=1 seeds start (and finish) in submission order.

The first failing job cancels the run: the shared `cancelled` event is set,
outstanding tasks are cancelled, further submits raise
DispatchCancelledError, and join() re-raises that first error once every
task has unwound.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from list_foreach.core.errors import DispatchCancelledError
from list_foreach.core.types import Seed
from list_foreach.observability.logger import get_logger

logger = get_logger(__name__)

Job = Callable[[Seed], Awaitable[None]]


class DispatchCoordinator:
    """Run one task per seed, at most `parallelism` at a time.

    Usage:
        coordinator = DispatchCoordinator(parallelism=4)
        try:
            for seed in seeds:
                await coordinator.submit(seed, job)
        except DispatchCancelledError:
            pass
        await coordinator.join()  # raises the first job error
    """

    def __init__(self, parallelism: int = 1, cancelled: asyncio.Event | None = None) -> None:
        if parallelism < 1:
            raise ValueError(f"parallelism must be >= 1, got {parallelism}")
        self.parallelism = parallelism
        self.cancelled = cancelled or asyncio.Event()
        self._semaphore = asyncio.Semaphore(parallelism)
        self._tasks: set[asyncio.Task[None]] = set()
        self._first_error: BaseException | None = None

    @property
    def active(self) -> int:
        """Number of in-flight tasks."""
        return len(self._tasks)

    @property
    def error(self) -> BaseException | None:
        """First error recorded for the run."""
        return self._first_error

    async def submit(self, seed: Seed, job: Job) -> None:
        """Wait for a free slot, then start job(seed) as a task.

        Raises:
            DispatchCancelledError: The run was cancelled before a slot was free
        """
        await self._acquire(seed)
        task = asyncio.create_task(self._run(seed, job), name=f"seed-{seed.sequence}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _acquire(self, seed: Seed) -> None:
        if self.cancelled.is_set():
            raise DispatchCancelledError(seq=seed.sequence, url=seed.url)

        acquire = asyncio.ensure_future(self._semaphore.acquire())
        cancel = asyncio.ensure_future(self.cancelled.wait())
        try:
            await asyncio.wait({acquire, cancel}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel.cancel()
            if not acquire.done():
                acquire.cancel()

        if acquire.done() and not acquire.cancelled():
            if not self.cancelled.is_set():
                return
            self._semaphore.release()
        raise DispatchCancelledError(seq=seed.sequence, url=seed.url)

    async def _run(self, seed: Seed, job: Job) -> None:
        try:
            await job(seed)
        except asyncio.CancelledError:
            logger.debug(f"seed {seed.sequence} cancelled")
            raise
        except Exception as e:
            self.fail(e)
        finally:
            self._semaphore.release()

    def fail(self, error: BaseException) -> None:
        """Record an error and cancel the run.

        Only the first error is kept; later ones are logged at debug level.
        """
        if self._first_error is not None:
            logger.debug(f"suppressed after cancellation: {type(error).__name__}: {error}")
            return

        self._first_error = error
        self.cancelled.set()
        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()

    async def join(self) -> None:
        """Wait for every outstanding task, then raise the first error."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._first_error is not None:
            raise self._first_error
