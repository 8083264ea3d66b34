"""Run lifecycle: records -> seeds -> workers -> results.

Pipeline flow:
1. Read the next input record (blocking reads happen on a reader thread)
2. Expand it into numbered seeds
3. Submit each seed to the dispatcher (waits for a free slot)
4. Each worker paginates its seed and hands the result to the emitter
5. On the first fatal error, stop reading, unwind all workers, re-raise
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from list_foreach.config.options import RunOptions
from list_foreach.core.errors import DispatchCancelledError
from list_foreach.core.types import Seed
from list_foreach.http.client import HttpClient
from list_foreach.observability.logger import get_logger
from list_foreach.observability.metrics import RunMetrics
from list_foreach.resilience.backoff import BackoffPolicy, ExponentialBackoff
from list_foreach.resilience.rate_limiter import RateLimiter

from .dispatcher import DispatchCoordinator, Job
from .emitter import ResultEmitter
from .reader import EOF, RecordReader
from .seeds import Expander, SeedProducer
from .worker import PaginationWorker, WorkerContext

logger = get_logger(__name__)


def build_backoff(options: RunOptions) -> ExponentialBackoff:
    """Backoff policy for the run's options."""
    return ExponentialBackoff(
        min_interval=options.backoff_min_interval,
        max_interval=options.backoff_max_interval,
        jitter=options.backoff_jitter,
        max_retries=options.max_retries,
    )


@dataclass
class Runner:
    """One list-foreach run.

    Usage:
        runner = Runner(options=options, expander=JqExpander(program), client=client)
        metrics = await runner.run(make_decoder(options.input_format, sys.stdin))
    """

    options: RunOptions
    expander: Expander
    client: HttpClient
    emitter: ResultEmitter = field(default_factory=ResultEmitter)
    metrics: RunMetrics = field(default_factory=RunMetrics)

    # Built from options when not given
    backoff: BackoffPolicy | None = None
    limiter: RateLimiter | None = None

    def __post_init__(self) -> None:
        if self.backoff is None:
            self.backoff = build_backoff(self.options)
        if self.limiter is None:
            self.limiter = RateLimiter(per_minute=self.options.rate_limit_per_minute)
    async def run(self, records: Iterable[Any]) -> RunMetrics:
        """Process every record.

        Returns:
            Metrics for the run

        Raises:
            ListForEachError: The first fatal error, after all workers unwound
        """
        cancelled = asyncio.Event()
        coordinator = DispatchCoordinator(self.options.parallelism, cancelled)
        context = WorkerContext(
            client=self.client,
            options=self.options,
            limiter=self.limiter,
            backoff=self.backoff,
            cancelled=cancelled,
            metrics=self.metrics,
        )
        producer = SeedProducer(self.expander, self.options)

        async def job(seed: Seed) -> None:
            result = await PaginationWorker(seed, context).run()
            if result is not None:
                self.emitter.emit(result)
                self.metrics.record_result()

        try:
            reader = RecordReader(iter(records))
            await self._produce(reader, producer, coordinator, job)
            await coordinator.join()
        except Exception as e:
            self.metrics.record_error(type(e).__name__)
            raise
        finally:
            self.metrics.complete()
            if self.options.verbose:
                logger.info(self.metrics.to_summary())

        return self.metrics

    async def _produce(
        self,
        reader: RecordReader,
        producer: SeedProducer,
        coordinator: DispatchCoordinator,
        job: Job,
    ) -> None:
        """Feed seeds to the coordinator until input ends or the run is cancelled."""
        try:
            while True:
                record = await reader.next(coordinator.cancelled)
                if record is EOF:
                    return
                for seed in producer.seeds_for(record):
                    self.metrics.record_seed()
                    await coordinator.submit(seed, job)
        except DispatchCancelledError:
            logger.debug("input stopped after cancellation")
        except Exception as e:
            # Decode and seed errors abort the run like worker errors
            coordinator.fail(e)
