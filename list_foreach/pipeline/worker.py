"""Pagination worker: fetch every page of one seed's collection.

State machine per seed:

    REQUESTING -> CLASSIFYING -> RETRYING   -> REQUESTING (same cursor)
                              -> PAGINATING -> REQUESTING (next cursor)
                              -> TERMINAL

Status routing:
- 200: paginate
- 429 and any status that is not 4xx: retry under the backoff schedule
- other 4xx: terminal, the error body becomes the result
- transport failure: fatal, not retried
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from list_foreach.config.constants import (
    BILLING_PROJECT_HEADER,
    NEXT_PAGE_TOKEN_FIELD,
    PAGE_TOKEN_PARAM,
)
from list_foreach.config.options import RunOptions
from list_foreach.core.errors import (
    PaginationLoopError,
    RetryableStatusError,
    RetryExhaustedError,
    classify_status,
)
from list_foreach.core.types import Result, Seed, WorkerState
from list_foreach.core.values import decode_mapping, get_list, get_string
from list_foreach.http.client import HttpClient, HttpResponse
from list_foreach.observability.logger import get_logger, log_context
from list_foreach.observability.metrics import RunMetrics
from list_foreach.resilience.backoff import BackoffPolicy
from list_foreach.resilience.rate_limiter import RateLimiter

logger = get_logger(__name__)


@dataclass
class WorkerContext:
    """Handles shared by every worker of a run."""

    client: HttpClient
    options: RunOptions
    limiter: RateLimiter
    backoff: BackoffPolicy
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    metrics: RunMetrics = field(default_factory=RunMetrics)


def page_url(url: str, page_token: str) -> str:
    """Seed URL with the pageToken query parameter appended.

    The URL is returned unchanged for the first page (empty token).
    """
    if not page_token:
        return url
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((PAGE_TOKEN_PARAM, page_token))
    return urlunsplit(parts._replace(query=urlencode(query)))


class PaginationWorker:
    """Fetch and merge all pages for one seed.

    The cursor, the accumulated collection and the state belong to this
    worker only.
    """

    def __init__(self, seed: Seed, context: WorkerContext) -> None:
        self.seed = seed
        self.ctx = context
        self.state = WorkerState.REQUESTING
        self.page_token = ""
        self.collection: list[Any] = []
        self.pages = 0
        self._seen_tokens: set[str] = set()

    async def run(self) -> Result | None:
        """Run the state machine to completion.

        Returns:
            The seed's Result, or None for a dry run or a dropped error response
        """
        options = self.ctx.options
        with log_context(seq=self.seed.sequence):
            while True:
                response = await self._fetch_page()
                if response is None:
                    return None

                self.state = WorkerState.PAGINATING
                body = decode_mapping(response.body, **self._error_context())

                if options.filter_errors and response.status != 200:
                    self.state = WorkerState.TERMINAL
                    self.ctx.metrics.record_dropped()
                    return None

                name = self.seed.collection
                if name is None or response.status != 200:
                    self.state = WorkerState.TERMINAL
                    return Result(input=self.seed.input, response=body)

                self.pages += 1
                self.ctx.metrics.record_page()

                items = get_list(body, name, **self._error_context())
                if items:
                    self.collection.extend(items)

                next_token = get_string(body, NEXT_PAGE_TOKEN_FIELD, **self._error_context())
                if next_token:
                    self._advance(next_token)
                    continue

                self.state = WorkerState.TERMINAL
                # Leave the response empty if nothing was collected
                merged: dict[str, Any] = {}
                if self.collection:
                    merged[name] = self.collection
                return Result(input=self.seed.input, response=merged)

    def _advance(self, next_token: str) -> None:
        if next_token in self._seen_tokens:
            raise PaginationLoopError(
                page_token=next_token,
                seq=self.seed.sequence,
                url=self.seed.url,
            )
        self._seen_tokens.add(next_token)
        self.page_token = next_token

    async def _fetch_page(self) -> HttpResponse | None:
        """Request the current page, retrying per the backoff schedule.

        Returns:
            A 200 or terminal 4xx response, or None in dry-run mode

        Raises:
            TransportError: The request could not be sent
            RetryExhaustedError: The backoff schedule ran out
        """
        options = self.ctx.options
        seq = self.seed.sequence
        url = page_url(self.seed.url, self.page_token)
        headers: dict[str, str] = {}
        if options.billing_project:
            headers[BILLING_PROJECT_HEADER] = options.billing_project

        self.state = WorkerState.REQUESTING
        if not options.execute or options.verbose:
            logger.info(f"do url[{seq}]: GET {url}")
        if not options.execute:
            return None

        controller = self.ctx.backoff.start(self.ctx.cancelled)
        last_status: int | None = None
        while await controller.should_continue():
            self.state = WorkerState.REQUESTING
            with log_context(attempt=controller.attempts):
                response = await self._send(url, headers)

                self.state = WorkerState.CLASSIFYING
                try:
                    return self._classify(response, url)
                except RetryableStatusError as e:
                    self.state = WorkerState.RETRYING
                    last_status = e.status
                    self.ctx.metrics.record_retry(response.status)
                    logger.warning(f"retry url[{seq}]: GET {url}, reason: {_status_text(response)}")

        raise RetryExhaustedError(
            attempts=controller.attempts,
            last_status=last_status,
            seq=seq,
            url=url,
        )

    async def _send(self, url: str, headers: dict[str, str]) -> HttpResponse:
        """One physical request, rate limited."""
        await self.ctx.limiter.take()
        self.ctx.metrics.record_request()
        return await self.ctx.client.get(url, headers)

    def _classify(self, response: HttpResponse, url: str) -> HttpResponse:
        decision = classify_status(response.status)
        if decision == "retry":
            raise RetryableStatusError(
                _status_text(response),
                status=response.status,
                seq=self.seed.sequence,
                url=url,
            )
        if decision == "terminal":
            self.ctx.metrics.record_client_error()
            logger.warning(
                f"error url[{self.seed.sequence}]: GET {url}, reason: {_status_text(response)}"
            )
        return response

    def _error_context(self) -> dict[str, Any]:
        return {"seq": self.seed.sequence, "url": page_url(self.seed.url, self.page_token)}


def _status_text(response: HttpResponse) -> str:
    return f"{response.status} {response.reason}".rstrip()
