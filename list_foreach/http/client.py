"""HTTP client used by the pagination workers.

Workers only depend on the HttpClient protocol: `get(url, headers)` returning
an HttpResponse with the body fully read. AiohttpClient is the production
implementation; it attaches credentials itself so workers never see them.

Usage:
    async with AiohttpClient(auth=GoogleAuth.from_default()) as client:
        response = await client.get("https://compute.googleapis.com/...", {})
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import aiohttp

from list_foreach.config.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from list_foreach.core.errors import TransportError
from list_foreach.observability.wire import WireDump

from .auth import Auth


@dataclass(frozen=True)
class HttpResponse:
    """A response whose body has been read completely."""

    status: int
    body: bytes = b""
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)


@runtime_checkable
class HttpClient(Protocol):
    """Minimal client contract for the workers."""

    async def get(self, url: str, headers: Mapping[str, str]) -> HttpResponse:
        """Send a GET request and read the whole body.

        Raises:
            TransportError: The request could not be completed
        """
        ...

    async def close(self) -> None: ...


class AiohttpClient:
    """HttpClient backed by a shared aiohttp session."""

    def __init__(
        self,
        auth: Auth | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        wire: WireDump | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            auth: Credential source (None = unauthenticated requests)
            timeout: Total timeout per request in seconds
            user_agent: User-Agent header value
            wire: Raw dump of every exchange as sent (None = off)
        """
        self.auth = auth
        self.timeout = timeout
        self.user_agent = user_agent
        self.wire = wire

        # Session
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AiohttpClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def get(self, url: str, headers: Mapping[str, str]) -> HttpResponse:
        request_headers = dict(headers)
        if self.auth is not None:
            request_headers.update(await self.auth.headers())

        if self.wire is None:
            return await self._send(url, request_headers)

        # Session default headers are sent too
        with self.wire.attempt() as buf:
            buf.request("GET", url, {"User-Agent": self.user_agent, **request_headers})
            response = await self._send(url, request_headers)
            buf.response(response)
            return response

    async def _send(self, url: str, headers: dict[str, str]) -> HttpResponse:
        session = await self._get_session()
        try:
            async with session.get(url, headers=headers) as resp:
                body = await resp.read()
                return HttpResponse(
                    status=resp.status,
                    body=body,
                    reason=resp.reason or "",
                    headers=dict(resp.headers),
                )
        except asyncio.TimeoutError as e:
            raise TransportError(f"GET {url} timed out after {self.timeout}s", url=url) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise TransportError(f"GET {url} failed: {e}", url=url) from e
