"""Raw HTTP dump for --log-http.

Each attempt buffers its request and response text and writes the whole
buffer at once, so dumps from concurrent workers never interleave.

Usage:
    wire = WireDump()
    with wire.attempt() as buf:
        buf.request("GET", url, headers)
        response = await client.get(...)
        buf.response(response)
    # flushed here, also when the request raised
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import IO, TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from list_foreach.http.client import HttpResponse


class WireBuffer:
    """Text buffer for one request/response exchange."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def request(self, method: str, url: str, headers: Mapping[str, str]) -> None:
        parts = urlsplit(url)
        target = parts.path or "/"
        if parts.query:
            target = f"{target}?{parts.query}"
        lines = [f"{method} {target} HTTP/1.1", f"Host: {parts.netloc}"]
        lines.extend(f"{k}: {_redact(k, v)}" for k, v in headers.items())
        self._parts.append("\r\n".join(lines) + "\r\n\r\n")

    def response(self, response: HttpResponse) -> None:
        lines = [f"HTTP/1.1 {response.status} {response.reason}".rstrip()]
        lines.extend(f"{k}: {v}" for k, v in response.headers.items())
        body = response.body.decode("utf-8", errors="replace")
        self._parts.append("\r\n".join(lines) + "\r\n\r\n" + body)
        if body and not body.endswith("\n"):
            self._parts.append("\n")

    def getvalue(self) -> str:
        return "".join(self._parts)


def _redact(name: str, value: str) -> str:
    if name.lower() == "authorization":
        scheme, _, _ = value.partition(" ")
        return f"{scheme} <redacted>"
    return value


class WireDump:
    """Mutex-guarded sink for raw HTTP dumps."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    @contextmanager
    def attempt(self) -> Iterator[WireBuffer]:
        buf = WireBuffer()
        try:
            yield buf
        finally:
            self.write(buf.getvalue())

    def write(self, text: str) -> None:
        if not text:
            return
        stream = self._stream or sys.stderr
        with self._lock:
            stream.write(text)
            stream.flush()
