"""Input reader: blocking record iterator -> awaitable records.

Decoders read stdin synchronously. The reader pulls one record at a time on a
daemon thread, so a read that is still blocked when the run fails neither
stalls the event loop nor keeps the process alive.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterator
from typing import Any

EOF = object()


class RecordReader:
    """Read records on demand from a blocking iterator.

    Usage:
        reader = RecordReader(iter(decoder))
        while (record := await reader.next(cancelled)) is not EOF:
            ...

    Records are read only when asked for, never ahead. Errors raised by the
    iterator are re-raised from next().
    """

    def __init__(self, records: Iterator[Any]) -> None:
        self._records = records
        self._requests = threading.Semaphore(0)
        self._results: asyncio.Queue[tuple[Any, BaseException | None]] = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        self._done = False
        self._thread = threading.Thread(target=self._read, name="list-foreach-input", daemon=True)
        self._thread.start()

    def _read(self) -> None:
        while True:
            self._requests.acquire()
            try:
                item: tuple[Any, BaseException | None] = (next(self._records, EOF), None)
            except Exception as e:
                item = (None, e)
            try:
                self._loop.call_soon_threadsafe(self._results.put_nowait, item)
            except RuntimeError:
                # Loop closed: the run ended while this read was blocked
                return
            if item[0] is EOF or item[1] is not None:
                return

    async def next(self, cancelled: asyncio.Event) -> Any:
        """Next record, or EOF at end of input or once the run is cancelled.

        Raises:
            Exception: Whatever the underlying iterator raised (e.g. DecodeError)
        """
        if self._done or cancelled.is_set():
            return EOF

        self._requests.release()
        get = asyncio.ensure_future(self._results.get())
        cancel = asyncio.ensure_future(cancelled.wait())
        try:
            await asyncio.wait({get, cancel}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel.cancel()
            if not get.done():
                get.cancel()

        if not get.done() or get.cancelled():
            # Cancelled while blocked on input; the pending read is abandoned
            self._done = True
            return EOF

        value, error = get.result()
        if error is not None:
            self._done = True
            raise error
        if value is EOF:
            self._done = True
        return value
