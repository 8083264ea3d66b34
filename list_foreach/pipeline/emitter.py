"""Result emitter: one encoded record per seed on the output stream."""

from __future__ import annotations

import sys
import threading
from typing import IO

from list_foreach.core.types import Result
from list_foreach.io.encoders import Encoder, JsonEncoder


class ResultEmitter:
    """Write results under a lock so encoded records never interleave.

    Records are written in the order workers complete.
    """

    def __init__(self, encoder: Encoder | None = None, stream: IO[str] | None = None) -> None:
        self.encoder = encoder or JsonEncoder()
        self._stream = stream
        self._lock = threading.Lock()
        self.count = 0

    def emit(self, result: Result) -> None:
        stream = self._stream or sys.stdout
        with self._lock:
            stream.write(self.encoder.encode(result.to_dict()))
            stream.flush()
            self.count += 1
