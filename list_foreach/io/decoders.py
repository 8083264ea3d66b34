"""Input record decoders.

Each decoder is an iterator of records read lazily from a text stream:
- JsonStreamDecoder: concatenated JSON values (NDJSON or pretty-printed)
- YamlStreamDecoder: YAML documents separated by ---
- RawLineDecoder: one string per line
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import IO, Any

import yaml

from list_foreach.core.errors import DecodeError
from list_foreach.core.types import InputFormat


class JsonStreamDecoder:
    """Decode a stream of concatenated JSON values.

    Reads line by line so records are produced while input is still arriving.
    Only a value cut off at the end of the buffer waits for more input; a
    syntax error anywhere else fails at once.
    """

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._decoder = json.JSONDecoder()

    def __iter__(self) -> Iterator[Any]:
        buf = ""
        eof = False
        while True:
            buf = buf.lstrip()
            if not buf:
                if eof:
                    return
                chunk = _readline(self._stream)
                eof = not chunk
                buf += chunk
                continue

            try:
                value, end = self._decoder.raw_decode(buf)
            except json.JSONDecodeError as e:
                if eof or e.pos < len(buf.rstrip()):
                    raise DecodeError(f"invalid JSON input: {e}") from e
                chunk = _readline(self._stream)
                eof = not chunk
                buf += chunk
                continue

            # A value ending exactly at the buffer end may continue on the next
            # line (e.g. a number split across reads)
            if end == len(buf) and not eof:
                chunk = _readline(self._stream)
                if chunk:
                    buf += chunk
                    continue
                eof = True

            yield value
            buf = buf[end:]


class _PlainScalarLoader(yaml.SafeLoader):
    """SafeLoader that keeps unquoted timestamps as strings."""


_PlainScalarLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class YamlStreamDecoder:
    """Decode a stream of YAML documents.

    Records must map onto JSON values, so dates such as 2024-01-01 stay strings.
    """

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream

    def __iter__(self) -> Iterator[Any]:
        try:
            yield from yaml.load_all(self._stream, Loader=_PlainScalarLoader)
        except yaml.YAMLError as e:
            raise DecodeError(f"invalid YAML input: {e}") from e
        except UnicodeDecodeError as e:
            raise DecodeError(f"input is not valid UTF-8: {e}") from e


class RawLineDecoder:
    """Each input line is one string record, without its line ending."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream

    def __iter__(self) -> Iterator[Any]:
        while True:
            line = _readline(self._stream)
            if not line:
                return
            yield line.rstrip("\r\n")


def _readline(stream: IO[str]) -> str:
    try:
        return stream.readline()
    except UnicodeDecodeError as e:
        raise DecodeError(f"input is not valid UTF-8: {e}") from e


def make_decoder(input_format: InputFormat, stream: IO[str]) -> Iterator[Any]:
    """Create a record iterator for the given input framing."""
    if input_format == InputFormat.RAW:
        return iter(RawLineDecoder(stream))
    if input_format == InputFormat.YAML:
        return iter(YamlStreamDecoder(stream))
    return iter(JsonStreamDecoder(stream))
