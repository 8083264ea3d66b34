"""Seed production.

An expander turns one input record into seed URLs; the producer numbers the
seeds and resolves the collection field each one accumulates.
"""

from __future__ import annotations

import itertools
from typing import Any, Protocol
from urllib.parse import urlsplit

import jq

from list_foreach.config.options import RunOptions
from list_foreach.core.errors import ConfigurationError, SeedError
from list_foreach.core.types import Seed


class Expander(Protocol):
    """expand(record) -> seed URLs."""

    def expand(self, record: Any) -> list[str]: ...


class JqExpander:
    """Expand records with a jq program.

    Every value the program emits must be a string URL.

    Example:
        JqExpander('"https://compute.googleapis.com/compute/v1/projects/\\(.)/zones"')
    """

    def __init__(self, program: str) -> None:
        self.source = program
        try:
            self._program = jq.compile(program)
        except ValueError as e:
            raise ConfigurationError(f"invalid jq program {program!r}: {e}") from e

    def expand(self, record: Any) -> list[str]:
        try:
            values = self._program.input_value(record).all()
        except TypeError as e:
            # YAML tags like !!binary or !!set have no JSON form
            raise SeedError(f"record is not JSON: {e}", value=record) from e
        except ValueError as e:
            raise SeedError(f"jq program failed: {e}", value=record) from e

        for value in values:
            if not isinstance(value, str):
                raise SeedError(f"not string: {value!r}", value=value)
        return values


def resolve_collection(url: str, options: RunOptions) -> str | None:
    """Collection field for a seed URL.

    Explicit --collection wins; --auto-collection takes the last path segment
    (".../zones/us-central1-a/instances" -> "instances").
    """
    if options.collection:
        return options.collection
    if options.auto_collection:
        segment = urlsplit(url).path.split("/")[-1]
        return segment or None
    return None


class SeedProducer:
    """Number seeds in expansion order across the whole run."""

    def __init__(self, expander: Expander, options: RunOptions) -> None:
        self.expander = expander
        self.options = options
        self._counter = itertools.count()

    def seeds_for(self, record: Any) -> list[Seed]:
        """Expand one record into seeds.

        Raises:
            SeedError: A produced value is not a usable http(s) URL
        """
        seeds: list[Seed] = []
        for url in self.expander.expand(record):
            sequence = next(self._counter)
            _check_url(url, sequence)
            seeds.append(
                Seed(
                    sequence=sequence,
                    url=url,
                    input=record,
                    collection=resolve_collection(url, self.options),
                )
            )
        return seeds


def _check_url(url: str, sequence: int) -> None:
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise SeedError(f"malformed URL {url!r}: {e}", value=url, seq=sequence) from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise SeedError(f"malformed URL {url!r}", value=url, seq=sequence, url=url)
