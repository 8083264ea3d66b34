"""Shared types for list-foreach.

These types flow between the seed producer, the workers and the emitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class WorkerState(str, Enum):
    """Pagination worker states."""

    REQUESTING = "requesting"
    CLASSIFYING = "classifying"
    RETRYING = "retrying"
    PAGINATING = "paginating"
    TERMINAL = "terminal"


class InputFormat(str, Enum):
    """Input framing."""

    JSON = "json"
    YAML = "yaml"
    RAW = "raw"


class OutputFormat(str, Enum):
    """Output encoding."""

    JSON = "json"
    YAML = "yaml"


@dataclass(frozen=True)
class Seed:
    """One request URL derived from one input record.

    `collection` is the field accumulated across pages, resolved when the
    seed is produced (explicit option or inferred from the URL path).
    """

    sequence: int
    url: str
    input: Any
    collection: str | None = None


@dataclass(frozen=True)
class Result:
    """Output record for one seed."""

    input: Any
    response: Any

    def to_dict(self) -> dict[str, Any]:
        """Output record shape: {"input": ..., "response": ...}."""
        return {"input": self.input, "response": self.response}
