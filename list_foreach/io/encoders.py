"""Output record encoders."""

from __future__ import annotations

import json
from typing import Any, Protocol

import yaml

from list_foreach.core.types import OutputFormat


class Encoder(Protocol):
    """Turns one output record into text, including its separator."""

    def encode(self, record: Any) -> str: ...


class JsonEncoder:
    """Compact JSON, one record per line, keys sorted."""

    def encode(self, record: Any) -> str:
        return (
            json.dumps(
                record,
                ensure_ascii=False,
                separators=(",", ":"),
                sort_keys=True,
                default=str,
            )
            + "\n"
        )


class YamlEncoder:
    """YAML documents separated by ---."""

    def __init__(self) -> None:
        self._documents = 0

    def encode(self, record: Any) -> str:
        text = yaml.safe_dump(
            record,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=True,
        )
        if self._documents:
            text = "---\n" + text
        self._documents += 1
        return text


def make_encoder(output_format: OutputFormat) -> Encoder:
    """Create an encoder for the given output format."""
    if output_format == OutputFormat.YAML:
        return YamlEncoder()
    return JsonEncoder()
