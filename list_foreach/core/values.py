"""Typed accessors for decoded JSON values.

Response bodies are arbitrary JSON. These helpers read one field and check its
type, raising ShapeError instead of silently skipping a mismatch. A JSON null
counts as absent.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from .errors import DecodeError, ShapeError


def decode_mapping(body: bytes | str, **context: Any) -> dict[str, Any]:
    """Decode a response body that must be a JSON object.

    Args:
        body: Raw response body
        **context: seq/url forwarded to the raised error

    Raises:
        DecodeError: Body is not valid JSON or not an object
    """
    try:
        value = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"response is not valid JSON: {e}", **context) from e
    return require_mapping(value, **context)


def require_mapping(value: Any, **context: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(
            f"expected a JSON object, got {type_name(value)}",
            **context,
        )
    return value


def get_list(obj: Mapping[str, Any], key: str, **context: Any) -> list[Any] | None:
    """Read an array-valued field.

    Returns:
        The list, or None if the field is absent or null

    Raises:
        ShapeError: Field is present with a non-array value
    """
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ShapeError(
            f"field {key!r} is {type_name(value)}, expected array",
            field=key,
            expected="array",
            value=value,
            **context,
        )
    return value


def get_string(obj: Mapping[str, Any], key: str, **context: Any) -> str | None:
    """Read a string-valued field.

    Returns:
        The string, or None if the field is absent or null

    Raises:
        ShapeError: Field is present with a non-string value
    """
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ShapeError(
            f"field {key!r} is {type_name(value)}, expected string",
            field=key,
            expected="string",
            value=value,
            **context,
        )
    return value


def type_name(value: Any) -> str:
    """JSON type name of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
