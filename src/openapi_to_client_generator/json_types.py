"""JSON-compatible typing aliases and narrowing helpers shared across the project."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional, Union

type JSONPrimitive = Union[str, int, float, bool, None]
type JSONValue = JSONPrimitive | list[JSONValue] | Mapping[str, JSONValue]
type JSONObject = Mapping[str, JSONValue]
type MutableJSONObject = dict[str, JSONValue]


def as_object(value: JSONValue) -> Optional[JSONObject]:
    """Return ``value`` when it is a JSON object, otherwise ``None``."""
    if isinstance(value, Mapping):
        return value
    return None


def object_items(value: JSONValue) -> list[tuple[str, JSONObject]]:
    """Return the ``(key, object)`` pairs of a mapping, skipping non-object values."""
    if not isinstance(value, Mapping):
        return []
    return [
        (key, item)
        for key, item in value.items()
        if isinstance(key, str) and isinstance(item, Mapping)
    ]


def string_list(value: JSONValue) -> list[str]:
    """Return the string members of a JSON array in declaration order."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def optional_string(value: JSONValue) -> Optional[str]:
    """Return a stripped non-empty string, or ``None``."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None
