"""``$ref`` pointer handling."""

from __future__ import annotations

from typing import Optional

from .errors import InvalidReferenceError
from .json_types import JSONObject


def ref_name(reference: str) -> str:
    """Return the model name a pointer designates: its final path segment.

    Args:
        reference (str): Pointer such as ``#/components/schemas/Environment``.

    Returns:
        str: The decoded final segment, e.g. ``Environment``.
    """
    segments = [segment for segment in reference.split("/") if segment and segment != "#"]
    if not segments:
        raise InvalidReferenceError(f"Reference has no name segment: {reference!r}")
    return segments[-1].replace("~1", "/").replace("~0", "~")


def reference_of(node: JSONObject) -> Optional[str]:
    """Return the ``$ref`` string of a node, or ``None`` for inline nodes."""
    value = node.get("$ref")
    if isinstance(value, str):
        return value
    return None
