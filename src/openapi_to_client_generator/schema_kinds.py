"""Closed set of schema shapes the resolver understands.

``classify_schema`` maps a raw schema node onto exactly one shape. Resolvers
dispatch over ``SchemaShape`` with ``match`` and ``assert_never`` so a new
shape cannot be added without every resolver handling it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .json_types import JSONObject, as_object, object_items, string_list
from .references import ref_name, reference_of


@dataclass(frozen=True)
class ReferenceShape:
    reference: str
    name: str


@dataclass(frozen=True)
class StringShape:
    pass


@dataclass(frozen=True)
class IntegerShape:
    pass


@dataclass(frozen=True)
class NumberShape:
    pass


@dataclass(frozen=True)
class BooleanShape:
    pass


@dataclass(frozen=True)
class ArrayShape:
    items: Optional[JSONObject]


@dataclass(frozen=True)
class ObjectShape:
    properties: tuple[tuple[str, JSONObject], ...] = ()
    required: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class AllOfShape:
    branches: tuple[JSONObject, ...]


@dataclass(frozen=True)
class OneOfShape:
    branches: tuple[JSONObject, ...]


@dataclass(frozen=True)
class UnsupportedShape:
    description: str


type SchemaShape = Union[
    ReferenceShape,
    StringShape,
    IntegerShape,
    NumberShape,
    BooleanShape,
    ArrayShape,
    ObjectShape,
    AllOfShape,
    OneOfShape,
    UnsupportedShape,
]

_PRIMITIVE_SHAPES: dict[str, Union[StringShape, IntegerShape, NumberShape, BooleanShape]] = {
    "string": StringShape(),
    "integer": IntegerShape(),
    "number": NumberShape(),
    "boolean": BooleanShape(),
}


def classify_schema(node: JSONObject) -> SchemaShape:
    """Classify a schema node into one of the supported shapes.

    Args:
        node (JSONObject): Raw schema node from the OpenAPI document.

    Returns:
        SchemaShape: The matching shape; ``UnsupportedShape`` describes
        anything outside the supported subset.
    """
    reference = reference_of(node)
    if reference is not None:
        return ReferenceShape(reference=reference, name=ref_name(reference))

    branches = _composition_branches(node, "allOf")
    if branches is not None:
        return AllOfShape(branches=branches)
    branches = _composition_branches(node, "oneOf")
    if branches is not None:
        return OneOfShape(branches=branches)
    for keyword in ("anyOf", "not"):
        if keyword in node:
            return UnsupportedShape(description=f"composition keyword {keyword!r}")

    schema_type = node.get("type")
    if isinstance(schema_type, list):
        non_null = [member for member in schema_type if member != "null"]
        if len(non_null) != 1:
            return UnsupportedShape(description=f"type list {schema_type!r}")
        schema_type = non_null[0]

    if schema_type is None or schema_type == "object":
        return ObjectShape(
            properties=tuple(object_items(node.get("properties"))),
            required=frozenset(string_list(node.get("required"))),
        )
    if schema_type == "array":
        return ArrayShape(items=as_object(node.get("items")))
    if isinstance(schema_type, str) and schema_type in _PRIMITIVE_SHAPES:
        return _PRIMITIVE_SHAPES[schema_type]
    return UnsupportedShape(description=f"type {schema_type!r}")


def is_nullable(node: JSONObject) -> bool:
    """Return whether a schema explicitly admits null."""
    if node.get("nullable") is True:
        return True
    schema_type = node.get("type")
    return isinstance(schema_type, list) and "null" in schema_type


def _composition_branches(node: JSONObject, keyword: str) -> Optional[tuple[JSONObject, ...]]:
    raw = node.get(keyword)
    if not isinstance(raw, list) or not raw:
        return None
    return tuple(item for item in raw if isinstance(item, dict))
