"""Detection of closed value sets on primitive schemas."""

from __future__ import annotations

from typing import Optional

from .errors import UnsupportedSchemaError
from .json_types import JSONObject
from .model_types import Enumeration, IntegerEnumeration, StringEnumeration
from .schema_kinds import IntegerShape, StringShape, classify_schema


def discover_enumeration(node: JSONObject) -> Optional[Enumeration]:
    """Return the enumeration a string or integer schema declares, if any.

    A non-empty ``enum`` list is the only trigger; ``null`` members are
    dropped. Any other schema kind yields ``None``.
    """
    shape = classify_schema(node)
    if not isinstance(shape, (StringShape, IntegerShape)):
        return None
    raw = node.get("enum")
    if not isinstance(raw, list):
        return None
    literals = [value for value in raw if value is not None]
    if not literals:
        return None

    if isinstance(shape, StringShape):
        return StringEnumeration(values=tuple(str(value) for value in literals))

    values: list[int] = []
    for value in literals:
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnsupportedSchemaError(f"Integer enum contains non-integer literal {value!r}")
        values.append(value)
    return IntegerEnumeration(values=tuple(values))
