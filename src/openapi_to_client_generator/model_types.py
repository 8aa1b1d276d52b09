"""Internal datatypes produced by resolution and consumed by emission."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import InvalidModelError


class TypeKind(Enum):
    """Kinds of type references a property or parameter can carry."""

    PRIMITIVE = "primitive"
    MODEL = "model"
    ARRAY = "array"


_PRIMITIVE_ANNOTATIONS: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "datetime": "datetime",
}


@dataclass(frozen=True)
class TypeRef:
    """Reference to a primitive tag, a model by name, or an array of another reference."""

    kind: TypeKind
    name: Optional[str] = None
    item: Optional[TypeRef] = None

    @classmethod
    def primitive(cls, tag: str) -> TypeRef:
        if tag not in _PRIMITIVE_ANNOTATIONS:
            raise ValueError(f"Unknown primitive type tag: {tag}")
        return cls(kind=TypeKind.PRIMITIVE, name=tag)

    @classmethod
    def model(cls, name: str) -> TypeRef:
        return cls(kind=TypeKind.MODEL, name=name)

    @classmethod
    def array(cls, item: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.ARRAY, item=item)

    def annotation(self) -> str:
        """Render the reference as a Python annotation expression."""
        if self.kind is TypeKind.ARRAY:
            if self.item is None:
                raise ValueError("Array type reference is missing its item type")
            return f"list[{self.item.annotation()}]"
        if self.name is None:
            raise ValueError(f"{self.kind.value} type reference is missing its name")
        if self.kind is TypeKind.PRIMITIVE:
            return _PRIMITIVE_ANNOTATIONS[self.name]
        return self.name

    def model_names(self) -> set[str]:
        """Return every model name this reference mentions."""
        if self.kind is TypeKind.ARRAY:
            return self.item.model_names() if self.item is not None else set()
        if self.kind is TypeKind.MODEL and self.name is not None:
            return {self.name}
        return set()


@dataclass(frozen=True)
class StringEnumeration:
    """Closed set of string literals in declaration order."""

    values: tuple[str, ...]


@dataclass(frozen=True)
class IntegerEnumeration:
    """Closed set of integer literals in declaration order."""

    values: tuple[int, ...]


@dataclass(frozen=True)
class TaggedUnion:
    """Ordered member model names of a ``oneOf`` union."""

    members: tuple[str, ...]


type Enumeration = Union[StringEnumeration, IntegerEnumeration, TaggedUnion]


@dataclass(frozen=True)
class Property:
    """A named field owned by one struct model.

    ``required`` says whether the field may be absent from the payload;
    ``nullable`` says whether it may be present with an explicit null.
    """

    name: str
    safe_name: str
    type: TypeRef
    required: bool
    nullable: bool
    description: Optional[str] = None

    @property
    def optional(self) -> bool:
        return not self.required or self.nullable


@dataclass(frozen=True)
class Model:
    """A resolved, uniquely named type: alias, enumeration, tagged union or struct."""

    name: str
    description: Optional[str] = None
    alias_type: Optional[TypeRef] = None
    enumeration: Optional[Enumeration] = None
    properties: Optional[tuple[Property, ...]] = None

    def __post_init__(self) -> None:
        populated = [
            value
            for value in (self.alias_type, self.enumeration, self.properties)
            if value is not None
        ]
        if len(populated) != 1:
            raise InvalidModelError(
                f"Model {self.name} must set exactly one of alias_type, enumeration "
                f"or properties, got {len(populated)}"
            )

    @property
    def is_struct(self) -> bool:
        return self.properties is not None


class ParameterLocation(Enum):
    """Binding site of an operation parameter."""

    PATH = "path"
    QUERY = "query"


@dataclass(frozen=True)
class Parameter:
    """A typed value bound to the URL path or the query string of an operation."""

    type_name: str
    original_name: str
    name: str
    safe_name: str
    type: TypeRef
    required: bool
    location: ParameterLocation
    description: Optional[str] = None


class HttpMethod(Enum):
    """HTTP methods in the order they are read from a path item."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"

    @property
    def has_json_body(self) -> bool:
        return self in _BODY_METHODS


_BODY_METHODS = frozenset({HttpMethod.PUT, HttpMethod.POST, HttpMethod.PATCH})


@dataclass(frozen=True)
class Operation:
    """One HTTP method bound to one path, with resolved parameters and models."""

    name: str
    path: str
    method: HttpMethod
    description: str
    path_parameters: tuple[Parameter, ...]
    query_parameters: tuple[Parameter, ...]
    request_model: Optional[str] = None
    response_model: Optional[str] = None

    @property
    def parameters(self) -> tuple[Parameter, ...]:
        return (*self.path_parameters, *self.query_parameters)


@dataclass(frozen=True)
class Resource:
    """Operations grouped by the literal path they were declared on."""

    path: str
    operations: tuple[str, ...]


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_dir: str
    model_count: int
    operation_count: int
    warnings: tuple[str, ...]
    formatted: bool
