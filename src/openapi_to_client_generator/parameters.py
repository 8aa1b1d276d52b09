"""Resolve path and query parameter definitions into typed parameters."""

from __future__ import annotations

import logging
from typing import assert_never

from .context import ResolutionContext
from .enumerations import discover_enumeration
from .errors import MissingReferenceError, UnsupportedReferenceError, UnsupportedSchemaError
from .json_types import JSONObject, as_object, object_items, optional_string
from .model_types import Parameter, ParameterLocation, TypeRef
from .naming import argument_name, safe_identifier
from .references import ref_name, reference_of
from .schema_kinds import (
    AllOfShape,
    ArrayShape,
    BooleanShape,
    IntegerShape,
    NumberShape,
    ObjectShape,
    OneOfShape,
    ReferenceShape,
    StringShape,
    UnsupportedShape,
    classify_schema,
)
from .schema_to_models import ModelResolver

logger = logging.getLogger(__name__)

_LOCATIONS = {location.value: location for location in ParameterLocation}


class ParameterResolver:
    """Resolve parameters and keep shared ones addressable by reference."""

    def __init__(self, context: ResolutionContext, models: ModelResolver) -> None:
        self._context = context
        self._models = models

    def resolve_component_parameters(self, parameters: JSONObject) -> None:
        """Resolve ``components.parameters`` under their component key names."""
        for name, node in object_items(parameters):
            if reference_of(node) is not None:
                raise UnsupportedReferenceError(
                    f"Shared parameter {name} is a reference; only inline definitions are supported"
                )
            self.resolve(name, node)

    def resolve(self, type_name: str, node: JSONObject) -> Parameter:
        """Resolve and register one inline parameter definition.

        Args:
            type_name (str): Registry key, also the name of any synthesized model.
            node (JSONObject): Parameter object from the OpenAPI document.

        Returns:
            Parameter: The registered parameter.
        """
        original_name = optional_string(node.get("name"))
        if original_name is None:
            raise UnsupportedSchemaError("Parameter is missing its name", model=type_name)

        raw_location = node.get("in")
        location = _LOCATIONS.get(raw_location) if isinstance(raw_location, str) else None
        if location is None:
            raise UnsupportedSchemaError(
                f"Unsupported parameter location {raw_location!r}",
                model=type_name,
                property_name=original_name,
            )

        schema = as_object(node.get("schema"))
        if schema is None:
            if "content" in node:
                detail = "content-style parameters are not supported"
            else:
                detail = "parameter is missing its schema"
            raise UnsupportedSchemaError(detail, model=type_name, property_name=original_name)

        parameter = Parameter(
            type_name=type_name,
            original_name=original_name,
            name=safe_identifier(original_name),
            safe_name=argument_name(original_name),
            type=self._resolve_type(type_name, schema, original_name),
            # Path placeholders must always be substituted.
            required=location is ParameterLocation.PATH or node.get("required") is True,
            location=location,
            description=optional_string(node.get("description")),
        )
        self._context.parameters.insert(parameter)
        logger.debug("Registered %s parameter %s as %s", location.value, original_name, type_name)
        return parameter

    def lookup(self, reference: str) -> Parameter:
        """Return a shared parameter previously registered from ``components.parameters``."""
        parameter = self._context.parameters.get(ref_name(reference))
        if parameter is None:
            raise MissingReferenceError(f"Parameter reference {reference} is not declared")
        return parameter

    def _resolve_type(self, type_name: str, schema: JSONObject, original_name: str) -> TypeRef:
        shape = classify_schema(schema)
        match shape:
            case ReferenceShape(name=target):
                return TypeRef.model(target)
            case StringShape() | IntegerShape():
                if discover_enumeration(schema) is None:
                    tag = "string" if isinstance(shape, StringShape) else "integer"
                    return TypeRef.primitive(tag)
                return TypeRef.model(self._models.resolve_model(type_name, schema).name)
            case NumberShape():
                return TypeRef.primitive("number")
            case BooleanShape():
                return TypeRef.primitive("boolean")
            case ArrayShape():
                return TypeRef.model(self._models.resolve_model(type_name, schema).name)
            case ObjectShape() | AllOfShape() | OneOfShape():
                raise UnsupportedSchemaError(
                    f"Unsupported inline parameter schema: {type(shape).__name__}",
                    model=type_name,
                    property_name=original_name,
                )
            case UnsupportedShape(description=shape_description):
                raise UnsupportedSchemaError(
                    f"Unsupported parameter schema: {shape_description}",
                    model=type_name,
                    property_name=original_name,
                )
            case _:
                assert_never(shape)
