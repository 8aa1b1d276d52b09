"""Unit tests for parameter resolution."""

from __future__ import annotations

import pytest

from openapi_to_client_generator.context import ResolutionContext
from openapi_to_client_generator.errors import (
    MissingReferenceError,
    UnsupportedReferenceError,
    UnsupportedSchemaError,
)
from openapi_to_client_generator.model_types import ParameterLocation, StringEnumeration, TypeRef
from openapi_to_client_generator.parameters import ParameterResolver
from openapi_to_client_generator.schema_to_models import ModelResolver
from .fixture_helpers import load_yaml


def _resolver() -> tuple[ResolutionContext, ParameterResolver]:
    context = ResolutionContext()
    return context, ParameterResolver(context, ModelResolver(context))


def test_component_parameters_register_under_their_key() -> None:
    """Shared parameters are looked up by the name their reference designates."""
    context, resolver = _resolver()
    resolver.resolve_component_parameters(
        load_yaml(
            """
Include:
  in: query
  name: include
  description: Related resources.
  schema:
    type: array
    items:
      type: string
      enum: [creator, hubs]
"""
        )
    )
    parameter = resolver.lookup("#/components/parameters/Include")

    assert parameter.type_name == "Include"
    assert parameter.original_name == "include"
    assert parameter.location is ParameterLocation.QUERY
    assert not parameter.required
    assert parameter.description == "Related resources."
    assert parameter.type == TypeRef.model("Include")
    include = context.models.get("Include")
    assert include is not None and include.alias_type == TypeRef.array(
        TypeRef.model("IncludeItem")
    )
    item = context.models.get("IncludeItem")
    assert item is not None and item.enumeration == StringEnumeration(values=("creator", "hubs"))


def test_lookup_of_undeclared_parameter_fails() -> None:
    """A reference to an unknown shared parameter is fatal."""
    _, resolver = _resolver()
    with pytest.raises(MissingReferenceError, match="Missing"):
        resolver.lookup("#/components/parameters/Missing")


def test_component_parameter_reference_is_rejected() -> None:
    """Shared parameters must be inline definitions."""
    _, resolver = _resolver()
    with pytest.raises(UnsupportedReferenceError):
        resolver.resolve_component_parameters(
            load_yaml("Alias: {$ref: '#/components/parameters/Other'}")
        )


def test_path_parameters_are_always_required() -> None:
    """Path placeholders are substituted unconditionally."""
    _, resolver = _resolver()
    parameter = resolver.resolve(
        "GetThingThingId",
        load_yaml("{in: path, name: thingId, required: false, schema: {type: string}}"),
    )
    assert parameter.required
    assert parameter.name == "thing_id"
    assert parameter.safe_name == "thing_id"


@pytest.mark.parametrize(
    ("schema", "expected"),
    [
        ("{type: string}", TypeRef.primitive("string")),
        ("{type: integer}", TypeRef.primitive("integer")),
        ("{type: number}", TypeRef.primitive("number")),
        ("{type: boolean}", TypeRef.primitive("boolean")),
        ("{$ref: '#/components/schemas/Identifier'}", TypeRef.model("Identifier")),
    ],
)
def test_scalar_parameter_types(schema: str, expected: TypeRef) -> None:
    """Scalar parameters resolve without creating models."""
    context, resolver = _resolver()
    node = load_yaml(f"{{in: query, name: value, schema: {schema}}}")
    assert resolver.resolve("ListThingsValue", node).type == expected
    assert len(context.models) == 0


def test_enum_parameter_creates_model_named_after_parameter() -> None:
    """An inline enumeration becomes a model under the parameter's type name."""
    context, resolver = _resolver()
    parameter = resolver.resolve(
        "ListThingsSort",
        load_yaml("{in: query, name: sort, schema: {type: string, enum: [asc, desc]}}"),
    )
    assert parameter.type == TypeRef.model("ListThingsSort")
    assert "ListThingsSort" in context.models


@pytest.mark.parametrize(
    ("node", "message"),
    [
        ("{in: query, schema: {type: string}}", "missing its name"),
        ("{in: header, name: x-trace, schema: {type: string}}", "Unsupported parameter location"),
        ("{in: cookie, name: session, schema: {type: string}}", "Unsupported parameter location"),
        ("{in: query, name: q}", "missing its schema"),
        (
            "{in: query, name: q, content: {application/json: {schema: {type: object}}}}",
            "content-style",
        ),
        ("{in: query, name: q, schema: {type: object}}", "Unsupported inline parameter schema"),
    ],
)
def test_invalid_parameters_are_fatal(node: str, message: str) -> None:
    """Parameters outside the supported subset abort resolution."""
    _, resolver = _resolver()
    with pytest.raises(UnsupportedSchemaError, match=message):
        resolver.resolve("ListThingsBad", load_yaml(node))


def test_parameter_names_are_safe_arguments() -> None:
    """Wire names that clash with generated method internals are renamed."""
    _, resolver = _resolver()
    parameter = resolver.resolve(
        "ListThingsBody", load_yaml("{in: query, name: body, schema: {type: string}}")
    )
    assert parameter.original_name == "body"
    assert parameter.safe_name == "body_"
