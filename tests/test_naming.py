"""Unit tests for naming helpers."""

from __future__ import annotations

import pytest

from openapi_to_client_generator.errors import UnsupportedSchemaError
from openapi_to_client_generator.naming import (
    LABEL_ALPHABET,
    argument_name,
    child_name,
    enum_members,
    field_name,
    integer_variant,
    label_name,
    safe_identifier,
    snake_case,
    string_variant,
    upper_camel,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("api-keys-manage", "ApiKeysManage"),
        ("getEnvironment", "GetEnvironment"),
        ("HTTPServer", "HttpServer"),
        ("network_mode", "NetworkMode"),
        ("v1", "V1"),
    ],
)
def test_upper_camel(raw: str, expected: str) -> None:
    """Separators and case boundaries both split words."""
    assert upper_camel(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("getEnvironment", "get_environment"),
        ("HTTPServer", "http_server"),
        ("filter[search]", "filter_search"),
        ("hub-id", "hub_id"),
    ],
)
def test_snake_case(raw: str, expected: str) -> None:
    """Operation ids and wire names become snake_case identifiers."""
    assert snake_case(raw) == expected


def test_child_name_joins_parent_and_suffix() -> None:
    """Synthesized names concatenate parent and suffix in UpperCamelCase."""
    assert child_name("get_environments", "Response") == "GetEnvironmentsResponse"
    assert child_name("Environment", "network_mode") == "EnvironmentNetworkMode"
    assert child_name("Include", "Item") == "IncludeItem"


def test_label_name_walks_the_alphabet_and_stops_at_its_end() -> None:
    """Inline union branches are labelled Alpha, Beta, ... and the alphabet is finite."""
    assert label_name("Pet", 0) == "PetAlpha"
    assert label_name("Pet", 1) == "PetBeta"
    assert label_name("Pet", len(LABEL_ALPHABET) - 1) == "PetOmega"
    with pytest.raises(UnsupportedSchemaError, match="more than 24"):
        label_name("Pet", len(LABEL_ALPHABET))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("hubId", "hub_id"),
        ("class", "class_"),
        ("match", "match_"),
        ("type", "type_field"),
        ("model_config", "model_config_field"),
        ("2fa", "x_2fa"),
    ],
)
def test_field_name(raw: str, expected: str) -> None:
    """Field identifiers avoid keywords, builtins and pydantic members."""
    assert field_name(raw) == expected


def test_field_name_numbers_taken_identifiers() -> None:
    """Identifiers already used on the same model gain a numeric suffix."""
    assert field_name("foo_bar", {"foo_bar"}) == "foo_bar_2"
    assert field_name("fooBar", {"foo_bar", "foo_bar_2"}) == "foo_bar_3"
    assert field_name("class", {"class_"}) == "class__2"
    assert field_name("fooBar", {"other"}) == "foo_bar"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("environmentId", "environment_id"),
        ("body", "body_"),
        ("self", "self_"),
        ("type", "type_"),
        ("from", "from_"),
    ],
)
def test_argument_name(raw: str, expected: str) -> None:
    """Method arguments avoid keywords and names used inside generated methods."""
    assert argument_name(raw) == expected


def test_safe_identifier_never_returns_empty() -> None:
    """A wire name without any word characters still maps to an identifier."""
    assert safe_identifier("---") == "value"


def test_string_variant() -> None:
    """String literals become UpperCamelCase members; digit-led ones gain the model name."""
    assert string_variant("NetworkMode", "ipv6-only") == "Ipv6Only"
    assert string_variant("Size", "2x") == "Size2x"
    with pytest.raises(UnsupportedSchemaError, match="valid identifier"):
        string_variant("Symbol", "!!!")


def test_integer_variant() -> None:
    """Integer literals are prefixed with the model name."""
    assert integer_variant("Priority", 1) == "Priority1"
    assert integer_variant("Priority", -1) == "PriorityMinus1"


def test_enum_members_rejects_colliding_identifiers() -> None:
    """Two literals that normalize to the same identifier are an error."""
    assert enum_members("Mode", ("bridge", "host")) == [("Bridge", "bridge"), ("Host", "host")]
    with pytest.raises(UnsupportedSchemaError, match="both map to AB"):
        enum_members("Dup", ("a-b", "a_b"))
