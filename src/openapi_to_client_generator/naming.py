"""Naming helpers for model, variant and Python identifiers."""

from __future__ import annotations

import keyword
import re
from typing import Optional

from pydantic import BaseModel, RootModel

from .errors import UnsupportedSchemaError

# Suffixes for inline ``oneOf`` branches, consumed in order.
LABEL_ALPHABET: tuple[str, ...] = (
    "Alpha",
    "Beta",
    "Gamma",
    "Delta",
    "Epsilon",
    "Zeta",
    "Eta",
    "Theta",
    "Iota",
    "Kappa",
    "Lambda",
    "Mu",
    "Nu",
    "Xi",
    "Omicron",
    "Pi",
    "Rho",
    "Sigma",
    "Tau",
    "Upsilon",
    "Phi",
    "Chi",
    "Psi",
    "Omega",
)

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z]+[0-9]*|[0-9]+")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_BASEMODEL_RESERVED = set(dir(BaseModel)) | set(dir(RootModel))
_BUILTIN_IDENTIFIER_RESERVED = {
    "bool",
    "bytes",
    "complex",
    "datetime",
    "dict",
    "float",
    "frozenset",
    "int",
    "list",
    "set",
    "str",
    "tuple",
    "type",
}
# Argument and module-level names referenced inside generated operation methods.
_METHOD_RESERVED = {"self", "body", "resolve", "urlencode", "logger"}


def split_words(raw: str) -> list[str]:
    """Split text into words on separators and case boundaries."""
    return _WORD_RE.findall(raw)


def upper_camel(raw: str) -> str:
    """Convert text to UpperCamelCase, e.g. ``api-keys-manage`` -> ``ApiKeysManage``."""
    return "".join(word[0].upper() + word[1:].lower() for word in split_words(raw))


def snake_case(raw: str) -> str:
    """Convert text to snake_case, e.g. ``getEnvironment`` -> ``get_environment``."""
    return "_".join(word.lower() for word in split_words(raw))


def child_name(parent: str, suffix: str) -> str:
    """Name a synthesized child model ``{parent}_{suffix}`` in UpperCamelCase."""
    return upper_camel(f"{parent}_{suffix}")


def label_name(parent: str, index: int) -> str:
    """Name the ``index``-th inline ``oneOf`` branch of ``parent``."""
    if index >= len(LABEL_ALPHABET):
        raise UnsupportedSchemaError(
            f"oneOf has more than {len(LABEL_ALPHABET)} inline branches",
            model=parent,
        )
    return child_name(parent, LABEL_ALPHABET[index])


def safe_identifier(raw: str) -> str:
    """Return a snake_case Python identifier for a wire name."""
    text = snake_case(raw)
    if not text:
        text = "value"
    if text[0].isdigit():
        text = f"x_{text}"
    return text


def field_name(raw: str, used_names: Optional[set[str]] = None) -> str:
    """Return the identifier a model field is exposed under.

    Keywords gain a trailing underscore; names that would shadow builtins or
    pydantic model members gain a ``_field`` suffix. A candidate already in
    ``used_names`` is numbered ``_2``, ``_3`` and so on.
    """
    candidate = safe_identifier(raw)
    if keyword.iskeyword(candidate) or keyword.issoftkeyword(candidate):
        candidate = f"{candidate}_"
    elif candidate in _BASEMODEL_RESERVED or candidate in _BUILTIN_IDENTIFIER_RESERVED:
        candidate = f"{candidate}_field"
    if not used_names or candidate not in used_names:
        return candidate

    suffix = 2
    while f"{candidate}_{suffix}" in used_names:
        suffix += 1
    return f"{candidate}_{suffix}"


def argument_name(raw: str) -> str:
    """Return the identifier a generated method argument is exposed under."""
    candidate = safe_identifier(raw)
    if keyword.iskeyword(candidate) or keyword.issoftkeyword(candidate):
        return f"{candidate}_"
    if candidate in _METHOD_RESERVED or candidate in _BUILTIN_IDENTIFIER_RESERVED:
        return f"{candidate}_"
    return candidate


def string_variant(model_name: str, literal: str) -> str:
    """Derive an enum member identifier from a string literal."""
    source = f"{model_name}_{literal}" if literal[:1].isdigit() else literal
    variant = upper_camel(source)
    if not variant or not _IDENTIFIER_RE.match(variant):
        raise UnsupportedSchemaError(
            f"Enum literal {literal!r} does not yield a valid identifier",
            model=model_name,
        )
    return variant


def integer_variant(model_name: str, literal: int) -> str:
    """Derive an enum member identifier from an integer literal."""
    if literal < 0:
        return f"{model_name}Minus{-literal}"
    return f"{model_name}{literal}"


def enum_members(
    model_name: str,
    values: tuple[str, ...] | tuple[int, ...],
) -> list[tuple[str, str | int]]:
    """Return ``(identifier, literal)`` pairs for an enumeration's members.

    Raises:
        UnsupportedSchemaError: When two literals map onto the same identifier.
    """
    members: list[tuple[str, str | int]] = []
    seen: dict[str, str | int] = {}
    for literal in values:
        if isinstance(literal, int):
            variant = integer_variant(model_name, literal)
        else:
            variant = string_variant(model_name, literal)
        if variant in seen:
            raise UnsupportedSchemaError(
                f"Enum literals {seen[variant]!r} and {literal!r} both map to {variant}",
                model=model_name,
            )
        seen[variant] = literal
        members.append((variant, literal))
    return members
