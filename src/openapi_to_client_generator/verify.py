"""Verification of the generated models module against the resolved model registry."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import importlib.util
import itertools
from pathlib import Path
import sys
from types import ModuleType
from typing import Any, TypeAliasType

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel, RootModel

from .errors import GenerationError
from .model_types import IntegerEnumeration, Model, StringEnumeration, TaggedUnion
from .writer import MODELS_MODULE


class VerificationError(GenerationError):
    """Raised when the generated models module cannot be imported for verification."""


@dataclass(frozen=True)
class VerificationMismatch:
    """One verification mismatch."""

    model_name: str
    path: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class VerificationReport:
    """Result of the verification phase."""

    verified_count: int
    mismatch_count: int
    mismatches: tuple[VerificationMismatch, ...]


def verify_models(*, models: list[Model], package_dir: Path) -> VerificationReport:
    """Import the generated models module and check every model against its registry entry.

    Args:
        models (list[Model]): Registry models the package was generated from.
        package_dir (Path): Generated package directory.

    Returns:
        VerificationReport: Count of checked models and every mismatch found.
    """
    module_name = f"_generated_models_{next(_COUNTER)}"
    module = _load_models_module(module_name=module_name, module_path=package_dir / MODELS_MODULE)
    try:
        mismatches: list[VerificationMismatch] = []
        for model in models:
            mismatches.extend(_verify_model(model, getattr(module, model.name, None)))
    finally:
        sys.modules.pop(module_name, None)

    return VerificationReport(
        verified_count=len(models),
        mismatch_count=len(mismatches),
        mismatches=tuple(mismatches),
    )


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Verified models: {report.verified_count}",
        f"Mismatches: {report.mismatch_count}",
    ]
    for mismatch in report.mismatches:
        lines.extend(
            [
                f"- {mismatch.model_name}",
                f"  path: {mismatch.path}",
                f"  expected: {short_repr(mismatch.expected)}",
                f"  actual: {short_repr(mismatch.actual)}",
            ]
        )
    return "\n".join(lines)


def short_repr(value: Any, *, limit: int = 160) -> str:
    """A short representation for mismatch diagnostics."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def _load_models_module(*, module_name: str, module_path: Path) -> ModuleType:
    if not module_path.exists():
        raise VerificationError(f"Generated module not found: {module_path}")

    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise VerificationError(f"Unable to import generated module: {module_path}")

    module = importlib.util.module_from_spec(spec)
    # pydantic resolves postponed annotations through ``sys.modules``.
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise VerificationError(
            f"Failed to import generated module {module_path}: {type(exc).__name__}: {exc}"
        ) from exc
    return module


def _verify_model(model: Model, value: Any) -> list[VerificationMismatch]:
    if value is None:
        return [_mismatch(model, "definition", "defined", None)]

    enumeration = model.enumeration
    if model.alias_type is not None:
        if not isinstance(value, TypeAliasType):
            return [_mismatch(model, "kind", "type alias", _kind(value))]
        return []
    if isinstance(enumeration, (StringEnumeration, IntegerEnumeration)):
        if not isinstance(value, type) or not issubclass(value, Enum):
            return [_mismatch(model, "kind", "Enum", _kind(value))]
        actual_values = [member.value for member in value]
        if actual_values != list(enumeration.values):
            return [_mismatch(model, "values", list(enumeration.values), actual_values)]
        return []
    if isinstance(enumeration, TaggedUnion):
        if not isinstance(value, type) or not issubclass(value, RootModel):
            return [_mismatch(model, "kind", "RootModel", _kind(value))]
        return _check_json_schema(model, value)

    if not isinstance(value, type) or not issubclass(value, BaseModel):
        return [_mismatch(model, "kind", "BaseModel", _kind(value))]
    return [*_check_fields(model, value), *_check_json_schema(model, value)]


def _check_fields(model: Model, model_class: type[BaseModel]) -> list[VerificationMismatch]:
    mismatches: list[VerificationMismatch] = []
    fields = model_class.model_fields
    expected_names = [prop.safe_name for prop in model.properties or ()]
    missing = [name for name in expected_names if name not in fields]
    if missing:
        mismatches.append(_mismatch(model, "fields", expected_names, list(fields)))

    for prop in model.properties or ():
        field_info = fields.get(prop.safe_name)
        if field_info is None:
            continue
        wire_name = field_info.alias or prop.safe_name
        if wire_name != prop.name:
            mismatches.append(
                _mismatch(model, f"fields.{prop.safe_name}.alias", prop.name, wire_name)
            )
        if field_info.is_required() != prop.required:
            mismatches.append(
                _mismatch(
                    model,
                    f"fields.{prop.safe_name}.required",
                    prop.required,
                    field_info.is_required(),
                )
            )
    return mismatches


def _check_json_schema(model: Model, model_class: type[BaseModel]) -> list[VerificationMismatch]:
    schema = model_class.model_json_schema(by_alias=True)
    try:
        validator_for(schema).check_schema(schema)
    except SchemaError as exc:
        return [_mismatch(model, "json_schema", "valid JSON Schema", exc.message)]
    return []


def _mismatch(model: Model, path: str, expected: Any, actual: Any) -> VerificationMismatch:
    return VerificationMismatch(model_name=model.name, path=path, expected=expected, actual=actual)


def _kind(value: Any) -> str:
    if isinstance(value, type):
        return f"class {value.__name__}"
    return type(value).__name__


_COUNTER = itertools.count(1)
