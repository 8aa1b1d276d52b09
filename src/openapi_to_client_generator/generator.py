"""High-level generator orchestration."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional

from .codegen_ast import render_client_module, render_models_module, render_package_init
from .context import ResolutionContext
from .errors import GenerationError, MissingReferenceError
from .loader import ApiDocument, OpenAPILoadError, load_api_document
from .model_types import GenerationResult, TaggedUnion
from .operations import OperationAssembler
from .parameters import ParameterResolver
from .schema_to_models import ModelResolver
from .verify import VerificationError, VerificationReport, verify_models
from .writer import (
    FormatError,
    WriteError,
    create_output_layout,
    format_generated_tree,
    write_package,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with the resolved registries and optional verification report."""

    result: GenerationResult
    verification_report: Optional[VerificationReport]
    context: ResolutionContext


def resolve_document(
    document: ApiDocument,
    *,
    path_prefix: Optional[str] = None,
) -> ResolutionContext:
    """Resolve a loaded document into populated registries.

    Shared parameters are resolved first, then component schemas in
    declaration order, then every path item.

    Args:
        document (ApiDocument): Loaded OpenAPI document.
        path_prefix (Optional[str]): Only assemble paths starting with this prefix.

    Returns:
        ResolutionContext: Registries holding every model, parameter, operation and resource.
    """
    context = ResolutionContext()
    models = ModelResolver(context)
    parameters = ParameterResolver(context, models)

    parameters.resolve_component_parameters(document.parameters)
    models.resolve_schemas(document.schemas)
    OperationAssembler(context, models, parameters).assemble(
        document.paths,
        path_prefix=path_prefix,
    )
    check_references(context)
    logger.info(
        "Resolved %d models, %d parameters, %d operations on %d resources",
        len(context.models),
        len(context.parameters),
        len(context.operations),
        len(context.resources),
    )
    return context


def check_references(context: ResolutionContext) -> None:
    """Fail when any type reference names a model that was never registered."""
    for owner, names in _referenced_models(context):
        for name in sorted(names):
            if name not in context.models:
                raise MissingReferenceError(f"{owner} references undeclared model {name}")


def run_generation(
    *,
    input_path: Path,
    output_dir: Path,
    path_prefix: Optional[str] = None,
    overwrite: bool = False,
    format_output: bool = True,
    verify: bool = False,
) -> GenerationRun:
    """Generate a client package from an OpenAPI document.

    Args:
        input_path (Path): Path to the input OpenAPI document.
        output_dir (Path): Package directory where generated files are written.
        path_prefix (Optional[str]): Only generate operations for paths starting with this prefix.
        overwrite (bool): Whether an existing output directory may be written into.
        format_output (bool): Whether to run ruff over the generated package.
        verify (bool): Whether to verify the generated models after generation.

    Returns:
        GenerationRun: Generation metadata and optional verification report.
    """
    document = load_api_document(input_path)
    context = resolve_document(document, path_prefix=path_prefix)

    models = context.models.all()
    operations = context.operations.all()
    models_source = render_models_module(models)
    client_source = render_client_module(
        operations,
        version=document.version,
        server_url=document.server_url,
        user_agent=f"{output_dir.name}/{document.version}",
    )
    init_source = render_package_init(context.resources.all(), operations)

    package_dir = create_output_layout(output_dir, overwrite=overwrite)
    write_package(
        package_dir=package_dir,
        models_source=models_source,
        client_source=client_source,
        init_source=init_source,
    )

    formatted = False
    if format_output:
        try:
            format_generated_tree(package_dir=package_dir)
            formatted = True
        except FormatError as exc:
            context.warn(f"Generated files were left unformatted: {exc}")

    result = GenerationResult(
        output_dir=str(output_dir),
        model_count=len(models),
        operation_count=len(operations),
        warnings=tuple(context.warnings),
        formatted=formatted,
    )

    if not verify:
        return GenerationRun(result=result, verification_report=None, context=context)

    report = verify_models(models=models, package_dir=package_dir)
    return GenerationRun(result=result, verification_report=report, context=context)


def _referenced_models(context: ResolutionContext) -> list[tuple[str, set[str]]]:
    references: list[tuple[str, set[str]]] = []
    for model in context.models.discovery_order():
        names: set[str] = set()
        if model.alias_type is not None:
            names.update(model.alias_type.model_names())
        if isinstance(model.enumeration, TaggedUnion):
            names.update(model.enumeration.members)
        for prop in model.properties or ():
            names.update(prop.type.model_names())
        references.append((f"Model {model.name}", names))
    for parameter in context.parameters.all():
        references.append((f"Parameter {parameter.type_name}", parameter.type.model_names()))
    return references


__all__ = [
    "GenerationError",
    "GenerationRun",
    "OpenAPILoadError",
    "VerificationError",
    "WriteError",
    "check_references",
    "resolve_document",
    "run_generation",
]
