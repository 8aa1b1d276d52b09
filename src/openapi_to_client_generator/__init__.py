"""OpenAPI to client generator package."""

from __future__ import annotations

from .cli import main
from .context import ResolutionContext
from .generator import GenerationRun, resolve_document, run_generation

__all__ = ["GenerationRun", "ResolutionContext", "main", "resolve_document", "run_generation"]
