"""Exceptions raised while resolving an OpenAPI document into models and operations.

Every resolution failure aborts the whole run; there is no partial output.
"""

from __future__ import annotations

from typing import Optional


class GenerationError(RuntimeError):
    """Base class for all fatal generation errors."""


class UnsupportedSchemaError(GenerationError):
    """Raised when a schema shape has no resolution rule."""

    def __init__(
        self,
        message: str,
        *,
        model: Optional[str] = None,
        property_name: Optional[str] = None,
    ) -> None:
        self.model = model
        self.property_name = property_name
        location = model or ""
        if property_name:
            location = f"{location}.{property_name}" if location else property_name
        full_message = f"[{location}] {message}" if location else message
        super().__init__(full_message)


class InvalidModelError(GenerationError):
    """Raised when a model does not carry exactly one of alias, enumeration or properties."""


class InvalidReferenceError(GenerationError):
    """Raised when a ``$ref`` pointer has no usable segment."""


class DuplicateModelError(GenerationError):
    """Raised when a second model is registered under an existing name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Model {name} already exists")


class DuplicateParameterError(GenerationError):
    """Raised when a second parameter is registered under an existing type name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Parameter {name} already exists")


class DuplicateOperationError(GenerationError):
    """Raised when an operation name is registered twice."""

    def __init__(self, name: str, path: Optional[str] = None) -> None:
        self.name = name
        self.path = path
        if path is None:
            message = f"Operation {name} already exists"
        else:
            message = f"Operation {name} already exists for resource {path}"
        super().__init__(message)


class MissingOperationIdError(GenerationError):
    """Raised when an operation lacks its mandatory ``operationId``."""

    def __init__(self, path: str, method: str) -> None:
        self.path = path
        self.method = method
        super().__init__(f"Operation is missing operationId: {method.upper()} {path}")


class ContentTypeError(GenerationError):
    """Raised when a request or response body lacks ``application/json`` content."""


class UnsupportedReferenceError(GenerationError):
    """Raised when a ``$ref`` appears where an inline definition is required."""


class ForwardReferenceError(GenerationError):
    """Raised when ``allOf`` references a model that has not been resolved yet."""


class MissingReferenceError(GenerationError):
    """Raised when a referenced shared parameter is not registered."""
