"""Registries populated during a single resolution run.

A ``ResolutionContext`` is created per compilation and passed explicitly
through the resolvers; registries are append-only and read-only once
resolution has finished.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .errors import DuplicateModelError, DuplicateOperationError, DuplicateParameterError
from .model_types import Model, Operation, Parameter, Resource

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Resolved models keyed by their unique name."""

    def __init__(self) -> None:
        self._models: dict[str, Model] = {}

    def insert(self, model: Model) -> None:
        """Register a model; a name that is already present is a fatal error."""
        if model.name in self._models:
            raise DuplicateModelError(model.name)
        logger.debug("Registered model %s", model.name)
        self._models[model.name] = model

    def get(self, name: str) -> Optional[Model]:
        """Return the registered model called ``name``, if any."""
        return self._models.get(name)

    def all(self) -> list[Model]:
        """Return every model sorted by name."""
        return [self._models[name] for name in sorted(self._models)]

    def discovery_order(self) -> list[Model]:
        """Return every model in registration order."""
        return list(self._models.values())

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)


class ParameterRegistry:
    """Resolved parameters keyed by their synthesized type name."""

    def __init__(self) -> None:
        self._parameters: dict[str, Parameter] = {}

    def insert(self, parameter: Parameter) -> None:
        if parameter.type_name in self._parameters:
            raise DuplicateParameterError(parameter.type_name)
        self._parameters[parameter.type_name] = parameter

    def get(self, type_name: str) -> Optional[Parameter]:
        return self._parameters.get(type_name)

    def all(self) -> list[Parameter]:
        return [self._parameters[name] for name in sorted(self._parameters)]

    def __len__(self) -> int:
        return len(self._parameters)


class OperationRegistry:
    """Assembled operations keyed by name."""

    def __init__(self) -> None:
        self._operations: dict[str, Operation] = {}

    def insert(self, operation: Operation) -> None:
        if operation.name in self._operations:
            raise DuplicateOperationError(operation.name)
        self._operations[operation.name] = operation

    def get(self, name: str) -> Optional[Operation]:
        return self._operations.get(name)

    def all(self) -> list[Operation]:
        """Return every operation sorted by name."""
        return [self._operations[name] for name in sorted(self._operations)]

    def __len__(self) -> int:
        return len(self._operations)


class ResourceRegistry:
    """Operation names grouped by the literal path they were declared on."""

    def __init__(self) -> None:
        self._resources: dict[str, list[str]] = {}

    def add_operation(self, path: str, operation_name: str) -> None:
        """Append an operation to the resource for ``path``, creating it on first use."""
        operations = self._resources.setdefault(path, [])
        if operation_name in operations:
            raise DuplicateOperationError(operation_name, path)
        operations.append(operation_name)

    def get(self, path: str) -> Optional[Resource]:
        operations = self._resources.get(path)
        if operations is None:
            return None
        return Resource(path=path, operations=tuple(operations))

    def all(self) -> list[Resource]:
        """Return every resource sorted by path."""
        return [
            Resource(path=path, operations=tuple(self._resources[path]))
            for path in sorted(self._resources)
        ]

    def __len__(self) -> int:
        return len(self._resources)


@dataclass
class ResolutionContext:
    """Single-owner state for one compilation run."""

    models: ModelRegistry = field(default_factory=ModelRegistry)
    parameters: ParameterRegistry = field(default_factory=ParameterRegistry)
    operations: OperationRegistry = field(default_factory=OperationRegistry)
    resources: ResourceRegistry = field(default_factory=ResourceRegistry)
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        """Record a non-fatal diagnostic and log it."""
        logger.warning(message)
        self.warnings.append(message)
