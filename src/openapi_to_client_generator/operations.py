"""Assemble operations and resources from OpenAPI path items."""

from __future__ import annotations

import logging
from typing import Optional

from .context import ResolutionContext
from .errors import (
    ContentTypeError,
    MissingOperationIdError,
    UnsupportedReferenceError,
    UnsupportedSchemaError,
)
from .json_types import JSONObject, JSONValue, as_object, object_items, optional_string
from .model_types import HttpMethod, Operation, Parameter, ParameterLocation
from .naming import child_name, snake_case
from .parameters import ParameterResolver
from .references import reference_of
from .schema_to_models import ModelResolver

logger = logging.getLogger(__name__)

_JSON_MEDIA_TYPE = "application/json"
_RESPONSE_STATUS = "200"


class OperationAssembler:
    """Create one operation per declared HTTP method and group them by path."""

    def __init__(
        self,
        context: ResolutionContext,
        models: ModelResolver,
        parameters: ParameterResolver,
    ) -> None:
        self._context = context
        self._models = models
        self._parameters = parameters

    def assemble(self, paths: JSONObject, *, path_prefix: Optional[str] = None) -> None:
        """Assemble every path item, optionally limited to paths starting with ``path_prefix``."""
        for path, item in object_items(paths):
            if path_prefix and not path.startswith(path_prefix):
                logger.debug("Skipping path %s outside prefix %s", path, path_prefix)
                continue
            self.assemble_path(path, item)

    def assemble_path(self, path: str, item: JSONObject) -> list[Operation]:
        """Assemble the operations of one path item in fixed HTTP method order."""
        reference = reference_of(item)
        if reference is not None:
            raise UnsupportedReferenceError(f"References not implemented: {reference} ({path})")

        shared_parameters = _parameter_nodes(item.get("parameters"))
        operations: list[Operation] = []
        for method in HttpMethod:
            node = as_object(item.get(method.value))
            if node is None:
                continue
            operations.append(
                self.assemble_operation(path, method, node, shared_parameters=shared_parameters)
            )
        return operations

    def assemble_operation(
        self,
        path: str,
        method: HttpMethod,
        node: JSONObject,
        *,
        shared_parameters: tuple[JSONObject, ...] = (),
    ) -> Operation:
        """Assemble, register and group one operation.

        Args:
            path (str): Path template the operation is declared on.
            method (HttpMethod): HTTP method of the operation.
            node (JSONObject): Operation object from the path item.
            shared_parameters (tuple[JSONObject, ...]): Path-item level parameters.

        Returns:
            Operation: The registered operation.
        """
        operation_id = optional_string(node.get("operationId"))
        if operation_id is None:
            raise MissingOperationIdError(path, method.value)
        name = snake_case(operation_id)
        logger.debug("Assembling operation %s (%s %s)", name, method.value.upper(), path)

        parameters = self._resolve_parameters(
            name,
            (*shared_parameters, *_parameter_nodes(node.get("parameters"))),
        )
        path_parameters = [p for p in parameters if p.location is ParameterLocation.PATH]
        query_parameters = [p for p in parameters if p.location is ParameterLocation.QUERY]
        operation = Operation(
            name=name,
            path=path,
            method=method,
            description=(
                optional_string(node.get("description"))
                or optional_string(node.get("summary"))
                or ""
            ),
            path_parameters=tuple(path_parameters),
            query_parameters=tuple(query_parameters),
            request_model=self._request_model(name, path, method, node.get("requestBody")),
            response_model=self._response_model(name, path, node.get("responses")),
        )
        self._context.operations.insert(operation)
        self._context.resources.add_operation(path, name)
        return operation

    def _resolve_parameters(
        self,
        operation_name: str,
        nodes: tuple[JSONObject, ...],
    ) -> list[Parameter]:
        # Operation-level definitions override path-level ones with the same name and location.
        pending: dict[tuple[str, str], JSONObject | Parameter] = {}
        for node in nodes:
            reference = reference_of(node)
            if reference is not None:
                shared = self._parameters.lookup(reference)
                pending[(shared.original_name, shared.location.value)] = shared
                continue
            key = (str(node.get("name")), str(node.get("in")))
            pending[key] = node

        parameters: list[Parameter] = []
        for (raw_name, _), entry in pending.items():
            if isinstance(entry, Parameter):
                parameters.append(entry)
            else:
                parameters.append(
                    self._parameters.resolve(child_name(operation_name, raw_name), entry)
                )

        seen: set[str] = set()
        for parameter in parameters:
            if parameter.safe_name in seen:
                raise UnsupportedSchemaError(
                    f"More than one parameter is exposed as {parameter.safe_name!r}",
                    model=operation_name,
                    property_name=parameter.original_name,
                )
            seen.add(parameter.safe_name)
        return parameters

    def _request_model(
        self,
        name: str,
        path: str,
        method: HttpMethod,
        request_body: JSONValue,
    ) -> Optional[str]:
        body = as_object(request_body)
        if body is None:
            return None
        if not method.has_json_body:
            self._context.warn(
                f"Ignoring request body of {method.value.upper()} {path}: "
                "the method does not send a JSON body"
            )
            return None
        reference = reference_of(body)
        if reference is not None:
            raise UnsupportedReferenceError(f"References not implemented: {reference} ({path})")

        schema = _json_schema(body, path=path, kind="Request")
        model_name = child_name(name, "Request")
        self._models.resolve_model(model_name, schema)
        return model_name

    def _response_model(self, name: str, path: str, responses_raw: JSONValue) -> Optional[str]:
        responses = as_object(responses_raw)
        if responses is None:
            return None
        for status, response in responses.items():
            # Only the 200 response is modelled; other codes, ranges and defaults are ignored.
            if str(status) != _RESPONSE_STATUS:
                continue
            response_node = as_object(response)
            if response_node is None:
                continue
            reference = reference_of(response_node)
            if reference is not None:
                raise UnsupportedReferenceError(
                    f"References not implemented: {reference} ({path})"
                )
            schema = _json_schema(response_node, path=path, kind="Response")
            model_name = child_name(name, "Response")
            self._models.resolve_model(model_name, schema)
            return model_name
        return None


def _parameter_nodes(raw: JSONValue) -> tuple[JSONObject, ...]:
    if not isinstance(raw, list):
        return ()
    nodes: list[JSONObject] = []
    for item in raw:
        node = as_object(item)
        if node is not None:
            nodes.append(node)
    return tuple(nodes)


def _json_schema(node: JSONObject, *, path: str, kind: str) -> JSONObject:
    content = as_object(node.get("content"))
    media = as_object(content.get(_JSON_MEDIA_TYPE)) if content is not None else None
    if media is None:
        raise ContentTypeError(f"{kind} is missing {_JSON_MEDIA_TYPE} content type: {path}")
    schema = as_object(media.get("schema"))
    if schema is None:
        raise ContentTypeError(f"{kind} {_JSON_MEDIA_TYPE} content has no schema: {path}")
    reference = reference_of(schema)
    if reference is not None:
        raise UnsupportedReferenceError(f"References not implemented: {reference} ({path})")
    return schema
