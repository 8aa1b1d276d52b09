"""AST-based Python code generation for the client package."""

from __future__ import annotations

import ast
from collections.abc import Iterable
import keyword
import textwrap
from typing import Optional, cast

from .errors import InvalidModelError
from .model_types import (
    IntegerEnumeration,
    Model,
    Operation,
    Parameter,
    Property,
    Resource,
    StringEnumeration,
    TaggedUnion,
)
from .naming import enum_members

_TYPING_IMPORT_ORDER: tuple[str, ...] = (
    "Optional",
    "Union",
)

_PYDANTIC_IMPORT_ORDER: tuple[str, ...] = (
    "BaseModel",
    "ConfigDict",
    "Field",
    "RootModel",
)

# Attribute names of the generated ``Api`` class that operation methods must not replace.
_CLIENT_MEMBERS = frozenset({"request", "close", "token", "hub", "endpoint"})

_CLIENT_PRELUDE = '''
logger = logging.getLogger(__name__)


class ResponseError(RuntimeError):
    """Raised when an operation expected a model but the response body could not be decoded."""


def _scalar(value: Any) -> str:
    value = to_jsonable_python(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve(query: dict[str, str], name: str, value: Any) -> None:
    """Add ``value`` to ``query`` under ``name``.

    Lists are flattened into one comma-joined string instead of repeated keys.
    ``None`` leaves the query untouched.
    """
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        query[name] = ",".join(_scalar(item) for item in value)
    else:
        query[name] = _scalar(value)


class Api:
    """Async client bound to one endpoint, token and hub."""

    def __init__(
        self,
        token: str,
        hub: str,
        *,
        endpoint: str = ENDPOINT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.token = token
        self.hub = hub
        self.endpoint = endpoint.rstrip("/")
        self._client = client if client is not None else httpx.AsyncClient()
        self._owns_client = client is None

    async def __aenter__(self) -> Api:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def request(self, method: str, path: str, body: Any = None) -> Optional[Any]:
        """Send one request and return the decoded JSON body.

        A body that is not valid JSON yields ``None``. Transport errors propagate.
        """
        url = f"{self.endpoint}{path}"
        headers = {
            "user-agent": USER_AGENT,
            "authorization": f"Bearer {self.token}",
            "x-hub-id": self.hub,
        }
        payload = None
        if body is not None:
            if isinstance(body, BaseModel):
                payload = body.model_dump(mode="json", by_alias=True, exclude_unset=True)
            else:
                payload = to_jsonable_python(body, by_alias=True)
        logger.debug("%s %s", method, url)
        response = await self._client.request(method, url, headers=headers, json=payload)
        try:
            return response.json()
        except ValueError:
            logger.debug("Response to %s %s is not JSON", method, url)
            return None
'''


def render_models_module(models: Iterable[Model]) -> str:
    """Render every registered model as Python source code using AST.

    Args:
        models (Iterable[Model]): Models to render, already sorted by name.

    Returns:
        str: Generated Python source code for ``models.py``.
    """
    model_list = list(models)
    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value="Generated models.")),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_model_imports(model_list))

    for model in model_list:
        body.extend(_model_to_ast(model))

    for model in model_list:
        if model.is_struct or isinstance(model.enumeration, TaggedUnion):
            body.append(ast.Expr(value=_expr(f"{_class_name(model.name)}.model_rebuild()")))

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def render_client_module(
    operations: Iterable[Operation],
    *,
    version: str,
    server_url: str,
    user_agent: str,
) -> str:
    """Render the async client module with one method per operation.

    Args:
        operations (Iterable[Operation]): Operations to render, already sorted by name.
        version (str): API version the client was generated from.
        server_url (str): Default endpoint of the client.
        user_agent (str): Value of the ``user-agent`` header.

    Returns:
        str: Generated Python source code for ``api.py``.
    """
    operation_list = list(operations)
    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value=f"Async client for {server_url} (API {version}).")),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(ast.parse(_CLIENT_IMPORTS).body)

    model_names = sorted(
        {name for operation in operation_list for name in _operation_model_names(operation)}
    )
    if model_names:
        body.append(
            ast.ImportFrom(
                module="models",
                names=[ast.alias(name=_class_name(name)) for name in model_names],
                level=1,
            )
        )

    for name, value in (("ENDPOINT", server_url), ("VERSION", version), ("USER_AGENT", user_agent)):
        body.append(
            ast.Assign(
                targets=[ast.Name(id=name, ctx=ast.Store())],
                value=ast.Constant(value=value),
            )
        )

    prelude = ast.parse(_CLIENT_PRELUDE).body
    for statement in prelude:
        if isinstance(statement, ast.ClassDef) and statement.name == "Api":
            statement.body.extend(_operation_to_ast(operation) for operation in operation_list)
    body.extend(prelude)

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def render_package_init(resources: Iterable[Resource], operations: Iterable[Operation]) -> str:
    """Render the package ``__init__.py`` with a resource index docstring.

    Args:
        resources (Iterable[Resource]): Resources sorted by path.
        operations (Iterable[Operation]): Operations referenced by the resources.

    Returns:
        str: Generated Python source for the package ``__init__.py``.
    """
    docstring = _resource_index_docstring(list(resources), {op.name: op for op in operations})
    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value=docstring)),
        ast.ImportFrom(module="api", names=[ast.alias(name="Api")], level=1),
        ast.Assign(
            targets=[ast.Name(id="__all__", ctx=ast.Store())],
            value=_expr("['Api']"),
        ),
    ]
    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def method_name(operation: Operation) -> str:
    """Return the name an operation is exposed under on the generated ``Api`` class."""
    if keyword.iskeyword(operation.name) or operation.name in _CLIENT_MEMBERS:
        return f"{operation.name}_"
    return operation.name


_CLIENT_IMPORTS = """
import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic_core import to_jsonable_python
"""


def _bound_names(source: str) -> set[str]:
    names: set[str] = set()
    for statement in ast.parse(source).body:
        if isinstance(statement, (ast.Import, ast.ImportFrom)):
            names.update((alias.asname or alias.name).split(".")[0] for alias in statement.names)
        elif isinstance(statement, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            names.add(statement.name)
        elif isinstance(statement, ast.Assign):
            names.update(target.id for target in statement.targets if isinstance(target, ast.Name))
    return names


# Names bound by the generated modules and operation bodies; a model may not rebind them.
_GENERATED_MODULE_NAMES = frozenset(
    {
        "annotations",
        "datetime",
        "Enum",
        "IntEnum",
        "ENDPOINT",
        "VERSION",
        "USER_AGENT",
        "self",
        "body",
        "_path",
        "_query",
        "_response",
    }
    | set(_TYPING_IMPORT_ORDER)
    | set(_PYDANTIC_IMPORT_ORDER)
    | _bound_names(_CLIENT_IMPORTS)
    | _bound_names(_CLIENT_PRELUDE)
)


def _model_to_ast(model: Model) -> list[ast.stmt]:
    name = _class_name(model.name)
    if model.alias_type is not None:
        statements: list[ast.stmt] = [
            ast.TypeAlias(
                name=ast.Name(id=name, ctx=ast.Store()),
                type_params=[],
                value=_expr(model.alias_type.annotation()),
            )
        ]
        if model.description:
            statements.append(ast.Expr(value=ast.Constant(value=model.description)))
        return statements

    class_body: list[ast.stmt] = []
    if model.description:
        class_body.append(ast.Expr(value=ast.Constant(value=model.description)))

    enumeration = model.enumeration
    if isinstance(enumeration, StringEnumeration):
        bases = [_expr("str"), _expr("Enum")]
        class_body.extend(_enum_members_to_ast(model.name, enumeration.values))
    elif isinstance(enumeration, IntegerEnumeration):
        bases = [_expr("IntEnum")]
        class_body.extend(_enum_members_to_ast(model.name, enumeration.values))
    elif isinstance(enumeration, TaggedUnion):
        bases = [_expr("RootModel")]
        members = ", ".join(_class_name(member) for member in enumeration.members)
        class_body.append(
            ast.AnnAssign(
                target=ast.Name(id="root", ctx=ast.Store()),
                annotation=_expr(f"Union[{members}]"),
                value=None,
                simple=1,
            )
        )
    else:
        bases = [_expr("BaseModel")]
        class_body.append(
            ast.Assign(
                targets=[ast.Name(id="model_config", ctx=ast.Store())],
                value=_expr("ConfigDict(populate_by_name=True)"),
            )
        )
        for prop in model.properties or ():
            class_body.append(_field_to_ast(prop))

    if not class_body:
        class_body.append(ast.Pass())

    return [
        ast.ClassDef(
            name=name,
            bases=bases,
            keywords=[],
            body=class_body,
            decorator_list=[],
            type_params=[],
        )
    ]


def _enum_members_to_ast(
    model_name: str,
    values: tuple[str, ...] | tuple[int, ...],
) -> list[ast.stmt]:
    return [
        ast.Assign(
            targets=[ast.Name(id=identifier, ctx=ast.Store())],
            value=ast.Constant(value=literal),
        )
        for identifier, literal in enum_members(model_name, values)
    ]


def _field_to_ast(prop: Property) -> ast.AnnAssign:
    keywords: list[ast.keyword] = []
    if prop.safe_name != prop.name:
        keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=prop.name)))
    if prop.description:
        keywords.append(ast.keyword(arg="description", value=ast.Constant(value=prop.description)))

    default_value: ast.expr = ast.Constant(value=Ellipsis if prop.required else None)
    call = ast.Call(
        func=ast.Name(id="Field", ctx=ast.Load()),
        args=[default_value],
        keywords=keywords,
    )
    return ast.AnnAssign(
        target=ast.Name(id=prop.safe_name, ctx=ast.Store()),
        annotation=_expr(_property_annotation(prop)),
        value=call,
        simple=1,
    )


def _property_annotation(prop: Property) -> str:
    annotation = prop.type.annotation()
    if prop.optional:
        return f"Optional[{annotation}]"
    return annotation


def _operation_to_ast(operation: Operation) -> ast.AsyncFunctionDef:
    required = [parameter for parameter in operation.parameters if parameter.required]
    optional = [parameter for parameter in operation.parameters if not parameter.required]

    positional = [ast.arg(arg="self")]
    positional.extend(
        ast.arg(arg=parameter.safe_name, annotation=_expr(parameter.type.annotation()))
        for parameter in required
    )
    if operation.request_model is not None:
        positional.append(ast.arg(arg="body", annotation=_expr(operation.request_model)))
    keyword_only = [
        ast.arg(
            arg=parameter.safe_name,
            annotation=_expr(f"Optional[{parameter.type.annotation()}]"),
        )
        for parameter in optional
    ]

    returns = _expr(operation.response_model or "None")
    return ast.AsyncFunctionDef(
        name=method_name(operation),
        args=ast.arguments(
            posonlyargs=[],
            args=positional,
            vararg=None,
            kwonlyargs=keyword_only,
            kw_defaults=[ast.Constant(value=None) for _ in keyword_only],
            kwarg=None,
            defaults=[],
        ),
        body=[
            ast.Expr(value=ast.Constant(value=_operation_docstring(operation))),
            *_operation_body(operation),
        ],
        decorator_list=[],
        returns=returns,
        type_params=[],
    )


def _operation_body(operation: Operation) -> list[ast.stmt]:
    method = operation.method.value.upper()
    lines = [f"_path = {operation.path!r}"]
    for parameter in operation.path_parameters:
        placeholder = "{" + parameter.original_name + "}"
        lines.append(f"_path = _path.replace({placeholder!r}, _scalar({parameter.safe_name}))")
    if operation.query_parameters:
        lines.append("_query: dict[str, str] = {}")
        for parameter in operation.query_parameters:
            lines.append(f"resolve(_query, {parameter.original_name!r}, {parameter.safe_name})")
        lines.append("if _query:")
        lines.append("    _path = _path + '?' + urlencode(_query)")

    body_arg = "body" if operation.request_model is not None else "None"
    call = f"await self.request({method!r}, _path, {body_arg})"
    if operation.response_model is None:
        lines.append(call)
    else:
        failure = f"{method} {operation.path} returned a body that could not be decoded"
        lines.append(f"_response = {call}")
        lines.append("if _response is None:")
        lines.append(f"    raise ResponseError({failure!r})")
        lines.append(f"return TypeAdapter({operation.response_model}).validate_python(_response)")
    return _async_stmts("\n".join(lines))


def _operation_docstring(operation: Operation) -> str:
    route = f"``{operation.method.value.upper()} {operation.path}``"
    lines = [operation.description, "", route] if operation.description else [route]
    documented = [parameter for parameter in operation.parameters if parameter.description]
    if documented:
        lines.extend(["", "Args:"])
        for parameter in documented:
            lines.append(f"    {parameter.safe_name}: {parameter.description}")
    return "\n".join(lines)


def _operation_model_names(operation: Operation) -> set[str]:
    names: set[str] = set()
    for parameter in operation.parameters:
        names.update(parameter.type.model_names())
    if operation.request_model is not None:
        names.add(operation.request_model)
    if operation.response_model is not None:
        names.add(operation.response_model)
    return names


def _class_name(name: str) -> str:
    if not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidModelError(f"Model name {name!r} is not a valid Python identifier")
    if name in _GENERATED_MODULE_NAMES:
        raise InvalidModelError(
            f"Model name {name!r} would shadow a name the generated client package relies on"
        )
    return name


def _expr(code: str) -> ast.expr:
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def _async_stmts(code: str) -> list[ast.stmt]:
    # ``await`` is only valid inside a coroutine, so parse the body inside one.
    wrapper = ast.parse("async def _():\n" + textwrap.indent(code, "    "))
    function = cast(ast.AsyncFunctionDef, wrapper.body[0])
    return function.body


def _build_model_imports(models: list[Model]) -> list[ast.stmt]:
    used_annotation_names = _collect_used_annotation_names(models)

    imports: list[ast.stmt] = []
    if "datetime" in used_annotation_names:
        imports.append(
            ast.ImportFrom(module="datetime", names=[ast.alias(name="datetime")], level=0)
        )

    enum_imports: list[str] = []
    if any(isinstance(model.enumeration, StringEnumeration) for model in models):
        enum_imports.append("Enum")
    if any(isinstance(model.enumeration, IntegerEnumeration) for model in models):
        enum_imports.append("IntEnum")
    if enum_imports:
        imports.append(
            ast.ImportFrom(
                module="enum",
                names=[ast.alias(name=name) for name in enum_imports],
                level=0,
            )
        )

    typing_imports = [name for name in _TYPING_IMPORT_ORDER if name in used_annotation_names]
    if typing_imports:
        imports.append(
            ast.ImportFrom(
                module="typing",
                names=[ast.alias(name=name) for name in typing_imports],
                level=0,
            )
        )

    pydantic_imports = _collect_pydantic_imports(models)
    if pydantic_imports:
        imports.append(
            ast.ImportFrom(
                module="pydantic",
                names=[ast.alias(name=name) for name in pydantic_imports],
                level=0,
            )
        )
    return imports


def _collect_used_annotation_names(models: list[Model]) -> set[str]:
    names: set[str] = set()
    for annotation in _iter_annotation_exprs(models):
        names.update(_extract_loaded_names(annotation))
    return names


def _iter_annotation_exprs(models: list[Model]) -> Iterable[str]:
    for model in models:
        if model.alias_type is not None:
            yield model.alias_type.annotation()
        if isinstance(model.enumeration, TaggedUnion):
            yield f"Union[{', '.join(model.enumeration.members)}]"
        for prop in model.properties or ():
            yield _property_annotation(prop)


def _extract_loaded_names(expr_code: str) -> set[str]:
    parsed = ast.parse(expr_code, mode="eval")
    loaded_names: set[str] = set()
    for node in ast.walk(parsed):
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
            loaded_names.add(node.id)
    return loaded_names


def _collect_pydantic_imports(models: list[Model]) -> list[str]:
    requested: set[str] = set()
    if any(model.is_struct for model in models):
        requested.update({"BaseModel", "ConfigDict"})
    if any(model.properties for model in models):
        requested.add("Field")
    if any(isinstance(model.enumeration, TaggedUnion) for model in models):
        requested.add("RootModel")
    return [name for name in _PYDANTIC_IMPORT_ORDER if name in requested]


def _resource_index_docstring(
    resources: list[Resource],
    operations: dict[str, Operation],
) -> str:
    lines: list[str] = [
        "Generated API client package.",
        "",
        "Use ``Api`` from ``.api`` to call operations; models live in ``.models``.",
        "",
        "Resource index:",
    ]
    for resource in resources:
        lines.append(f"- {resource.path}")
        for name in resource.operations:
            operation: Optional[Operation] = operations.get(name)
            if operation is None:
                lines.append(f"  - {name}")
                continue
            lines.append(f"  - {operation.method.value.upper()} {method_name(operation)}")
            if operation.description:
                for summary_line in _wrap_summary(operation.description):
                    lines.append(f"    {summary_line}")
    return "\n".join(lines)


def _wrap_summary(text: str) -> list[str]:
    wrapped = textwrap.wrap(text, width=84)
    return wrapped if wrapped else [text]
