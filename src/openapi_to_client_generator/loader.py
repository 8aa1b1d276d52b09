"""OpenAPI document loading and basic validation."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .errors import GenerationError
from .json_types import JSONObject, JSONValue, as_object, optional_string

_JSON_EXTENSIONS = {".json"}
_YAML_EXTENSIONS = {".yaml", ".yml"}


class OpenAPILoadError(GenerationError):
    """Raised when a source OpenAPI document cannot be loaded."""


@dataclass(frozen=True)
class ApiDocument:
    """The parts of an OpenAPI document the compiler consumes."""

    openapi_version: str
    version: str
    server_url: str
    schemas: JSONObject
    parameters: JSONObject
    paths: JSONObject


def load_api_document(path: Path) -> ApiDocument:
    """Load, validate and unpack an OpenAPI document.

    Args:
        path (Path): Path to a ``.json``, ``.yaml`` or ``.yml`` document.

    Returns:
        ApiDocument: Version, server and component data of the document.
    """
    document = load_openapi_document(path)
    openapi_version = get_openapi_version(document)
    ensure_supported_version(openapi_version)

    info = as_object(document.get("info")) or {}
    version = optional_string(info.get("version"))
    if version is None:
        raise OpenAPILoadError(f"Missing 'info.version' in {path}")

    servers = document.get("servers")
    first_server = as_object(servers[0]) if isinstance(servers, list) and servers else None
    server_url = optional_string(first_server.get("url")) if first_server is not None else None
    if server_url is None:
        raise OpenAPILoadError(f"Missing 'servers[0].url' in {path}")

    components = as_object(document.get("components")) or {}
    return ApiDocument(
        openapi_version=openapi_version,
        version=version,
        server_url=server_url,
        schemas=as_object(components.get("schemas")) or {},
        parameters=as_object(components.get("parameters")) or {},
        paths=as_object(document.get("paths")) or {},
    )


def load_openapi_document(path: Path) -> JSONObject:
    """Load and validate an OpenAPI document from JSON or YAML, chosen by file extension."""
    if not path.exists():
        raise OpenAPILoadError(f"File does not exist: {path}")

    extension = path.suffix.lower()
    if extension not in _JSON_EXTENSIONS and extension not in _YAML_EXTENSIONS:
        raise OpenAPILoadError(f"Unsupported file type for {path}: {extension or '<none>'}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            if extension in _JSON_EXTENSIONS:
                payload = json.load(handle)
            else:
                payload = yaml.safe_load(handle)
    except OSError as exc:
        raise OpenAPILoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise OpenAPILoadError(f"Failed to parse JSON in {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise OpenAPILoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise OpenAPILoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload)!r}"
        )
    document = _stringify_keys(payload)

    try:
        OpenAPI.model_validate(document)
    except ValidationError as exc:
        raise OpenAPILoadError(f"OpenAPI schema validation failed for {path}: {exc}") from exc

    return document


def get_openapi_version(document: JSONObject) -> str:
    """Return the declared OpenAPI version string."""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise OpenAPILoadError("Missing or invalid 'openapi' version field")
    return version.strip()


def ensure_supported_version(version: str) -> None:
    """Validate that the input version is OpenAPI v3+."""
    major_text = version.split(".", maxsplit=1)[0]
    try:
        major = int(major_text)
    except ValueError as exc:
        raise OpenAPILoadError(f"Unable to parse OpenAPI version: {version}") from exc
    if major < 3:
        raise OpenAPILoadError(f"Unsupported OpenAPI version {version}; only v3+ is supported")


def _stringify_keys(value: JSONValue) -> JSONValue:
    # YAML reads unquoted status codes such as ``200`` as integers.
    if isinstance(value, Mapping):
        return {str(key): _stringify_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(item) for item in value]
    return value
