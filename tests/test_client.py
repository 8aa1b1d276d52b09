"""End-to-end tests driving a generated client over a mock transport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
import importlib
import json
from types import ModuleType
from typing import Any

import httpx
import pytest

from openapi_to_client_generator.generator import run_generation
from .fixture_helpers import fixture_path, unique_package_name

_ENVIRONMENT_PAYLOAD: dict[str, Any] = {
    "id": "abc",
    "creator": "user-1",
    "hub_id": "hub-1",
    "name": "production",
    "about": None,
    "state": {"current": "live", "changed": "2024-01-01T00:00:00Z"},
    "network_mode": "ipv6-only",
    "tags": ["edge"],
}

type Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(scope="module")
def generated(tmp_path_factory: pytest.TempPathFactory) -> ModuleType:
    """Generate the environments client once and import it as a package."""
    root = tmp_path_factory.mktemp("generated")
    package_name = unique_package_name("environments_client")
    run_generation(
        input_path=fixture_path("environments.yaml"),
        output_dir=root / package_name,
        format_output=False,
    )
    with pytest.MonkeyPatch.context() as patch:
        patch.syspath_prepend(str(root))
        return importlib.import_module(package_name)


def _call(
    generated: ModuleType,
    handler: Handler,
    operation: Callable[[Any], Any],
) -> tuple[Any, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def _scenario() -> Any:
        async with httpx.AsyncClient(transport=httpx.MockTransport(_record)) as client:
            api = generated.Api("secret-token", "hub-1", client=client)
            return await operation(api)

    return asyncio.run(_scenario()), requests


def _json_response(payload: Any) -> Handler:
    return lambda request: httpx.Response(200, json=payload)


def test_path_substitution_and_headers(generated: ModuleType) -> None:
    """Path placeholders take the argument value; fixed headers are attached."""
    result, requests = _call(
        generated,
        _json_response({"data": _ENVIRONMENT_PAYLOAD}),
        lambda api: api.get_environment("abc"),
    )

    (request,) = requests
    assert request.method == "GET"
    assert str(request.url) == "https://api.example.io/v1/environments/abc"
    assert request.headers["authorization"] == "Bearer secret-token"
    assert request.headers["x-hub-id"] == "hub-1"
    assert request.headers["user-agent"] == generated.api.USER_AGENT
    assert generated.api.USER_AGENT.endswith("/2024.01.01")

    environment = result.data
    assert environment.id == "abc"
    assert environment.about is None
    assert environment.state.changed == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_query_lists_are_comma_joined(generated: ModuleType) -> None:
    """A list value is sent as one comma-joined field, not repeated keys."""
    _, requests = _call(
        generated,
        _json_response({"data": []}),
        lambda api: api.get_environments(include=["creator", "hubs"], page=2),
    )

    (request,) = requests
    assert request.url.path == "/v1/environments"
    assert request.url.query == b"include=creator%2Chubs&page=2"
    assert request.url.params.get_list("include") == ["creator,hubs"]


def test_query_omits_unset_parameters_and_renders_enums(generated: ModuleType) -> None:
    """Absent optional parameters are skipped; enum members are sent as their literals."""
    models = importlib.import_module(f"{generated.__name__}.models")
    _, requests = _call(
        generated,
        _json_response({"data": []}),
        lambda api: api.get_environments(include=[models.IncludeItem.Creator]),
    )

    (request,) = requests
    assert request.url.query == b"include=creator"


def test_query_is_omitted_without_parameters(generated: ModuleType) -> None:
    """No query string is appended when every optional parameter is unset."""
    _, requests = _call(
        generated,
        _json_response({"data": []}),
        lambda api: api.get_environments(),
    )

    (request,) = requests
    assert str(request.url) == "https://api.example.io/v1/environments"


def test_request_body_is_sent_by_alias_without_unset_fields(generated: ModuleType) -> None:
    """Request models are serialized by alias with unset fields left out."""
    models = importlib.import_module(f"{generated.__name__}.models")
    body = models.CreateEnvironmentRequest(name="staging", about=None)

    _, requests = _call(
        generated,
        _json_response({"data": _ENVIRONMENT_PAYLOAD}),
        lambda api: api.create_environment(body),
    )

    (request,) = requests
    assert request.method == "POST"
    assert json.loads(request.content) == {"name": "staging", "about": None}


def test_keyword_field_is_sent_under_its_wire_name(generated: ModuleType) -> None:
    """Fields renamed for Python are populated and dumped under the wire name."""
    models = importlib.import_module(f"{generated.__name__}.models")
    job = models.Job.model_validate({"id": "job-1", "class": "maintenance", "priority": 2})

    assert job.class_ == "maintenance"
    assert job.priority is models.Priority.Priority2
    assert job.model_dump(mode="json", by_alias=True, exclude_unset=True) == {
        "id": "job-1",
        "class": "maintenance",
        "priority": 2,
    }


def test_enumeration_round_trip(generated: ModuleType) -> None:
    """Enum literals parse into members and serialize back unchanged."""
    models = importlib.import_module(f"{generated.__name__}.models")
    environment = models.Environment.model_validate(_ENVIRONMENT_PAYLOAD)

    assert environment.network_mode is models.NetworkMode.Ipv6Only
    assert environment.state.current is models.StateCurrent.Live
    dumped = environment.model_dump(mode="json", by_alias=True)
    assert dumped["network_mode"] == "ipv6-only"
    assert dumped["state"]["current"] == "live"


def test_undecodable_body_yields_none(generated: ModuleType) -> None:
    """The generic request degrades to None when the body is not JSON."""
    result, _ = _call(
        generated,
        lambda request: httpx.Response(200, content=b"<html>oops</html>"),
        lambda api: api.request("GET", "/v1/environments"),
    )
    assert result is None


def test_typed_operation_raises_on_undecodable_body(generated: ModuleType) -> None:
    """Operations that expect a model report an undecodable body."""
    with pytest.raises(generated.api.ResponseError, match="could not be decoded"):
        _call(
            generated,
            lambda request: httpx.Response(200, content=b""),
            lambda api: api.get_environment("abc"),
        )


def test_operation_without_response_model_returns_none(generated: ModuleType) -> None:
    """Operations without a 200 response model return nothing."""
    result, requests = _call(
        generated,
        lambda request: httpx.Response(202, json={}),
        lambda api: api.remove_environment("abc"),
    )
    assert result is None
    assert requests[0].method == "DELETE"


def test_transport_errors_propagate(generated: ModuleType) -> None:
    """Failures below HTTP are not swallowed."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(httpx.ConnectError):
        _call(generated, _refuse, lambda api: api.get_environments())


@pytest.fixture(scope="module")
def hubs(tmp_path_factory: pytest.TempPathFactory) -> ModuleType:
    """Generate the JSON-described hubs client once and import it as a package."""
    root = tmp_path_factory.mktemp("generated_hubs")
    package_name = unique_package_name("hubs_client")
    run_generation(
        input_path=fixture_path("hubs.json"),
        output_dir=root / package_name,
        format_output=False,
    )
    with pytest.MonkeyPatch.context() as patch:
        patch.syspath_prepend(str(root))
        return importlib.import_module(package_name)


def test_booleans_and_enum_lists_in_query(hubs: ModuleType) -> None:
    """Booleans are rendered lowercase and enum lists are joined by their literals."""
    models = importlib.import_module(f"{hubs.__name__}.models")
    result, requests = _call(
        hubs,
        _json_response({"data": [{"id": "m-1", "role": "2fa-pending", "type": "human"}]}),
        lambda api: api.list_hub_members(
            "hub-9", roles=[models.Role.Owner, models.Role.Role2faPending], active=True
        ),
    )

    (request,) = requests
    assert request.url.path == "/api/v1/hubs/hub-9/members"
    assert request.url.params["roles"] == "owner,2fa-pending"
    assert request.url.params["active"] == "true"
    (member,) = result.data
    assert member.role is models.Role.Role2faPending
    assert member.type_field == "human"
    assert member.email is None
