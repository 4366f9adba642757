from __future__ import annotations

import asyncio
import json
import time

import httpx
import pytest
from pydantic import BaseModel

from fetchlayer.client import FetchLayerClient
from fetchlayer.exceptions import FetchLayerHTTPError, FetchLayerTimeoutError, FetchLayerValidationError
from fetchlayer.models import RequestConfig, TransportResponse
from fetchlayer.request_options import RequestOptions
from fetchlayer.retry import is_transient_error
from fetchlayer.transport import HttpxTransport


def test_get_decodes_json_and_prefixes_base_url(scripted, make_json_response) -> None:
    transport = scripted([make_json_response({"id": 1})])
    client = FetchLayerClient("https://api.example.com/", transport=transport)

    assert asyncio.run(client.get("/users/1")) == {"id": 1}

    sent = transport.calls[0]
    assert sent.url == "https://api.example.com/users/1"
    assert sent.path == "/users/1"
    assert sent.method == "GET"
    assert sent.headers == {"Content-Type": "application/json"}


def test_client_defaults(scripted) -> None:
    client = FetchLayerClient(transport=scripted([]))
    assert client.base_url == ""
    assert client.defaults.timeout == 10.0
    assert client.defaults.retries == 0
    assert client.defaults.retry_delay == 1.0
    assert client.defaults.parse_json is True
    assert client.defaults.headers == {"Content-Type": "application/json"}


def test_base_url_falls_back_to_environment(monkeypatch, scripted) -> None:
    monkeypatch.setenv("FETCHLAYER_BASE_URL", "https://env.example.com")
    client = FetchLayerClient(transport=scripted([]))
    assert client.base_url == "https://env.example.com"


def test_invalid_base_url_rejected(scripted) -> None:
    with pytest.raises(FetchLayerValidationError, match="scheme and host"):
        FetchLayerClient("not-a-url", transport=scripted([]))


def test_full_url_path_rejected_with_base_url(scripted) -> None:
    client = FetchLayerClient("https://api.example.com", transport=scripted([]))
    with pytest.raises(FetchLayerValidationError):
        asyncio.run(client.get("https://other.example.com/x"))


def test_header_merge_precedence(scripted) -> None:
    transport = scripted([TransportResponse(status_code=204)])
    client = FetchLayerClient(
        "https://api.example.com",
        headers={"X-Client": "sdk", "Accept": "application/json"},
        transport=transport,
    )

    asyncio.run(
        client.get("/items", RequestOptions(headers={"accept": "text/csv", "X-Request-Id": "abc"}))
    )

    assert transport.calls[0].headers == {
        "Content-Type": "application/json",
        "X-Client": "sdk",
        "accept": "text/csv",
        "X-Request-Id": "abc",
    }


def test_per_call_overrides_replace_fields_wholesale(scripted) -> None:
    client = FetchLayerClient(timeout=3.0, retries=4, transport=scripted([]))

    config = client.build_config("/x", RequestOptions(retries=1, parse_json=False, extensions={"no_cache": True}))

    assert config.timeout == 3.0
    assert config.retries == 1
    assert config.parse_json is False
    assert config.extensions == {"no_cache": True}


def test_invalid_per_call_values_raise_validation_error(scripted) -> None:
    client = FetchLayerClient(transport=scripted([]))
    with pytest.raises(FetchLayerValidationError, match="timeout"):
        client.build_config("/x", RequestOptions(timeout=0))
    with pytest.raises(FetchLayerValidationError, match="retries"):
        client.build_config("/x", RequestOptions(retries=-1))


def test_post_serializes_body_and_sets_json_content_type(scripted, make_json_response) -> None:
    transport = scripted([make_json_response({"created": True}, status_code=201)])
    client = FetchLayerClient(
        "https://api.example.com",
        headers={"Content-Type": "text/plain"},
        transport=transport,
    )

    result = asyncio.run(client.post("/users", {"name": "ada"}))

    assert result == {"created": True}
    sent = transport.calls[0]
    assert sent.method == "POST"
    assert json.loads(sent.body) == {"name": "ada"}
    assert sent.headers["Content-Type"] == "application/json"


def test_put_and_patch_accept_pydantic_models(scripted) -> None:
    class Item(BaseModel):
        name: str
        qty: int

    transport = scripted([TransportResponse(status_code=204)])
    client = FetchLayerClient("https://api.example.com", transport=transport)

    asyncio.run(client.put("/items/1", Item(name="bolt", qty=3)))
    asyncio.run(client.patch("/items/1", {"qty": 4}))

    assert [call.method for call in transport.calls] == ["PUT", "PATCH"]
    assert json.loads(transport.calls[0].body) == {"name": "bolt", "qty": 3}
    assert json.loads(transport.calls[1].body) == {"qty": 4}


def test_delete_and_verb_override_caller_method(scripted) -> None:
    transport = scripted([TransportResponse(status_code=204)])
    client = FetchLayerClient("https://api.example.com", transport=transport)

    response = asyncio.run(client.delete("/items/1", RequestOptions(method="POST")))

    assert isinstance(response, TransportResponse)
    assert response.status_code == 204
    assert transport.calls[0].method == "DELETE"
    assert transport.calls[0].body is None


def test_request_uses_method_from_options(scripted) -> None:
    transport = scripted([TransportResponse(status_code=204)])
    client = FetchLayerClient("https://api.example.com", transport=transport)

    asyncio.run(client.request("/items", RequestOptions(method="head")))

    assert transport.calls[0].method == "HEAD"


def test_http_error_surfaces_with_status(scripted) -> None:
    transport = scripted([TransportResponse(status_code=404, body=b"nope")])
    client = FetchLayerClient("https://api.example.com", transport=transport)

    with pytest.raises(FetchLayerHTTPError) as excinfo:
        asyncio.run(client.get("/missing"))

    assert excinfo.value.status == 404
    assert excinfo.value.response.body == b"nope"
    assert len(transport.calls) == 1


def test_all_failure_kinds_are_retried_by_default(scripted, make_json_response) -> None:
    transport = scripted(
        [
            TransportResponse(status_code=404),
            httpx.ConnectError("refused"),
            make_json_response({"ok": True}),
        ]
    )
    client = FetchLayerClient("https://api.example.com", retries=2, retry_delay=0, transport=transport)

    assert asyncio.run(client.get("/flaky")) == {"ok": True}
    assert len(transport.calls) == 3


def test_exhausted_retries_surface_last_failure(scripted) -> None:
    last = httpx.ReadError("reset")
    transport = scripted([httpx.ConnectError("refused"), last])
    client = FetchLayerClient("https://api.example.com", retries=1, retry_delay=0, transport=transport)

    with pytest.raises(httpx.ReadError) as excinfo:
        asyncio.run(client.get("/down"))

    assert excinfo.value is last
    assert len(transport.calls) == 2


def test_should_retry_policy_skips_client_errors(scripted) -> None:
    transport = scripted([TransportResponse(status_code=400)])
    client = FetchLayerClient(
        "https://api.example.com",
        retries=3,
        retry_delay=0,
        should_retry=is_transient_error,
        transport=transport,
    )

    with pytest.raises(FetchLayerHTTPError):
        asyncio.run(client.get("/bad"))
    assert len(transport.calls) == 1


def test_each_attempt_gets_its_own_timeout() -> None:
    calls: list[RequestConfig] = []

    async def slow_transport(config: RequestConfig) -> TransportResponse:
        calls.append(config)
        await asyncio.sleep(5)
        return TransportResponse(status_code=200)

    client = FetchLayerClient(
        "https://api.example.com",
        timeout=0.05,
        retries=1,
        retry_delay=0,
        transport=slow_transport,
    )

    start = time.monotonic()
    with pytest.raises(FetchLayerTimeoutError) as excinfo:
        asyncio.run(client.get("/slow"))

    assert excinfo.value.timeout == 0.05
    assert len(calls) == 2
    assert time.monotonic() - start < 2.0


def test_end_to_end_retry_backoff(scripted) -> None:
    transport = scripted(
        [
            httpx.ConnectError("refused"),
            httpx.ConnectError("refused"),
            TransportResponse(
                status_code=200,
                headers={"content-type": "application/json"},
                body=b'{"ok":true}',
            ),
        ]
    )
    client = FetchLayerClient("https://api.example.com", retries=2, retry_delay=0.1, transport=transport)

    start = time.monotonic()
    result = asyncio.run(client.get("/x"))
    elapsed = time.monotonic() - start

    assert result == {"ok": True}
    assert len(transport.calls) == 3
    assert elapsed >= 0.28


def test_async_context_manager_closes_transport(scripted) -> None:
    transport = scripted([])

    async def run() -> None:
        async with FetchLayerClient(transport=transport):
            pass

    asyncio.run(run())
    assert transport.closed is True


def test_httpx_transport_round_trip() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["headers"] = dict(request.headers)
        captured["body"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"id": "u_1"}, request=request)

    async def run() -> object:
        transport = HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        async with FetchLayerClient("https://api.example.com", transport=transport) as client:
            return await client.post("/users", {"name": "ada"}, RequestOptions(headers={"X-Trace": "t1"}))

    assert asyncio.run(run()) == {"id": "u_1"}
    assert captured["method"] == "POST"
    assert captured["url"] == "https://api.example.com/users"
    assert captured["body"] == {"name": "ada"}
    assert captured["headers"]["x-trace"] == "t1"
    assert captured["headers"]["content-type"] == "application/json"


def test_httpx_transport_connection_errors_pass_through() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    async def run() -> object:
        transport = HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        async with FetchLayerClient("https://api.example.com", transport=transport) as client:
            return await client.get("/users")

    with pytest.raises(httpx.ConnectError, match="name resolution failed"):
        asyncio.run(run())
