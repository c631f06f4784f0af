from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from gameconn_sdk.exceptions import TransportError
from gameconn_sdk.http_client import (
    JSON_HEADERS,
    HttpxExecutor,
    close_default_executor,
    default_executor,
    set_default_executor,
)


def _executor(handler) -> HttpxExecutor:
    return HttpxExecutor(timeout_seconds=1.0, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_sends_json_headers_and_decodes_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"code": 0, "data": {"ok": True}})

    executor = _executor(handler)
    payload = await executor.get("http://gate.example.com:8080/index.html?func=ping", dict(JSON_HEADERS))
    await executor.aclose()

    assert payload == {"code": 0, "data": {"ok": True}}
    assert seen[0].method == "GET"
    assert seen[0].headers["Accept"] == "application/json"
    assert seen[0].headers["Content-Type"].startswith("application/json")


@pytest.mark.asyncio
async def test_post_sends_body_verbatim() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"code": 0})

    executor = _executor(handler)
    await executor.post("http://gate.example.com:8080/index.html", json.dumps({"func": "login"}), dict(JSON_HEADERS))

    assert bodies == [{"func": "login"}]


@pytest.mark.asyncio
async def test_empty_body_yields_none() -> None:
    executor = _executor(lambda request: httpx.Response(200))

    assert await executor.get("http://gate.example.com:8080/index.html", {}) is None


@pytest.mark.asyncio
async def test_error_status_returns_json_body() -> None:
    executor = _executor(lambda request: httpx.Response(403, json={"code": 7, "message": "denied"}))

    payload = await executor.get("http://gate.example.com:8080/index.html?func=1000", {})

    assert payload == {"code": 7, "message": "denied"}


@pytest.mark.asyncio
async def test_error_status_with_html_body_raises_transport_error() -> None:
    executor = _executor(lambda request: httpx.Response(503, text="<html>down</html>"))

    with pytest.raises(TransportError) as excinfo:
        await executor.post("http://gate.example.com:8080/index.html", "{}", {})

    assert excinfo.value.code == "INVALID_RESPONSE"
    assert excinfo.value.status_code == 503
    assert excinfo.value.raw_payload == "<html>down</html>"


@pytest.mark.asyncio
async def test_network_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    executor = _executor(handler)
    with pytest.raises(TransportError) as excinfo:
        await executor.get("http://gate.example.com:8080/index.html", {})

    assert excinfo.value.code == "TRANSPORT_ERROR"
    assert excinfo.value.details == {"type": "ConnectError", "method": "GET"}


@pytest.mark.asyncio
async def test_invalid_json_raises_transport_error() -> None:
    executor = _executor(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(TransportError) as excinfo:
        await executor.get("http://gate.example.com:8080/index.html", {})

    assert excinfo.value.code == "INVALID_RESPONSE"


def test_default_executor_is_shared_until_replaced() -> None:
    first = default_executor()
    assert default_executor() is first

    replacement = HttpxExecutor()
    set_default_executor(replacement)
    try:
        assert default_executor() is replacement
    finally:
        set_default_executor(first)


def test_client_is_rebuilt_for_a_new_event_loop() -> None:
    executor = _executor(lambda request: httpx.Response(200, json={"code": 0}))
    clients = []

    async def call() -> None:
        await executor.get("http://gate.example.com:8080/index.html", {})
        clients.append(executor._client)

    asyncio.run(call())
    asyncio.run(call())

    assert clients[0] is not clients[1]
    asyncio.run(executor.aclose())


@pytest.mark.asyncio
async def test_close_default_executor_closes_client_and_forgets_it() -> None:
    previous = default_executor()
    executor = _executor(lambda request: httpx.Response(200, json={"code": 0}))
    set_default_executor(executor)
    try:
        await default_executor().get("http://gate.example.com:8080/index.html", {})
        client = executor._client

        await close_default_executor()

        assert client is not None and client.is_closed
        assert executor._client is None
        assert default_executor() is not executor
    finally:
        set_default_executor(previous)
