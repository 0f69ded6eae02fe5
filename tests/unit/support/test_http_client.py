"""Unit tests — HttpClient over a mock transport."""

from __future__ import annotations

import json
from datetime import timedelta

import httpx
import pytest

from watchkit.config import HttpConfig
from watchkit.exceptions import ExecutionFailure
from watchkit.support.http import BasicAuth, HttpClient, HttpMethod, HttpRequest


def _client(handler) -> HttpClient:  # type: ignore[no-untyped-def]
    return HttpClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.unit
class TestHttpClient:
    async def test_sends_rendered_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"ok": True})

        client = _client(handler)
        response = await client.execute(
            HttpRequest(
                url="http://hooks.example/alert",
                method=HttpMethod.POST,
                headers={"X-Team": "ops"},
                params={"q": "disk"},
                body="payload",
                auth=BasicAuth("ops", "pw"),
            )
        )
        await client.aclose()

        assert response.status == 201
        assert response.is_success
        assert json.loads(response.body or "") == {"ok": True}
        sent = seen[0]
        assert sent.method == "POST"
        assert sent.url.params["q"] == "disk"
        assert sent.headers["X-Team"] == "ops"
        assert sent.headers["Authorization"].startswith("Basic ")
        assert sent.content == b"payload"

    async def test_non_2xx_is_returned_not_raised(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="boom"))
        response = await client.execute(HttpRequest(url="http://h/"))
        assert response.status == 500
        assert response.body == "boom"

    async def test_timeout_becomes_execution_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        client = _client(handler)
        with pytest.raises(ExecutionFailure, match="timed out"):
            await client.execute(HttpRequest(url="http://h/"))

    async def test_transport_error_becomes_execution_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        with pytest.raises(ExecutionFailure, match="failed") as exc_info:
            await client.execute(HttpRequest(url="http://h/"))
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_construction_opens_nothing(self) -> None:
        client = HttpClient(HttpConfig())
        assert client._client is None

    def test_request_timeouts_override_config(self) -> None:
        client = HttpClient(HttpConfig(read_timeout_seconds=10, connection_timeout_seconds=5))
        timeout = client._timeout_for(
            HttpRequest(url="http://h/", read_timeout=timedelta(seconds=2))
        )
        assert timeout.read == 2
        assert timeout.connect == 5

    async def test_aclose_without_requests(self) -> None:
        await HttpClient().aclose()
