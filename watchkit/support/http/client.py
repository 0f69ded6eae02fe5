"""Shared asynchronous HTTP client used by HTTP-based actions."""

from __future__ import annotations

import httpx

from watchkit.config import HttpConfig
from watchkit.exceptions import ExecutionFailure
from watchkit.logging import get_logger
from watchkit.support.http.models import HttpRequest, HttpResponse

log = get_logger(__name__)


class HttpClient:
    """Sends rendered ``HttpRequest`` objects through one pooled httpx client.

    The underlying ``httpx.AsyncClient`` is opened lazily on the first
    request, so constructing an ``HttpClient`` (and anything holding one)
    performs no I/O.

    Usage::

        client = HttpClient(settings.http)
        response = await client.execute(HttpRequest(url="https://example.com"))
        await client.aclose()
    """

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self._config.verify_ssl,
                timeout=httpx.Timeout(
                    self._config.read_timeout_seconds,
                    connect=self._config.connection_timeout_seconds,
                ),
                limits=httpx.Limits(max_connections=self._config.max_connections),
            )
        return self._client

    def _timeout_for(self, request: HttpRequest) -> httpx.Timeout:
        read = (
            request.read_timeout.total_seconds()
            if request.read_timeout is not None
            else self._config.read_timeout_seconds
        )
        connect = (
            request.connection_timeout.total_seconds()
            if request.connection_timeout is not None
            else self._config.connection_timeout_seconds
        )
        return httpx.Timeout(read, connect=connect)

    async def execute(self, request: HttpRequest) -> HttpResponse:
        """Send *request* and return the response, whatever its status.

        Raises:
            ExecutionFailure: The request timed out or the transport failed.
        """
        auth = (
            httpx.BasicAuth(request.auth.username, request.auth.password)
            if request.auth is not None
            else None
        )
        try:
            response = await self._get_client().request(
                request.method.value,
                request.url,
                params=request.params or None,
                headers=request.headers or None,
                content=request.body.encode("utf-8") if request.body is not None else None,
                auth=auth,
                timeout=self._timeout_for(request),
            )
        except httpx.TimeoutException as exc:
            raise ExecutionFailure(
                f"{request.method.value} {request.url} timed out: {exc}", cause=exc
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ExecutionFailure(
                f"{request.method.value} {request.url} failed: {exc}", cause=exc
            ) from exc

        log.debug(
            "http_request_sent",
            method=request.method.value,
            url=request.url,
            status=response.status_code,
        )
        return HttpResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )

    async def aclose(self) -> None:
        """Close the pooled client if one was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
