"""Shared pytest fixtures for the watchkit test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import httpx
import pytest

from watchkit.actions.webhook import WebhookAction
from watchkit.config import Settings, override_settings
from watchkit.execution.context import WatchExecutionContext, Wid
from watchkit.services import WatcherServices, create_services
from watchkit.support.http import HttpClient, HttpMethod, HttpRequestTemplate
from watchkit.support.template import Template, TemplateEngine
from watchkit.triggers import ScheduleTrigger

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    settings = Settings(
        actions={"execution_timeout_seconds": 5.0},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(200, text="ok"))


@pytest.fixture
def http_client(transport: RecordingTransport) -> HttpClient:
    return HttpClient(client=httpx.AsyncClient(transport=transport))


@pytest.fixture
def template_engine() -> TemplateEngine:
    return TemplateEngine()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def services(
    test_settings: Settings, http_client: HttpClient, template_engine: TemplateEngine
) -> WatcherServices:
    return create_services(test_settings, http_client, template_engine)


# ---------------------------------------------------------------------------
# Watch pieces
# ---------------------------------------------------------------------------


@pytest.fixture
def schedule_trigger() -> ScheduleTrigger:
    return ScheduleTrigger(interval="5m")


@pytest.fixture
def webhook_action() -> WebhookAction:
    return WebhookAction(
        HttpRequestTemplate(url=Template("http://hooks.example/alert"), method=HttpMethod.POST)
    )


@pytest.fixture
def execution_context() -> WatchExecutionContext:
    return WatchExecutionContext(
        wid=Wid("disk-watch", datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)),
        payload={"hits": {"total": 3}, "host": "db-1"},
        metadata={"team": "ops"},
    )
