"""Webhook action — sends one HTTP request per execution.

Action body (an HTTP request template)::

    "webhook": {
        "method": "POST",
        "url": "http://hooks.example/alert",
        "body": "{{ctx.watch_id}} fired with {{ctx.payload.hits.total}} hits"
    }

Result body::

    {"status": "success", "request": {...}, "response": {"status": 200, ...}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from watchkit.actions.base import (
    Action,
    ActionFactory,
    ActionResult,
    ActionStatus,
    ExecutableAction,
    read_result_body,
)
from watchkit.document import DocumentBuilder, DocumentParser
from watchkit.exceptions import (
    DocumentFormatError,
    ExecutionFailure,
    ParseError,
    TemplateError,
)
from watchkit.execution.context import WatchExecutionContext, Wid
from watchkit.logging import get_logger
from watchkit.support.http import HttpClient, HttpRequest, HttpRequestTemplate, HttpResponse
from watchkit.support.template import TemplateEngine


@dataclass(frozen=True)
class WebhookAction(Action):
    TYPE: ClassVar[str] = "webhook"

    request: HttpRequestTemplate

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return self.request.to_document(builder)

    @classmethod
    def parse(cls, watch_id: str, action_id: str, parser: DocumentParser) -> "WebhookAction":
        try:
            return cls(HttpRequestTemplate.parse(parser))
        except ParseError as exc:
            raise ParseError(
                f"failed to parse [{cls.TYPE}] action: {exc.reason}",
                watch_id=watch_id,
                action_id=action_id,
                component_type=cls.TYPE,
                field=exc.field,
            ) from exc
        except DocumentFormatError as exc:
            raise ParseError.from_format_error(exc, watch_id, action_id, cls.TYPE) from exc


@dataclass(frozen=True)
class WebhookActionResult(ActionResult):
    request: HttpRequest | None = None
    response: HttpResponse | None = None

    def _write_fields(self, builder: DocumentBuilder) -> None:
        if self.request is not None:
            builder.field("request", self.request)
        if self.response is not None:
            builder.field("response", self.response)


class ExecutableWebhookAction(ExecutableAction[WebhookAction]):
    def __init__(
        self,
        action: WebhookAction,
        logger: Any,
        http_client: HttpClient,
        template_engine: TemplateEngine,
        timeout: float | None = None,
    ) -> None:
        super().__init__(action, logger, timeout)
        self._http_client = http_client
        self._template_engine = template_engine

    async def _execute(
        self, action_id: str, ctx: WatchExecutionContext, payload: dict[str, Any]
    ) -> ActionResult:
        try:
            request = self.action.request.render(
                self._template_engine, ctx.template_model(payload)
            )
        except TemplateError as exc:
            self.logger.warning("webhook_render_failed", action_id=action_id, error=exc.message)
            return self.failure(exc.message)

        try:
            response = await self._http_client.execute(request)
        except ExecutionFailure as exc:
            self.logger.warning(
                "webhook_request_failed", action_id=action_id, url=request.url, error=exc.message
            )
            return WebhookActionResult(
                self.type(), ActionStatus.FAILURE, exc.message, request=request
            )

        if not response.is_success:
            self.logger.warning(
                "webhook_unsuccessful_response",
                action_id=action_id,
                url=request.url,
                status=response.status,
            )
            return WebhookActionResult(
                self.type(),
                ActionStatus.FAILURE,
                f"received [{response.status}] status code",
                request=request,
                response=response,
            )

        self.logger.info(
            "webhook_sent", action_id=action_id, url=request.url, status=response.status
        )
        return WebhookActionResult(
            self.type(), ActionStatus.SUCCESS, request=request, response=response
        )


class WebhookActionFactory(
    ActionFactory[WebhookAction, WebhookActionResult, ExecutableWebhookAction]
):
    TYPE = WebhookAction.TYPE

    def __init__(
        self,
        http_client: HttpClient,
        template_engine: TemplateEngine,
        timeout: float | None = None,
    ) -> None:
        super().__init__(get_logger("watchkit.actions.webhook"))
        self._http_client = http_client
        self._template_engine = template_engine
        self._timeout = timeout

    def parse_action(
        self, watch_id: str, action_id: str, parser: DocumentParser
    ) -> WebhookAction:
        return WebhookAction.parse(watch_id, action_id, parser)

    def parse_result(
        self, wid: Wid, action_id: str, parser: DocumentParser
    ) -> WebhookActionResult:
        status, reason, fields = read_result_body(
            wid,
            action_id,
            parser,
            {"request": HttpRequest.parse, "response": HttpResponse.parse},
        )
        return WebhookActionResult(self.TYPE, status, reason, **fields)

    def create_executable(self, action: WebhookAction) -> ExecutableWebhookAction:
        return ExecutableWebhookAction(
            action,
            self.action_logger,
            self._http_client,
            self._template_engine,
            self._timeout,
        )
