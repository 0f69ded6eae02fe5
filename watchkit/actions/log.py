"""Logging action — writes a rendered message to the watchkit log.

Action body::

    "logging": {"text": "{{ctx.watch_id}} matched", "level": "warning", "category": "ops"}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from watchkit.actions.base import (
    Action,
    ActionFactory,
    ActionResult,
    ActionStatus,
    ExecutableAction,
    read_result_body,
)
from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError, TemplateError
from watchkit.execution.context import WatchExecutionContext, Wid
from watchkit.logging import get_logger
from watchkit.support.template import Template, TemplateEngine


class LoggingLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LoggingAction(Action):
    TYPE: ClassVar[str] = "logging"

    text: Template
    level: LoggingLevel = LoggingLevel.INFO
    category: str | None = None

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        builder.field("text", self.text)
        builder.field("level", self.level.value)
        if self.category is not None:
            builder.field("category", self.category)
        return builder.end_object()

    @classmethod
    def parse(cls, watch_id: str, action_id: str, parser: DocumentParser) -> "LoggingAction":
        def error(reason: str, field: str | None = None) -> ParseError:
            return ParseError(
                f"failed to parse [{cls.TYPE}] action: {reason}",
                watch_id=watch_id,
                action_id=action_id,
                component_type=cls.TYPE,
                field=field,
            )

        if parser.current_token is not Token.START_OBJECT:
            raise error("action body must be an object")
        text: Template | None = None
        level = LoggingLevel.INFO
        category: str | None = None
        while parser.next_token() is Token.FIELD_NAME:
            name = parser.current_name()
            token = parser.next_token()
            if name == "text":
                try:
                    text = Template.parse(parser)
                except ParseError as exc:
                    raise error(exc.reason, "text") from exc
            elif name == "level" and token is Token.VALUE_STRING:
                try:
                    level = LoggingLevel(parser.text().lower())
                except ValueError:
                    raise error(f"unknown level [{parser.text()}]", "level") from None
            elif name == "category" and token is Token.VALUE_STRING:
                category = parser.text()
            else:
                raise error(f"unexpected field [{name}]", name)
        if text is None:
            raise error("missing required field [text]", "text")
        return cls(text, level, category)


@dataclass(frozen=True)
class LoggingActionResult(ActionResult):
    logged_text: str | None = None

    def _write_fields(self, builder: DocumentBuilder) -> None:
        if self.logged_text is not None:
            builder.field("logged_text", self.logged_text)


class ExecutableLoggingAction(ExecutableAction[LoggingAction]):
    def __init__(
        self,
        action: LoggingAction,
        logger: Any,
        template_engine: TemplateEngine,
        timeout: float | None = None,
    ) -> None:
        super().__init__(action, logger, timeout)
        self._template_engine = template_engine

    async def _execute(
        self, action_id: str, ctx: WatchExecutionContext, payload: dict[str, Any]
    ) -> ActionResult:
        try:
            text = self._template_engine.render(self.action.text, ctx.template_model(payload))
        except TemplateError as exc:
            return self.failure(exc.message)
        emit = getattr(self.logger, self.action.level.value)
        emit(text, action_id=action_id, category=self.action.category)
        return LoggingActionResult(self.type(), ActionStatus.SUCCESS, logged_text=text)


class LoggingActionFactory(
    ActionFactory[LoggingAction, LoggingActionResult, ExecutableLoggingAction]
):
    TYPE = LoggingAction.TYPE

    def __init__(self, template_engine: TemplateEngine, timeout: float | None = None) -> None:
        super().__init__(get_logger("watchkit.actions.logging"))
        self._template_engine = template_engine
        self._timeout = timeout

    def parse_action(
        self, watch_id: str, action_id: str, parser: DocumentParser
    ) -> LoggingAction:
        return LoggingAction.parse(watch_id, action_id, parser)

    def parse_result(
        self, wid: Wid, action_id: str, parser: DocumentParser
    ) -> LoggingActionResult:
        status, reason, fields = read_result_body(
            wid, action_id, parser, {"logged_text": DocumentParser.text}
        )
        return LoggingActionResult(self.TYPE, status, reason, **fields)

    def create_executable(self, action: LoggingAction) -> ExecutableLoggingAction:
        return ExecutableLoggingAction(
            action, self.action_logger, self._template_engine, self._timeout
        )
