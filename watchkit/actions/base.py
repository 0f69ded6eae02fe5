"""Action layer — declarative actions, their results and executables.

Every action type contributes one ``ActionFactory`` with three operations:

    parse_action       document body  → declarative ``Action``
    parse_result       result body    → ``ActionResult`` (history / audit)
    create_executable  ``Action``     → ``ExecutableAction`` bound to shared services

Design principles:
  - Factories hold no per-watch state; one instance serves every watch.
  - ``create_executable`` only binds objects together.  It performs no I/O.
  - ``ExecutableAction.execute`` always returns an ``ActionResult``.  Runtime
    faults and timeouts become a ``failure`` result so an outcome can always
    be recorded.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

from watchkit.components import Component
from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import DocumentFormatError, ExecutionFailure, ParseError

if TYPE_CHECKING:
    from watchkit.execution.context import Wid, WatchExecutionContext


class Action(Component):
    """The declarative, persisted description of something to do."""


class ActionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    THROTTLED = "throttled"

    @classmethod
    def parse(cls, value: Any, watch_id: str, action_id: str) -> "ActionStatus":
        try:
            return cls(value)
        except ValueError:
            raise ParseError(
                f"unknown action result status [{value}]",
                watch_id=watch_id,
                action_id=action_id,
                field="status",
            ) from None


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one action execution.

    Document body::

        {"status": "failure", "reason": "...", <type-specific fields>}
    """

    action_type: str
    status: ActionStatus
    reason: str | None = None

    def type(self) -> str:
        return self.action_type

    @property
    def success(self) -> bool:
        return self.status is ActionStatus.SUCCESS

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        builder.field("status", self.status.value)
        if self.reason is not None:
            builder.field("reason", self.reason)
        self._write_fields(builder)
        return builder.end_object()

    def _write_fields(self, builder: DocumentBuilder) -> None:
        """Hook for type-specific result fields."""


def read_result_body(
    wid: "Wid",
    action_id: str,
    parser: DocumentParser,
    field_parsers: Mapping[str, Callable[[DocumentParser], Any]] | None = None,
) -> tuple[ActionStatus, str | None, dict[str, Any]]:
    """Read ``{"status", "reason"?, ...}`` and the type-specific fields.

    Returns:
        ``(status, reason, fields)`` where *fields* holds the values produced
        by *field_parsers*, keyed by field name.
    """
    field_parsers = field_parsers or {}
    watch_id = wid.watch_id
    parser.expect(Token.START_OBJECT)
    status: ActionStatus | None = None
    reason: str | None = None
    fields: dict[str, Any] = {}
    while parser.next_token() is Token.FIELD_NAME:
        name = parser.current_name() or ""
        token = parser.next_token()
        if name in ("status", "reason") and token is not Token.VALUE_STRING:
            raise ParseError(
                f"[{name}] must be a string",
                watch_id=watch_id,
                action_id=action_id,
                field=name,
            )
        if name == "status":
            status = ActionStatus.parse(parser.text(), watch_id, action_id)
        elif name == "reason":
            reason = parser.text()
        elif name in field_parsers:
            try:
                fields[name] = field_parsers[name](parser)
            except ParseError as exc:
                raise exc.with_owner(watch_id, action_id) from exc
            except DocumentFormatError as exc:
                raise ParseError.from_format_error(exc, watch_id, action_id, name) from exc
        else:
            raise ParseError(
                f"unexpected field [{name}] in action result",
                watch_id=watch_id,
                action_id=action_id,
                field=name,
            )
    parser.expect(Token.END_OBJECT)
    if status is None:
        raise ParseError(
            "action result is missing required field [status]",
            watch_id=watch_id,
            action_id=action_id,
            field="status",
        )
    return status, reason, fields


A = TypeVar("A", bound=Action)
R = TypeVar("R", bound=ActionResult)


class ExecutableAction(ABC, Generic[A]):
    """Runtime counterpart of an ``Action``, bound to shared services."""

    def __init__(
        self,
        action: A,
        logger: structlog.stdlib.BoundLogger,
        timeout: float | None = None,
    ) -> None:
        self.action = action
        self.logger = logger
        self.timeout = timeout

    def type(self) -> str:
        return self.action.type()

    async def execute(
        self,
        action_id: str,
        ctx: "WatchExecutionContext",
        payload: dict[str, Any] | None = None,
    ) -> ActionResult:
        """Run the action and return its result.  Never raises ``Exception``.

        Args:
            action_id: Id of the action within its watch.
            ctx:       Current execution context.
            payload:   Payload after any per-action transform; defaults to
                       ``ctx.payload``.
        """
        if payload is None:
            payload = ctx.payload
        try:
            if self.timeout is None:
                return await self._execute(action_id, ctx, payload)
            return await asyncio.wait_for(
                self._execute(action_id, ctx, payload), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                "action_timed_out", action_id=action_id, timeout_seconds=self.timeout
            )
            return self.failure(f"action timed out after {self.timeout}s")
        except ExecutionFailure as exc:
            self.logger.warning("action_failed", action_id=action_id, error=exc.message)
            return self.failure(exc.message)
        except Exception as exc:
            self.logger.error(
                "action_execution_error", action_id=action_id, error=str(exc), exc_info=True
            )
            return self.failure(f"{type(exc).__name__}: {exc}")

    def failure(self, reason: str) -> ActionResult:
        return ActionResult(self.type(), ActionStatus.FAILURE, reason)

    @abstractmethod
    async def _execute(
        self, action_id: str, ctx: "WatchExecutionContext", payload: dict[str, Any]
    ) -> ActionResult:
        """Perform the side effect.  May raise; ``execute`` converts failures."""


E = TypeVar("E", bound=ExecutableAction)  # type: ignore[type-arg]


class ActionFactory(ABC, Generic[A, R, E]):
    """Parses and instantiates one action type.

    Subclasses set ``TYPE`` and receive their shared services (HTTP client,
    template engine, ...) through ``__init__``.
    """

    TYPE: str = ""

    def __init__(self, action_logger: structlog.stdlib.BoundLogger) -> None:
        self.action_logger = action_logger

    def type(self) -> str:
        return self.TYPE

    @abstractmethod
    def parse_action(self, watch_id: str, action_id: str, parser: DocumentParser) -> A:
        """Parse the action body the parser is positioned on.

        Raises:
            ParseError: Scoped to *watch_id* / *action_id*.
        """

    @abstractmethod
    def parse_result(self, wid: "Wid", action_id: str, parser: DocumentParser) -> R:
        """Parse a persisted result body for this action type."""

    @abstractmethod
    def create_executable(self, action: A) -> E:
        """Bind *action* to this factory's services.  Performs no I/O."""
