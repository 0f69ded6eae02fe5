"""A parsed watch action: id + declarative action + executable + optional transform."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from watchkit.actions.base import Action, ActionResult, ActionStatus, ExecutableAction
from watchkit.components import Transform, wrap
from watchkit.document import DocumentBuilder
from watchkit.execution.context import WatchExecutionContext
from watchkit.execution.throttle import PeriodThrottler, WatchStatus
from watchkit.logging import get_logger

log = get_logger(__name__)


class ActionWrapper:
    def __init__(
        self,
        id: str,
        action: Action,
        executable: ExecutableAction[Any],
        transform: Transform | None = None,
    ) -> None:
        self.id = id
        self.action = action
        self.executable = executable
        self.transform = transform

    def type(self) -> str:
        return self.action.type()

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        if self.transform is not None:
            wrap(builder, "transform", self.transform)
        builder.field(self.action.type(), self.action)
        return builder.end_object()

    async def execute(
        self,
        ctx: WatchExecutionContext,
        throttler: PeriodThrottler | None = None,
        status: WatchStatus | None = None,
    ) -> "ActionWrapper.Result":
        """Throttle check → per-action transform → executable.

        Always returns a result; a failing transform is recorded as a failure.
        """
        if throttler is not None:
            reason = throttler.throttle(self.id, ctx, status)
            if reason is not None:
                log.debug("action_throttled", action_id=self.id, reason=reason)
                return ActionWrapper.Result(
                    self.id, ActionResult(self.type(), ActionStatus.THROTTLED, reason)
                )

        payload = ctx.payload
        transformed: dict[str, Any] | None = None
        if self.transform is not None:
            try:
                transformed = self.transform.apply(ctx, payload)
            except Exception as exc:
                log.warning("action_transform_failed", action_id=self.id, error=str(exc))
                return ActionWrapper.Result(
                    self.id,
                    ActionResult(
                        self.type(),
                        ActionStatus.FAILURE,
                        f"[{self.transform.type()}] transform failed: {exc}",
                    ),
                )
            payload = transformed

        result = await self.executable.execute(self.id, ctx, payload)
        if status is not None and result.success:
            status.on_action_success(self.id, ctx.execution_time)
        return ActionWrapper.Result(self.id, result, transformed)

    @dataclass(frozen=True)
    class Result:
        """Emitted as ``{"id", "transform"?: {"payload"}, <type>: <result body>}``."""

        id: str
        action_result: ActionResult
        transform_payload: dict[str, Any] | None = None

        def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
            builder.start_object()
            builder.field("id", self.id)
            if self.transform_payload is not None:
                builder.start_object("transform")
                builder.field("payload", self.transform_payload)
                builder.end_object()
            builder.field(self.action_result.type(), self.action_result)
            return builder.end_object()
