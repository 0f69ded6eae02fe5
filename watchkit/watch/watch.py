"""The parsed, runtime form of a watch."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from watchkit.actions.wrapper import ActionWrapper
from watchkit.components import Condition, Input, Transform, Trigger
from watchkit.document import DocumentBuilder
from watchkit.execution.context import WatchExecutionContext
from watchkit.execution.record import WatchRecord
from watchkit.execution.throttle import PeriodThrottler, WatchStatus
from watchkit.logging import get_logger, watch_context
from watchkit.watch.source import WatchSourceBuilder

log = get_logger(__name__)


@dataclass
class Watch:
    id: str
    trigger: Trigger
    input: Input
    condition: Condition
    transform: Transform | None = None
    throttle_period: timedelta | None = None
    actions: list[ActionWrapper] = field(default_factory=list)
    metadata: dict[str, Any] | None = None

    def action(self, action_id: str) -> ActionWrapper | None:
        return next((a for a in self.actions if a.id == action_id), None)

    def source(self) -> WatchSourceBuilder:
        """A builder holding this watch's declarative state."""
        builder = (
            WatchSourceBuilder()
            .trigger(self.trigger)
            .input(self.input)
            .condition(self.condition)
            .transform(self.transform)
            .throttle_period(self.throttle_period)
            .metadata(self.metadata)
        )
        for wrapper in self.actions:
            builder.add_action(wrapper.id, wrapper.action, wrapper.transform)
        return builder

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return self.source().to_document(builder)

    def throttler(self, default: timedelta | None = None) -> PeriodThrottler:
        return PeriodThrottler(self.throttle_period if self.throttle_period is not None else default)

    async def execute_actions(
        self,
        ctx: WatchExecutionContext,
        status: WatchStatus | None = None,
        default_throttle_period: timedelta | None = None,
    ) -> WatchRecord:
        """Run every action in declaration order and collect the results.

        Input, condition and the watch-level transform are evaluated by the
        caller; *ctx.payload* is what the actions see.
        """
        throttler = self.throttler(default_throttle_period)
        results: list[ActionWrapper.Result] = []
        with watch_context(watch_id=self.id, wid=ctx.wid.value):
            for wrapper in self.actions:
                with watch_context(action_id=wrapper.id):
                    results.append(await wrapper.execute(ctx, throttler, status))
            log.info(
                "watch_actions_executed",
                actions=len(results),
                failed=sum(1 for r in results if not r.action_result.success),
            )
        return WatchRecord(ctx.wid, results)
