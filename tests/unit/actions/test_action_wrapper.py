"""Unit tests — ActionWrapper execution and throttling."""

from __future__ import annotations

from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from watchkit.actions.base import ActionResult, ActionStatus, ExecutableAction
from watchkit.actions.log import LoggingAction
from watchkit.actions.wrapper import ActionWrapper
from watchkit.components import Transform
from watchkit.document import DocumentBuilder
from watchkit.execution.context import WatchExecutionContext
from watchkit.execution.throttle import PeriodThrottler, WatchStatus
from watchkit.support.template import Template
from watchkit.transforms import SimpleTransform


class BrokenTransform(Transform):
    TYPE = "broken"

    def apply(self, ctx: WatchExecutionContext, payload: dict[str, Any]) -> dict[str, Any]:
        raise KeyError("field")

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return builder.start_object().end_object()


def _wrapper(
    status: ActionStatus = ActionStatus.SUCCESS, transform: Transform | None = None
) -> tuple[ActionWrapper, AsyncMock]:
    executable = MagicMock(spec=ExecutableAction)
    executable.execute = AsyncMock(return_value=ActionResult("logging", status))
    wrapper = ActionWrapper("log", LoggingAction(Template("hi")), executable, transform)
    return wrapper, executable.execute


@pytest.mark.unit
class TestActionWrapperExecute:
    async def test_runs_executable_with_context_payload(
        self, execution_context: WatchExecutionContext
    ) -> None:
        wrapper, execute = _wrapper()
        result = await wrapper.execute(execution_context)
        assert result.id == "log"
        assert result.action_result.success
        assert result.transform_payload is None
        execute.assert_awaited_once_with("log", execution_context, execution_context.payload)

    async def test_transform_payload_is_passed_and_recorded(
        self, execution_context: WatchExecutionContext
    ) -> None:
        wrapper, execute = _wrapper(transform=SimpleTransform({"severity": "high"}))
        result = await wrapper.execute(execution_context)
        execute.assert_awaited_once_with("log", execution_context, {"severity": "high"})
        assert result.transform_payload == {"severity": "high"}

    async def test_failing_transform_is_failure(
        self, execution_context: WatchExecutionContext
    ) -> None:
        wrapper, execute = _wrapper(transform=BrokenTransform())
        result = await wrapper.execute(execution_context)
        assert result.action_result.status is ActionStatus.FAILURE
        assert "[broken] transform failed" in (result.action_result.reason or "")
        execute.assert_not_awaited()

    async def test_throttled_within_period(self, execution_context: WatchExecutionContext) -> None:
        wrapper, execute = _wrapper()
        status = WatchStatus()
        status.on_action_success("log", execution_context.execution_time - timedelta(seconds=1))
        result = await wrapper.execute(
            execution_context, PeriodThrottler(timedelta(seconds=5)), status
        )
        assert result.action_result.status is ActionStatus.THROTTLED
        assert "throttling interval" in (result.action_result.reason or "")
        execute.assert_not_awaited()

    async def test_runs_after_period(self, execution_context: WatchExecutionContext) -> None:
        wrapper, execute = _wrapper()
        status = WatchStatus()
        status.on_action_success("log", execution_context.execution_time - timedelta(seconds=10))
        result = await wrapper.execute(
            execution_context, PeriodThrottler(timedelta(seconds=5)), status
        )
        assert result.action_result.success
        assert status.last_successful_execution("log") == execution_context.execution_time

    async def test_failure_does_not_update_status(
        self, execution_context: WatchExecutionContext
    ) -> None:
        wrapper, _ = _wrapper(ActionStatus.FAILURE)
        status = WatchStatus()
        await wrapper.execute(execution_context, PeriodThrottler(timedelta(seconds=5)), status)
        assert status.last_successful_execution("log") is None

    def test_result_document(self) -> None:
        result = ActionWrapper.Result(
            "log", ActionResult("logging", ActionStatus.SUCCESS), {"severity": "high"}
        )
        assert DocumentBuilder().value(result).build() == {
            "id": "log",
            "transform": {"payload": {"severity": "high"}},
            "logging": {"status": "success"},
        }

    def test_wrapper_document(self) -> None:
        wrapper, _ = _wrapper(transform=SimpleTransform({"a": 1}))
        assert DocumentBuilder().value(wrapper).build() == {
            "transform": {"simple": {"a": 1}},
            "logging": {"text": "hi", "level": "info"},
        }


@pytest.mark.unit
class TestPeriodThrottler:
    def test_no_status_never_throttles(self, execution_context: WatchExecutionContext) -> None:
        assert PeriodThrottler(timedelta(seconds=5)).throttle("a", execution_context, None) is None

    def test_no_period_never_throttles(self, execution_context: WatchExecutionContext) -> None:
        status = WatchStatus()
        status.on_action_success("a", execution_context.execution_time)
        assert PeriodThrottler(None).throttle("a", execution_context, status) is None
