"""Action throttling.

``WatchStatus`` remembers when each action of a watch last ran successfully.
It is mutable and owned by whoever drives executions of that watch; share it
across threads only behind external locking.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from watchkit.execution.context import WatchExecutionContext


class WatchStatus:
    def __init__(self) -> None:
        self._last_success: dict[str, datetime] = {}

    def last_successful_execution(self, action_id: str) -> datetime | None:
        return self._last_success.get(action_id)

    def on_action_success(self, action_id: str, execution_time: datetime) -> None:
        self._last_success[action_id] = execution_time


class PeriodThrottler:
    """Suppresses an action that already succeeded within ``period``."""

    def __init__(self, period: timedelta | None) -> None:
        self.period = period

    def throttle(
        self, action_id: str, ctx: WatchExecutionContext, status: WatchStatus | None
    ) -> str | None:
        """Return the throttle reason, or None when the action may run."""
        if status is None or not self.period:
            return None
        last = status.last_successful_execution(action_id)
        if last is None:
            return None
        elapsed = ctx.execution_time - last
        if elapsed < self.period:
            return (
                f"throttling interval is set to [{self.period}] but time elapsed since "
                f"last successful execution is [{elapsed}]"
            )
        return None
