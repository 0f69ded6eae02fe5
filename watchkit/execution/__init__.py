"""Execution identifiers, context, throttling and records."""

from watchkit.execution.context import WatchExecutionContext, Wid
from watchkit.execution.record import WatchRecord
from watchkit.execution.throttle import PeriodThrottler, WatchStatus

__all__ = ["PeriodThrottler", "WatchExecutionContext", "WatchRecord", "WatchStatus", "Wid"]
