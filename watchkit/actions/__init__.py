"""Action types, the action registry and the executable wrapper."""

from watchkit.actions.base import (
    Action,
    ActionFactory,
    ActionResult,
    ActionStatus,
    ExecutableAction,
)
from watchkit.actions.log import LoggingAction, LoggingActionFactory, LoggingActionResult
from watchkit.actions.registry import ActionRegistry
from watchkit.actions.webhook import WebhookAction, WebhookActionFactory, WebhookActionResult
from watchkit.actions.wrapper import ActionWrapper

__all__ = [
    "Action",
    "ActionFactory",
    "ActionRegistry",
    "ActionResult",
    "ActionStatus",
    "ActionWrapper",
    "ExecutableAction",
    "LoggingAction",
    "LoggingActionFactory",
    "LoggingActionResult",
    "WebhookAction",
    "WebhookActionFactory",
    "WebhookActionResult",
]
