"""Watch source builder.

Assembles the declarative pieces of a watch and emits them as one document::

    {
        "trigger":   {"schedule": {"interval": "5m"}},
        "input":     {"none": {}},
        "condition": {"always": {}},
        "transform": {...},                       # optional
        "throttle_period_in_millis": 5000,        # optional
        "actions":   {"notify-ops": {"webhook": {...}}},
        "metadata":  {...}                        # optional
    }

A builder is mutable and belongs to a single owner until it is emitted.
Emitting never changes it, so ``build()`` can be called repeatedly.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from watchkit.actions.base import Action
from watchkit.components import Condition, Input, Transform, Trigger, wrap
from watchkit.conditions import AlwaysCondition
from watchkit.document import DocumentBuilder, DocumentFormat
from watchkit.exceptions import BuilderError
from watchkit.inputs import NoneInput

THROTTLE_FIELD = "throttle_period_in_millis"


@dataclass(frozen=True)
class TransformedAction:
    """An action under its id, with an optional transform applied first."""

    id: str
    action: Action
    transform: Transform | None = None

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        if self.transform is not None:
            wrap(builder, "transform", self.transform)
        builder.field(self.action.type(), self.action)
        return builder.end_object()


class WatchSourceBuilder:
    """Chained setters; the last write wins.

    Usage::

        source = (
            WatchSourceBuilder()
            .trigger(ScheduleTrigger(interval="5m"))
            .add_action("notify-ops", WebhookAction(request))
            .build_as_bytes(DocumentFormat.JSON)
        )
    """

    def __init__(self) -> None:
        self._trigger: Trigger | None = None
        self._input: Input = NoneInput()
        self._condition: Condition = AlwaysCondition()
        self._transform: Transform | None = None
        self._throttle_period: timedelta | None = None
        self._actions: dict[str, TransformedAction] = {}
        self._metadata: dict[str, Any] | None = None

    def trigger(self, trigger: Trigger) -> "WatchSourceBuilder":
        self._trigger = trigger
        return self

    def input(self, input: Input) -> "WatchSourceBuilder":
        self._input = input
        return self

    def condition(self, condition: Condition) -> "WatchSourceBuilder":
        self._condition = condition
        return self

    def transform(self, transform: Transform | None) -> "WatchSourceBuilder":
        self._transform = transform
        return self

    def throttle_period(self, period: timedelta | int | None) -> "WatchSourceBuilder":
        """Set the throttle period; an int is milliseconds."""
        if isinstance(period, bool):
            raise TypeError("throttle period must be a timedelta or milliseconds, not bool")
        if isinstance(period, int):
            period = timedelta(milliseconds=period)
        self._throttle_period = period
        return self

    def add_action(
        self, id: str, action: Action, transform: Transform | None = None
    ) -> "WatchSourceBuilder":
        """Add *action* under *id*; an existing action with that id is replaced."""
        self._actions[id] = TransformedAction(id, action, transform)
        return self

    def metadata(self, metadata: Mapping[str, Any] | None) -> "WatchSourceBuilder":
        self._metadata = dict(metadata) if metadata is not None else None
        return self

    @property
    def actions(self) -> dict[str, TransformedAction]:
        return dict(self._actions)

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        if self._trigger is None:
            raise BuilderError("failed to build watch source. no trigger defined")
        if self._throttle_period is not None and self._throttle_period < timedelta(0):
            raise BuilderError(
                "failed to build watch source. throttle period must not be negative"
            )
        builder.start_object()
        wrap(builder, "trigger", self._trigger)
        wrap(builder, "input", self._input)
        wrap(builder, "condition", self._condition)
        if self._transform is not None:
            wrap(builder, "transform", self._transform)
        if self._throttle_period is not None:
            builder.field(THROTTLE_FIELD, self._throttle_period)
        builder.start_object("actions")
        for action_id, action in self._actions.items():
            builder.field(action_id, action)
        builder.end_object()
        if self._metadata is not None:
            builder.field("metadata", self._metadata)
        return builder.end_object()

    def build(self) -> dict[str, Any]:
        """Return the emitted document tree.

        Raises:
            BuilderError: No trigger is set.
        """
        return self.to_document(DocumentBuilder()).build()

    def build_as_bytes(self, format: DocumentFormat | str = DocumentFormat.JSON) -> bytes:
        """Emit and encode in *format*.

        Raises:
            BuilderError: No trigger is set, or emission/encoding failed
                (the original error is attached as ``cause``).
        """
        try:
            return self.to_document(DocumentBuilder()).bytes(format)
        except BuilderError:
            raise
        except Exception as exc:
            raise BuilderError("Failed to build watch source", cause=exc) from exc
