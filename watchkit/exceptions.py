"""watchkit — Exception hierarchy.

All exceptions raised by the library inherit from WatchkitError so that
callers can catch the full family with a single except clause when needed.

Hierarchy:
    WatchkitError
    ├── DocumentFormatError
    ├── ParseError
    │   └── UnknownComponentTypeError
    │       └── UnknownActionTypeError
    ├── TemplateError
    ├── ConfigurationError
    ├── BuilderError
    └── ExecutionFailure
"""

from __future__ import annotations

from typing import Any


class WatchkitError(Exception):
    """Base exception for all watchkit errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Document layer
# ---------------------------------------------------------------------------


class DocumentFormatError(WatchkitError):
    """The structured document is malformed (unexpected token, missing close)."""

    def __init__(
        self, message: str, context: dict[str, Any] | None = None, field: str | None = None
    ) -> None:
        super().__init__(message, context)
        self.field = field


# ---------------------------------------------------------------------------
# Component parsing
# ---------------------------------------------------------------------------


class ParseError(WatchkitError):
    """A component sub-document violates the schema of its type."""

    def __init__(
        self,
        message: str,
        watch_id: str | None = None,
        action_id: str | None = None,
        component_type: str | None = None,
        field: str | None = None,
    ) -> None:
        prefix = ""
        if watch_id is not None and action_id is not None:
            prefix = f"watch [{watch_id}] action [{action_id}]: "
        elif watch_id is not None:
            prefix = f"watch [{watch_id}]: "
        super().__init__(
            prefix + message,
            context={
                "watch_id": watch_id,
                "action_id": action_id,
                "component_type": component_type,
                "field": field,
            },
        )
        self.reason = message
        self.watch_id = watch_id
        self.action_id = action_id
        self.component_type = component_type
        self.field = field

    @classmethod
    def from_format_error(
        cls,
        exc: DocumentFormatError,
        watch_id: str,
        action_id: str | None = None,
        component_type: str | None = None,
    ) -> "ParseError":
        """Scope a token-level error raised inside a component body."""
        prefix = f"failed to parse [{component_type}]: " if component_type else ""
        return cls(
            prefix + exc.message,
            watch_id=watch_id,
            action_id=action_id,
            component_type=component_type,
            field=exc.field,
        )

    def with_owner(self, watch_id: str, action_id: str | None = None) -> "ParseError":
        """Return a copy of this error scoped to the owning watch / action."""
        return type(self)(
            self.reason,
            watch_id=watch_id,
            action_id=action_id if action_id is not None else self.action_id,
            component_type=self.component_type,
            field=self.field,
        )


class UnknownComponentTypeError(ParseError):
    """No parser is registered for a trigger/input/condition/transform type."""


class UnknownActionTypeError(UnknownComponentTypeError):
    """No action factory is registered for the discriminator."""

    @classmethod
    def for_type(
        cls, action_type: str, action_id: str | None = None, watch_id: str | None = None
    ) -> "UnknownActionTypeError":
        return cls(
            f"unknown action type [{action_type}]",
            watch_id=watch_id,
            action_id=action_id,
            component_type=action_type,
        )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateError(WatchkitError):
    """A template has invalid syntax or references an unknown value."""

    def __init__(self, template: str, reason: str) -> None:
        super().__init__(
            f"Invalid template '{template}': {reason}",
            context={"template": template, "reason": reason},
        )
        self.template = template
        self.reason = reason


# ---------------------------------------------------------------------------
# Startup wiring / building / execution
# ---------------------------------------------------------------------------


class ConfigurationError(WatchkitError):
    """Invalid startup wiring (duplicate registration, frozen registry)."""


class BuilderError(WatchkitError):
    """A watch source could not be built."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(
            message,
            context={"cause": repr(cause)} if cause is not None else None,
        )
        self.cause = cause


class ExecutionFailure(WatchkitError):
    """A runtime fault inside an executable action or its transport."""

    def __init__(
        self,
        message: str,
        action_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            context={"action_id": action_id, "cause": repr(cause) if cause else None},
        )
        self.action_id = action_id
        self.cause = cause
