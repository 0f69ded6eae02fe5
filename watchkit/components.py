"""Component contracts — the pluggable families that compose a watch.

Every component kind has a type discriminator and knows how to read and write
exactly its own body.  The container wraps the body under the discriminator::

    "condition": {"always": {}}
                  ^^^^^^^^ ^^ body written by AlwaysCondition.to_document()
                  discriminator written by the container

Parsers are registered per family in a ``ComponentRegistry`` keyed by
discriminator; the registry owns the ``{<type>: <body>}`` wrapper and hands
the component parser a ``DocumentParser`` positioned on the body.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import (
    ConfigurationError,
    DocumentFormatError,
    ParseError,
    UnknownComponentTypeError,
)
from watchkit.logging import get_logger

if TYPE_CHECKING:
    from watchkit.execution.context import WatchExecutionContext

log = get_logger(__name__)

C = TypeVar("C", bound="Component")


class Component(ABC):
    """A typed, declarative piece of a watch."""

    TYPE: ClassVar[str] = ""

    def type(self) -> str:
        return self.TYPE

    @abstractmethod
    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        """Write the component body (not the discriminator wrapper)."""


class Trigger(Component):
    """When a watch is evaluated."""


class Input(Component):
    """What data a watch gathers into its payload."""

    @abstractmethod
    def execute(self, ctx: "WatchExecutionContext") -> dict[str, Any]:
        """Return the payload this input contributes."""


class Condition(Component):
    """Whether a watch's actions should run."""

    @abstractmethod
    def matches(self, ctx: "WatchExecutionContext") -> bool: ...


class Transform(Component):
    """How a payload is reshaped before actions see it."""

    @abstractmethod
    def apply(
        self, ctx: "WatchExecutionContext", payload: dict[str, Any]
    ) -> dict[str, Any]: ...


class ComponentParser(ABC, Generic[C]):
    """Reads the body of one component type."""

    TYPE: ClassVar[str] = ""

    def type(self) -> str:
        return self.TYPE

    @abstractmethod
    def parse(self, watch_id: str, component_id: str | None, parser: DocumentParser) -> C:
        """Parse the body the parser is positioned on.

        Args:
            watch_id:     Owning watch.
            component_id: Owning action id for per-action components, else None.
            parser:       Positioned on the body's first token; must be left on
                          the body's last token.

        Raises:
            ParseError: The body violates this type's schema.
        """


class ComponentRegistry(Generic[C]):
    """Discriminator → parser mapping for one component family.

    Populated once at startup, then frozen; lookups need no locking after that.

    Usage::

        conditions = ComponentRegistry("condition", [AlwaysConditionParser()])
        conditions.freeze()
        condition = conditions.parse("my-watch", None, parser)
    """

    def __init__(self, family: str, parsers: Iterable[ComponentParser[C]] = ()) -> None:
        self.family = family
        self._parsers: dict[str, ComponentParser[C]] = {}
        self._frozen = False
        for component_parser in parsers:
            self.register(component_parser)

    def register(self, component_parser: ComponentParser[C]) -> None:
        component_type = component_parser.type()
        if not component_type:
            raise ConfigurationError(
                f"{self.family} parser {type(component_parser).__name__} has no TYPE"
            )
        if self._frozen:
            raise ConfigurationError(
                f"cannot register {self.family} type [{component_type}]: registry is frozen",
                context={"family": self.family, "type": component_type},
            )
        if component_type in self._parsers:
            raise ConfigurationError(
                f"{self.family} type [{component_type}] is already registered",
                context={"family": self.family, "type": component_type},
            )
        self._parsers[component_type] = component_parser
        log.debug("component_registered", family=self.family, type=component_type)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def types(self) -> list[str]:
        return sorted(self._parsers)

    def lookup(
        self, component_type: str, watch_id: str | None = None, component_id: str | None = None
    ) -> ComponentParser[C]:
        try:
            return self._parsers[component_type]
        except KeyError:
            raise UnknownComponentTypeError(
                f"unknown {self.family} type [{component_type}]",
                watch_id=watch_id,
                action_id=component_id,
                component_type=component_type,
                field=self.family,
            ) from None

    def parse(self, watch_id: str, component_id: str | None, parser: DocumentParser) -> C:
        """Parse ``{<type>: <body>}`` starting at the current START_OBJECT."""
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                f"[{self.family}] must be an object but found [{parser.current_token}]",
                watch_id=watch_id,
                action_id=component_id,
                field=self.family,
            )
        if parser.next_token() is not Token.FIELD_NAME:
            raise ParseError(
                f"{self.family} object must define a type. Registered: {self.types()}",
                watch_id=watch_id,
                action_id=component_id,
                field=self.family,
            )
        component_type = parser.current_name() or ""
        component_parser = self.lookup(component_type, watch_id, component_id)
        parser.next_token()
        try:
            component = component_parser.parse(watch_id, component_id, parser)
        except ParseError as exc:
            if exc.watch_id is not None:
                raise
            raise exc.with_owner(watch_id, component_id) from exc
        except DocumentFormatError as exc:
            raise ParseError.from_format_error(
                exc, watch_id, component_id, component_type
            ) from exc
        if parser.next_token() is not Token.END_OBJECT:
            raise ParseError(
                f"{self.family} must define exactly one type, found another after "
                f"[{component_type}]",
                watch_id=watch_id,
                action_id=component_id,
                component_type=component_type,
                field=self.family,
            )
        return component


def wrap(builder: DocumentBuilder, name: str, component: Component) -> DocumentBuilder:
    """Write ``name: {<component type>: <component body>}``."""
    return builder.start_object(name).field(component.type(), component).end_object()
