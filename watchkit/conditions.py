"""Built-in conditions: ``always`` (the default) and ``never``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from watchkit.components import ComponentParser, Condition
from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError

if TYPE_CHECKING:
    from watchkit.execution.context import WatchExecutionContext


@dataclass(frozen=True)
class AlwaysCondition(Condition):
    TYPE: ClassVar[str] = "always"

    def matches(self, ctx: "WatchExecutionContext") -> bool:
        return True

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return builder.start_object().end_object()


@dataclass(frozen=True)
class NeverCondition(Condition):
    TYPE: ClassVar[str] = "never"

    def matches(self, ctx: "WatchExecutionContext") -> bool:
        return False

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return builder.start_object().end_object()


class _EmptyBodyParser(ComponentParser[Condition]):
    condition: ClassVar[Condition]

    def parse(self, watch_id: str, component_id: str | None, parser: DocumentParser) -> Condition:
        parser.expect(Token.START_OBJECT)
        if parser.next_token() is not Token.END_OBJECT:
            raise ParseError(
                f"[{self.TYPE}] condition takes no fields, found [{parser.current_name()}]",
                component_type=self.TYPE,
                field=parser.current_name(),
            )
        return self.condition


class AlwaysConditionParser(_EmptyBodyParser):
    TYPE = AlwaysCondition.TYPE
    condition = AlwaysCondition()


class NeverConditionParser(_EmptyBodyParser):
    TYPE = NeverCondition.TYPE
    condition = NeverCondition()
