"""Built-in inputs.

``none``   — contributes an empty payload; the default when a watch defines no input.
``simple`` — contributes a static payload written inline in the watch.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from watchkit.components import ComponentParser, Input
from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError

if TYPE_CHECKING:
    from watchkit.execution.context import WatchExecutionContext


@dataclass(frozen=True)
class NoneInput(Input):
    TYPE: ClassVar[str] = "none"

    def execute(self, ctx: "WatchExecutionContext") -> dict[str, Any]:
        return {}

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return builder.start_object().end_object()


@dataclass(frozen=True)
class SimpleInput(Input):
    TYPE: ClassVar[str] = "simple"

    payload: dict[str, Any] = field(default_factory=dict)

    def execute(self, ctx: "WatchExecutionContext") -> dict[str, Any]:
        return copy.deepcopy(self.payload)

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return builder.value(self.payload)


class NoneInputParser(ComponentParser[NoneInput]):
    TYPE = NoneInput.TYPE

    def parse(self, watch_id: str, component_id: str | None, parser: DocumentParser) -> NoneInput:
        parser.expect(Token.START_OBJECT)
        if parser.next_token() is not Token.END_OBJECT:
            raise ParseError(
                f"[none] input takes no fields, found [{parser.current_name()}]",
                component_type=self.TYPE,
                field=parser.current_name(),
            )
        return NoneInput()


class SimpleInputParser(ComponentParser[SimpleInput]):
    TYPE = SimpleInput.TYPE

    def parse(
        self, watch_id: str, component_id: str | None, parser: DocumentParser
    ) -> SimpleInput:
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                "[simple] input must be an object", component_type=self.TYPE, field="simple"
            )
        return SimpleInput(parser.map())
