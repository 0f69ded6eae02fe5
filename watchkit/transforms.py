"""Built-in transforms.

``simple`` replaces the payload with a static object::

    "transform": {"simple": {"severity": "high"}}

``chain`` applies transforms in order, each seeing the previous output::

    "transform": {"chain": [{"simple": {"a": 1}}, {"simple": {"b": 2}}]}
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from watchkit.components import ComponentParser, ComponentRegistry, Transform
from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError

if TYPE_CHECKING:
    from watchkit.execution.context import WatchExecutionContext


@dataclass(frozen=True)
class SimpleTransform(Transform):
    TYPE: ClassVar[str] = "simple"

    payload: dict[str, Any] = field(default_factory=dict)

    def apply(self, ctx: "WatchExecutionContext", payload: dict[str, Any]) -> dict[str, Any]:
        return copy.deepcopy(self.payload)

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return builder.value(self.payload)


@dataclass(frozen=True)
class ChainTransform(Transform):
    TYPE: ClassVar[str] = "chain"

    transforms: tuple[Transform, ...] = ()

    def apply(self, ctx: "WatchExecutionContext", payload: dict[str, Any]) -> dict[str, Any]:
        for transform in self.transforms:
            payload = transform.apply(ctx, payload)
        return payload

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_array()
        for transform in self.transforms:
            builder.start_object().field(transform.type(), transform).end_object()
        return builder.end_array()


class SimpleTransformParser(ComponentParser[SimpleTransform]):
    TYPE = SimpleTransform.TYPE

    def parse(
        self, watch_id: str, component_id: str | None, parser: DocumentParser
    ) -> SimpleTransform:
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                "[simple] transform must be an object", component_type=self.TYPE, field="simple"
            )
        return SimpleTransform(parser.map())


class ChainTransformParser(ComponentParser[ChainTransform]):
    """Parses nested transforms through the registry it is registered in."""

    TYPE = ChainTransform.TYPE

    def __init__(self, registry: ComponentRegistry[Transform]) -> None:
        self._registry = registry

    def parse(
        self, watch_id: str, component_id: str | None, parser: DocumentParser
    ) -> ChainTransform:
        if parser.current_token is not Token.START_ARRAY:
            raise ParseError(
                "[chain] transform must be an array of transforms",
                component_type=self.TYPE,
                field="chain",
            )
        transforms: list[Transform] = []
        while parser.next_token() is not Token.END_ARRAY:
            transforms.append(self._registry.parse(watch_id, component_id, parser))
        return ChainTransform(tuple(transforms))
