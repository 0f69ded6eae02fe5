"""Watch parser — document → typed ``Watch``.

Each top-level section is dispatched to the registry for its family; the
parser itself never knows concrete component kinds.  Parse failures abort
the whole watch: there is no partial recovery.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from watchkit.actions.registry import ActionRegistry
from watchkit.actions.wrapper import ActionWrapper
from watchkit.components import Condition, ComponentRegistry, Input, Transform, Trigger
from watchkit.conditions import AlwaysCondition
from watchkit.document import DocumentFormat, DocumentParser, Token
from watchkit.exceptions import ParseError
from watchkit.inputs import NoneInput
from watchkit.logging import get_logger
from watchkit.support.time import parse_time_value
from watchkit.watch.source import THROTTLE_FIELD
from watchkit.watch.watch import Watch

log = get_logger(__name__)

WatchSource = bytes | str | Mapping[str, Any] | DocumentParser


class WatchParser:
    """Parses watch definitions against frozen component registries.

    Usage::

        services = create_services(settings)
        watch = services.watch_parser.parse("my-watch", source_bytes)
    """

    def __init__(
        self,
        triggers: ComponentRegistry[Trigger],
        inputs: ComponentRegistry[Input],
        conditions: ComponentRegistry[Condition],
        transforms: ComponentRegistry[Transform],
        actions: ActionRegistry,
    ) -> None:
        self.triggers = triggers
        self.inputs = inputs
        self.conditions = conditions
        self.transforms = transforms
        self.actions = actions

    def parse(
        self,
        watch_id: str,
        source: WatchSource,
        format: DocumentFormat | str = DocumentFormat.JSON,
    ) -> Watch:
        """Parse *source* into a ``Watch``.

        Args:
            watch_id: Id of the watch; used to scope every error.
            source:   Encoded bytes/str in *format*, an already decoded tree,
                      or a ``DocumentParser`` positioned on the root object.
            format:   Wire format of encoded sources.

        Raises:
            DocumentFormatError: *source* is not a well-formed document.
            ParseError: A section violates its schema, or the trigger is missing.
            UnknownActionTypeError: An action names an unregistered type.
        """
        parser = self._parser_for(source, format)
        if parser.current_token is None:
            parser.next_token()
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                f"watch source must be an object but found [{parser.current_token}]",
                watch_id=watch_id,
            )

        trigger: Trigger | None = None
        input: Input = NoneInput()
        condition: Condition = AlwaysCondition()
        transform: Transform | None = None
        throttle_period: timedelta | None = None
        actions: list[ActionWrapper] = []
        metadata: dict[str, Any] | None = None

        while parser.next_token() is Token.FIELD_NAME:
            name = parser.current_name()
            token = parser.next_token()
            if name == "trigger":
                trigger = self.triggers.parse(watch_id, None, parser)
            elif name == "input":
                input = self.inputs.parse(watch_id, None, parser)
            elif name == "condition":
                condition = self.conditions.parse(watch_id, None, parser)
            elif name == "transform":
                transform = self.transforms.parse(watch_id, None, parser)
            elif name == THROTTLE_FIELD:
                throttle_period = self._parse_throttle_millis(watch_id, parser)
            elif name == "throttle_period" and token is Token.VALUE_STRING:
                try:
                    throttle_period = parse_time_value(parser.text())
                except ValueError as exc:
                    raise ParseError(str(exc), watch_id=watch_id, field=name) from exc
            elif name == "actions":
                actions = self.actions.parse_actions(watch_id, parser)
            elif name == "metadata":
                if token is not Token.START_OBJECT:
                    raise ParseError(
                        "[metadata] must be an object", watch_id=watch_id, field=name
                    )
                metadata = parser.map()
            else:
                raise ParseError(
                    f"unexpected field [{name}] in watch source", watch_id=watch_id, field=name
                )
        parser.expect(Token.END_OBJECT)

        if trigger is None:
            raise ParseError(
                "watch source is missing required field [trigger]",
                watch_id=watch_id,
                field="trigger",
            )

        log.debug(
            "watch_parsed",
            watch_id=watch_id,
            trigger=trigger.type(),
            actions=[a.id for a in actions],
        )
        return Watch(
            id=watch_id,
            trigger=trigger,
            input=input,
            condition=condition,
            transform=transform,
            throttle_period=throttle_period,
            actions=actions,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    @staticmethod
    def _parser_for(source: WatchSource, format: DocumentFormat | str) -> DocumentParser:
        if isinstance(source, DocumentParser):
            return source
        if isinstance(source, (bytes, str)):
            return DocumentParser.from_bytes(source, format)
        return DocumentParser(source)

    @staticmethod
    def _parse_throttle_millis(watch_id: str, parser: DocumentParser) -> timedelta:
        value = parser.number_value() if parser.current_token is Token.VALUE_NUMBER else None
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ParseError(
                f"[{THROTTLE_FIELD}] must be a non-negative integer",
                watch_id=watch_id,
                field=THROTTLE_FIELD,
            )
        return timedelta(milliseconds=value)
