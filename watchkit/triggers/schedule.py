"""Schedule trigger — run a watch on a fixed interval or a cron expression.

Document forms::

    "trigger": {"schedule": {"interval": "5m"}}
    "trigger": {"schedule": {"cron": "0 0/5 * * * ?"}}
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar

from watchkit.components import ComponentParser, Trigger
from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError
from watchkit.support.time import parse_time_value


@dataclass(frozen=True)
class ScheduleTrigger(Trigger):
    TYPE: ClassVar[str] = "schedule"

    interval: str | None = None
    cron: str | None = None

    def __post_init__(self) -> None:
        if (self.interval is None) == (self.cron is None):
            raise ValueError("schedule requires exactly one of [interval] or [cron]")
        if self.interval is not None:
            if parse_time_value(self.interval) <= timedelta(0):
                raise ValueError(f"schedule interval [{self.interval}] must be positive")
        if self.cron is not None and len(self.cron.split()) not in (6, 7):
            raise ValueError(
                f"cron expression [{self.cron}] must have 6 or 7 space-separated fields"
            )

    def interval_period(self) -> timedelta | None:
        return parse_time_value(self.interval) if self.interval is not None else None

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        if self.interval is not None:
            builder.field("interval", self.interval)
        else:
            builder.field("cron", self.cron)
        return builder.end_object()


class ScheduleTriggerParser(ComponentParser[ScheduleTrigger]):
    TYPE = ScheduleTrigger.TYPE

    def parse(
        self, watch_id: str, component_id: str | None, parser: DocumentParser
    ) -> ScheduleTrigger:
        parser.expect(Token.START_OBJECT)
        values: dict[str, str] = {}
        while parser.next_token() is Token.FIELD_NAME:
            name = parser.current_name() or ""
            parser.next_token()
            if name not in ("interval", "cron") or parser.current_token is not Token.VALUE_STRING:
                raise ParseError(
                    f"unexpected field [{name}] in schedule; expected string [interval] or [cron]",
                    component_type=self.TYPE,
                    field=name,
                )
            values[name] = parser.text()
        parser.expect(Token.END_OBJECT)
        try:
            return ScheduleTrigger(**values)
        except ValueError as exc:
            raise ParseError(str(exc), component_type=self.TYPE, field="schedule") from exc
