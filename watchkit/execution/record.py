"""The persisted outcome of one watch execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError
from watchkit.execution.context import Wid

if TYPE_CHECKING:
    from watchkit.actions.registry import ActionRegistry
    from watchkit.actions.wrapper import ActionWrapper


@dataclass
class WatchRecord:
    """Document form::

        {
            "id": "my-watch_2026-01-01T00:00:00+00:00",
            "watch_id": "my-watch",
            "execution_time": "2026-01-01T00:00:00+00:00",
            "actions": [{"id": "notify-ops", "webhook": {"status": "success", ...}}]
        }
    """

    wid: Wid
    action_results: list["ActionWrapper.Result"] = field(default_factory=list)

    @property
    def watch_id(self) -> str:
        return self.wid.watch_id

    def result(self, action_id: str) -> "ActionWrapper.Result | None":
        return next((r for r in self.action_results if r.id == action_id), None)

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        builder.field("id", self.wid.value)
        builder.field("watch_id", self.wid.watch_id)
        builder.field("execution_time", self.wid.execution_time)
        builder.field("actions", list(self.action_results))
        return builder.end_object()

    @classmethod
    def parse(cls, parser: DocumentParser, actions: "ActionRegistry") -> "WatchRecord":
        """Parse a record; action results are dispatched through *actions*.

        Raises:
            ParseError: Missing identity fields or malformed action results.
        """
        values = parser.map()
        record_id = values.get("id")
        if isinstance(record_id, str):
            wid = Wid.parse(record_id)
        else:
            watch_id = values.get("watch_id")
            execution_time = values.get("execution_time")
            if not isinstance(watch_id, str) or not isinstance(execution_time, str):
                raise ParseError(
                    "watch record requires [id] or [watch_id] and [execution_time]",
                    field="id",
                )
            try:
                wid = Wid(watch_id, datetime.fromisoformat(execution_time))
            except ValueError as exc:
                raise ParseError(
                    f"invalid [execution_time] [{execution_time}]",
                    watch_id=watch_id,
                    field="execution_time",
                ) from exc

        results: list[ActionWrapper.Result] = []
        if "actions" in values:
            sub = DocumentParser(values["actions"])
            if sub.next_token() is not Token.START_ARRAY:
                raise ParseError(
                    "[actions] of a watch record must be an array",
                    watch_id=wid.watch_id,
                    field="actions",
                )
            results = actions.parse_results(wid, sub)
        return cls(wid, results)
