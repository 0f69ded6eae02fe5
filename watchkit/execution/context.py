"""Watch instance identifiers and the per-execution context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from watchkit.exceptions import ParseError


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Wid:
    """Correlates one execution of a watch with its persisted results.

    String form: ``<watch_id>_<ISO-8601 UTC execution time>``.
    """

    watch_id: str
    execution_time: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "execution_time", _utc(self.execution_time))

    @classmethod
    def now(cls, watch_id: str) -> "Wid":
        return cls(watch_id, datetime.now(timezone.utc))

    @property
    def value(self) -> str:
        return f"{self.watch_id}_{self.execution_time.isoformat()}"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "Wid":
        watch_id, sep, timestamp = value.rpartition("_")
        if not sep or not watch_id:
            raise ParseError(f"invalid watch record id [{value}]", field="id")
        try:
            return cls(watch_id, datetime.fromisoformat(timestamp))
        except ValueError as exc:
            raise ParseError(
                f"invalid execution time in watch record id [{value}]", field="id"
            ) from exc


@dataclass
class WatchExecutionContext:
    """State shared by everything that runs during one watch execution."""

    wid: Wid
    payload: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    trigger_time: datetime | None = None

    @property
    def watch_id(self) -> str:
        return self.wid.watch_id

    @property
    def execution_time(self) -> datetime:
        return self.wid.execution_time

    def template_model(self, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """Model exposed to templates as ``{{ctx.*}}``.

        Args:
            payload: Overrides ``self.payload`` (e.g. after a per-action transform).
        """
        ctx: dict[str, Any] = {
            "id": self.wid.value,
            "watch_id": self.watch_id,
            "execution_time": self.execution_time.isoformat(),
            "payload": self.payload if payload is None else payload,
            "metadata": self.metadata,
        }
        if self.trigger_time is not None:
            ctx["trigger"] = {"triggered_time": _utc(self.trigger_time).isoformat()}
        return {"ctx": ctx}
