"""Duration strings such as ``"500ms"``, ``"5s"``, ``"10m"``, ``"1h"``, ``"2d"``, ``"1w"``."""

from __future__ import annotations

import re
from datetime import timedelta

_TIME_VALUE_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)\s*$")

_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


def parse_time_value(text: str) -> timedelta:
    """Return the duration spelled by *text*.

    Raises:
        ValueError: *text* is not ``<non-negative integer><unit>``.
    """
    match = _TIME_VALUE_RE.match(text)
    if match is None:
        raise ValueError(
            f"invalid time value [{text}]; expected <number><unit> with unit in "
            + ", ".join(_UNITS)
        )
    return int(match.group(1)) * _UNITS[match.group(2)]


def format_time_value(value: timedelta) -> str:
    """Inverse of ``parse_time_value`` using the largest exact unit."""
    millis = int(value.total_seconds() * 1000)
    for unit in ("w", "d", "h", "m", "s"):
        unit_millis = int(_UNITS[unit].total_seconds() * 1000)
        if millis and millis % unit_millis == 0:
            return f"{millis // unit_millis}{unit}"
    return f"{millis}ms"
