"""Unit tests — duration strings."""

from __future__ import annotations

from datetime import timedelta

import pytest

from watchkit.support.time import format_time_value, parse_time_value


@pytest.mark.unit
class TestTimeValues:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("500ms", timedelta(milliseconds=500)),
            ("5s", timedelta(seconds=5)),
            ("10m", timedelta(minutes=10)),
            ("1h", timedelta(hours=1)),
            ("2d", timedelta(days=2)),
            ("1w", timedelta(weeks=1)),
        ],
    )
    def test_parse(self, text: str, expected: timedelta) -> None:
        assert parse_time_value(text) == expected

    @pytest.mark.parametrize("text", ["", "5", "5x", "-1s", "1.5s"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_time_value(text)

    def test_format_uses_largest_exact_unit(self) -> None:
        assert format_time_value(timedelta(minutes=2)) == "2m"
        assert format_time_value(timedelta(seconds=90)) == "90s"
        assert format_time_value(timedelta(milliseconds=1500)) == "1500ms"
