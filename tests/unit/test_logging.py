"""Unit tests — logging configuration and context binding."""

from __future__ import annotations

import logging

import pytest
import structlog

from watchkit.logging import _redact_secrets, configure_logging, get_logger, watch_context


@pytest.mark.unit
class TestWatchContext:
    def test_ids_are_bound_inside_the_block(self) -> None:
        with watch_context(watch_id="w1", wid="w1_2026"):
            with watch_context(action_id="a1"):
                bound = structlog.contextvars.get_contextvars()
        assert bound == {"watch_id": "w1", "wid": "w1_2026", "action_id": "a1"}

    def test_ids_are_unbound_on_exit(self) -> None:
        with watch_context(watch_id="w1", action_id="a1"):
            pass
        bound = structlog.contextvars.get_contextvars()
        assert "watch_id" not in bound
        assert "action_id" not in bound

    def test_none_values_are_skipped(self) -> None:
        with watch_context(watch_id="w1", action_id=None):
            assert "action_id" not in structlog.contextvars.get_contextvars()

    def test_unbound_after_exception(self) -> None:
        with pytest.raises(RuntimeError):
            with watch_context(action_id="a1"):
                raise RuntimeError("boom")
        assert "action_id" not in structlog.contextvars.get_contextvars()


@pytest.mark.unit
class TestRedaction:
    def test_password_is_redacted(self) -> None:
        event = _redact_secrets(None, "info", {"event": "x", "password": "hunter2"})
        assert event == {"event": "x", "password": "::redacted::"}

    def test_other_keys_untouched(self) -> None:
        assert _redact_secrets(None, "info", {"event": "x", "url": "u"}) == {
            "event": "x",
            "url": "u",
        }


@pytest.mark.unit
class TestConfigureLogging:
    def test_sets_level_and_silences_http(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        root = logging.getLogger()
        previous = root.handlers[:], root.level
        try:
            configure_logging(level="debug", format="json", log_file=str(tmp_path / "w.log"))
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 2
            assert logging.getLogger("httpx").level == logging.WARNING
            get_logger("watchkit.test").info("logging_configured")
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = previous[0]
            root.setLevel(previous[1])
        assert "logging_configured" in (tmp_path / "w.log").read_text()
