"""watchkit — Structured logging configuration.

Log records are structlog event dicts.  Besides timestamp, level and logger
name, records emitted while a watch runs carry the correlation keys bound
by ``watch_context``::

    watch_id   owning watch
    wid        watch instance id (one execution run)
    action_id  the action currently executing

Binding goes through ``structlog.contextvars`` so it follows the current
async task, and is undone when the ``with`` block exits.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

# Event keys whose values never reach a log sink.
_REDACTED_KEYS = frozenset({"password", "authorization", "auth"})


@contextmanager
def watch_context(**ids: str | None) -> Iterator[None]:
    """Bind watch correlation ids for the duration of the block.

    ``None`` values are skipped, so nested blocks can add ``action_id``
    without repeating ``watch_id``.

    Usage::

        with watch_context(watch_id=watch.id, wid=ctx.wid.value):
            for wrapper in watch.actions:
                with watch_context(action_id=wrapper.id):
                    ...
    """
    bound = {key: value for key, value in ids.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def _redact_secrets(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "::redacted::"
    return event_dict


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Route structlog and stdlib logging through one formatter.

    Args:
        level:    debug, info, warning, error or critical.
        format:   ``"console"`` or ``"json"``.
        log_file: Optional file written in addition to stdout.
    """
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    renderer: Any
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level.upper())

    # Webhook transport chatter.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger for *name*.

    Usage::

        log = get_logger(__name__)
        log.info("watch_parsed", watch_id="disk-usage", action_count=2)
    """
    return structlog.get_logger(name)
