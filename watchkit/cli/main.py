"""watchkit CLI — Entry point.

Usage:
    watchkit watch validate <file>
    watchkit watch convert <file> --to yaml
    watchkit types list
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from watchkit.cli.commands import types, watch
from watchkit.config import Settings, override_settings
from watchkit.logging import configure_logging

app = typer.Typer(
    name="watchkit",
    help="watchkit — Declarative watch documents and pluggable actions.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()

app.add_typer(watch.app, name="watch")
app.add_typer(types.app, name="types")


@app.callback()
def main_callback(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to a config YAML file."),
) -> None:
    settings = Settings.load(config)
    override_settings(settings)
    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )


if __name__ == "__main__":
    app()
