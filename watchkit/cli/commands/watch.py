"""CLI — Watch document validation and conversion."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from watchkit.document import DocumentFormat
from watchkit.exceptions import WatchkitError
from watchkit.watch import Watch

app = typer.Typer(help="Validate and convert watch documents.")
console = Console()


def _detect_format(path: Path, explicit: DocumentFormat | None) -> DocumentFormat:
    if explicit is not None:
        return explicit
    if path.suffix.lower() in (".yaml", ".yml"):
        return DocumentFormat.YAML
    return DocumentFormat.JSON


def _load(path: Path, fmt: DocumentFormat | None, watch_id: str | None) -> Watch:
    from watchkit.services import create_services

    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)

    services = create_services()
    try:
        return services.watch_parser.parse(
            watch_id or path.stem, path.read_bytes(), _detect_format(path, fmt)
        )
    except WatchkitError as exc:
        console.print(f"[red]Invalid watch: {escape(exc.message)}[/red]")
        raise typer.Exit(1)


@app.command("validate")
def validate_watch(
    file: Path = typer.Argument(help="Path to a JSON or YAML watch document."),
    fmt: DocumentFormat | None = typer.Option(
        None, "--format", "-f", help="Input format. Detected from the file suffix if omitted."
    ),
    watch_id: str | None = typer.Option(None, "--id", help="Watch id. Defaults to the file stem."),
) -> None:
    """Parse a watch document and print a summary."""
    watch = _load(file, fmt, watch_id)

    table = Table(title=escape(f"Watch: {watch.id}"))
    table.add_column("Section", style="cyan")
    table.add_column("Type")
    table.add_row("trigger", watch.trigger.type())
    table.add_row("input", watch.input.type())
    table.add_row("condition", watch.condition.type())
    table.add_row("transform", watch.transform.type() if watch.transform else "-")
    table.add_row(
        "throttle",
        f"{int(watch.throttle_period.total_seconds() * 1000)}ms"
        if watch.throttle_period is not None
        else "-",
    )
    for wrapper in watch.actions:
        suffix = f" (transform: {wrapper.transform.type()})" if wrapper.transform else ""
        table.add_row(escape(f"action [{wrapper.id}]"), wrapper.type() + suffix)
    console.print(table)
    console.print("[green]Watch is valid.[/green]")


@app.command("convert")
def convert_watch(
    file: Path = typer.Argument(help="Path to a JSON or YAML watch document."),
    to: DocumentFormat = typer.Option(..., "--to", "-t", help="Output format."),
    fmt: DocumentFormat | None = typer.Option(
        None, "--format", "-f", help="Input format. Detected from the file suffix if omitted."
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file path."),
) -> None:
    """Re-emit a watch document in another format."""
    watch = _load(file, fmt, None)
    try:
        data = watch.source().build_as_bytes(to)
    except WatchkitError as exc:
        console.print(f"[red]Error: {escape(exc.message)}[/red]")
        raise typer.Exit(1)

    if output:
        output.write_bytes(data)
        console.print(f"[green]Watch written to {output}[/green]")
    else:
        console.print(Syntax(data.decode("utf-8"), to.value))
