"""CLI — Registered component and action types."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(help="Inspect the registered component and action types.")
console = Console()


@app.command("list")
def list_types() -> None:
    """List every type a watch document may reference."""
    from watchkit.services import create_services

    services = create_services()

    table = Table(title="Registered Types")
    table.add_column("Family", style="cyan")
    table.add_column("Types")
    for family, registry in (
        ("trigger", services.triggers),
        ("input", services.inputs),
        ("condition", services.conditions),
        ("transform", services.transforms),
        ("action", services.actions),
    ):
        table.add_row(family, ", ".join(registry.types()))
    console.print(table)
