"""
CLI: ``jenny config`` — base config snapshot inspection.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from jenny.cli.utils import console, print_error, print_json
from jenny.core.errors import ConfigError

app = typer.Typer(no_args_is_help=True)


@app.command("validate")
def validate_config(
    path: Path = typer.Argument(..., help="core.json / core.yaml snapshot"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Load and validate a config snapshot; list modules and their flows."""
    from jenny.orchestration.hot_config import load_snapshot

    try:
        snapshot = load_snapshot(path)
    except ConfigError as e:
        print_error(e.message, e.category.value)
        raise typer.Exit(code=1) from e

    if json_out:
        print_json(
            {
                "valid": True,
                "modules": {name: cfg.flow for name, cfg in snapshot.config.items()},
                "working_object": snapshot.working_object.model_dump(mode="json"),
            }
        )
        return

    console.print(f"[green]✓[/green] {path} is valid ({len(snapshot.config)} modules)")
    if not snapshot.config:
        return
    table = Table()
    table.add_column("Module")
    table.add_column("Flows")
    for name, cfg in sorted(snapshot.config.items()):
        table.add_row(name, ", ".join(cfg.flow) or "[dim]none[/dim]")
    console.print(table)
