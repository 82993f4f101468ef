"""
Root Typer application for the ``jenny`` CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="jenny",
    help="jenny — flow engine and object registry for the Jenny bot platform.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from jenny import __version__

        typer.echo(f"jenny-core {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for structured logs."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON."),
) -> None:
    """jenny CLI — validate configs, plan and run flows."""
    from jenny.core.logging import configure_logging

    configure_logging(level=log_level, json_format=json_logs, service="jenny")


# ── Sub-command registration ─────────────────────────────────────────────

from jenny.cli.config import app as config_app  # noqa: E402
from jenny.cli.flow import app as flow_app  # noqa: E402

app.add_typer(config_app, name="config", help="Config snapshot management.")
app.add_typer(flow_app, name="flow", help="Plan and run flows.")
