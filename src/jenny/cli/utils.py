"""
CLI utility helpers — output formatting and module catalog loading.
"""

from __future__ import annotations

import importlib
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from jenny.orchestration.catalog import ModuleCatalog
from jenny.orchestration.resolver import ResolvedFlow
from jenny.orchestration.state import RunState

console = Console()
err_console = Console(stderr=True)


# ── Catalog loading ──────────────────────────────────────────────────────


def load_catalog(target: str) -> ModuleCatalog:
    """Import ``package.module[:attribute]`` and return its ``ModuleCatalog``.

    The attribute defaults to ``catalog``.
    """
    module_path, _, attr = target.partition(":")
    attr = attr or "catalog"
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        err_console.print(f"[bold red]Error[/bold red]: cannot import {module_path}: {exc}")
        raise typer.Exit(code=1) from exc

    catalog = getattr(module, attr, None)
    if not isinstance(catalog, ModuleCatalog):
        err_console.print(f"[bold red]Error[/bold red]: {target} is not a ModuleCatalog")
        raise typer.Exit(code=1)
    return catalog


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_error(message: str, code: str = "ERROR") -> None:
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")


def print_plan(plan: ResolvedFlow) -> None:
    """Render the normal and jump phases of a resolved flow."""
    table = Table(title=f"Flow: {plan.flow_name}", show_lines=False, pad_edge=False)
    table.add_column("phase")
    table.add_column("order", justify="right")
    table.add_column("module", overflow="fold")
    for slot in plan.normal:
        table.add_row("normal", str(slot.order), slot.name)
    for slot in plan.jump:
        table.add_row("jump", str(slot.order), slot.name)
    if plan.is_empty:
        console.print(f"[dim]No modules apply to flow '{plan.flow_name}'.[/dim]")
        return
    console.print(table)


def print_run(state: RunState) -> None:
    """Render a finished run as a summary line plus a results table."""
    color = "red" if state.fail else ("yellow" if state.stopped else "green")
    console.print(
        f"[bold {color}]{state.status}[/bold {color}] {state.flow_name} "
        f"({state.ok} ok, {state.fail} fail, {state.skip} skip / {state.total}) "
        f"[dim]{state.elapsed_seconds:.2f}s[/dim]"
    )
    if not state.history:
        return
    table = Table(show_lines=False, pad_edge=False)
    table.add_column("module", overflow="fold")
    table.add_column("kind")
    table.add_column("ok")
    table.add_column("ms", justify="right")
    table.add_column("error", overflow="fold")
    for result in state.history:
        mark = "-" if result.ok is None else ("✔" if result.ok else "✖")
        table.add_row(result.name, result.kind.value, mark, f"{result.duration_ms:.0f}", result.error or "")
    console.print(table)
