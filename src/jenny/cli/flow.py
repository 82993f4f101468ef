"""
CLI: ``jenny flow`` — plan and run flows against a module catalog.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from jenny.cli.utils import console, load_catalog, print_error, print_json, print_plan, print_run
from jenny.core.errors import ConfigError

app = typer.Typer(no_args_is_help=True)

_CORE_OPTION = typer.Option(Path("core.json"), "--core", "-c", help="Config snapshot file")
_MODULES_OPTION = typer.Option(..., "--modules", "-m", help="package.module[:attr] exposing a ModuleCatalog")


@app.command("plan")
def plan_flow(
    name: str = typer.Argument(..., help="Flow name"),
    core: Path = _CORE_OPTION,
    modules: str = _MODULES_OPTION,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show which modules a flow would run, per phase."""
    from jenny.orchestration.hot_config import load_snapshot
    from jenny.orchestration.resolver import resolve_flow

    catalog = load_catalog(modules)
    try:
        snapshot = load_snapshot(core)
    except ConfigError as e:
        print_error(e.message, e.category.value)
        raise typer.Exit(code=1) from e

    plan = resolve_flow(catalog.slots(), name, snapshot.config)
    if json_out:
        print_json(
            {
                "flow": name,
                "total": plan.total,
                "normal": [s.identifier for s in plan.normal],
                "jump": [s.identifier for s in plan.jump],
            }
        )
        return
    print_plan(plan)


@app.command("run")
def run_flow(
    name: str = typer.Argument(..., help="Flow name"),
    core: Path = _CORE_OPTION,
    modules: str = _MODULES_OPTION,
    json_out: bool = typer.Option(False, "--json"),
    no_dashboard: bool = typer.Option(False, "--no-dashboard", help="Disable the live dashboard"),
) -> None:
    """Run a flow once and print the outcome."""
    from jenny.core.settings import get_settings
    from jenny.orchestration.engine import build_engine

    catalog = load_catalog(modules)
    settings = get_settings().model_copy(update={"core_path": core})
    try:
        engine = build_engine(
            settings,
            catalog,
            console=console,
            dashboard_enabled=False if (no_dashboard or json_out) else None,
        )
    except ConfigError as e:
        print_error(e.message, e.category.value)
        raise typer.Exit(code=1) from e

    async def _run() -> None:
        async with engine.registry:
            await engine.run_flow(name)

    asyncio.run(_run())
    state = engine.last_state
    if state is None:
        print_error(f"flow {name!r} produced no run state", "INTERNAL")
        raise typer.Exit(code=1)

    if json_out:
        print_json(state.to_dict())
    else:
        print_run(state)
    if state.fail:
        raise typer.Exit(code=2)
