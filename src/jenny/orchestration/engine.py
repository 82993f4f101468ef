"""Flow Engine — ``run_flow`` and ``create_run_core`` for the whole process.

The engine is what flow entrypoints (the Discord listener, the cron
ticker, the HTTP API) talk to. It owns nothing but references: the module
catalog, the hot config loader, the shared object registry and the
dashboard. Every ``run_flow`` call resolves the catalog against the run's
config and drives a fresh :class:`FlowExecutor`.

Example::

    settings = get_settings()
    engine = build_engine(settings, catalog)
    async with engine.registry:
        await engine.start_flows([discord_flow, cron_flow])

    # inside a flow entrypoint
    async def cron_flow(base, run_flow, create_run_core):
        ctx = create_run_core()
        ctx.working_object.flow = "cron"
        await run_flow("cron", ctx)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TypeAlias

from rich.console import Console

from jenny.core.logging import get_logger
from jenny.core.registry import ObjectRegistry
from jenny.core.settings import JennySettings
from jenny.orchestration.catalog import ModuleCatalog
from jenny.orchestration.context import CoreRunContext
from jenny.orchestration.dashboard import Dashboard, default_sink
from jenny.orchestration.executor import FlowExecutor
from jenny.orchestration.hot_config import HotConfigLoader
from jenny.orchestration.resolver import ResolvedFlow, resolve_flow
from jenny.orchestration.state import RunState

logger = get_logger(__name__)

RunFlow: TypeAlias = Callable[..., Awaitable[CoreRunContext]]
CreateRunCore: TypeAlias = Callable[[], CoreRunContext]
FlowEntry: TypeAlias = Callable[[HotConfigLoader, RunFlow, CreateRunCore], Awaitable[None]]


class FlowEngine:
    """Entry point for running flows.

    Args:
        catalog: Registered modules.
        config: Holder of the current base snapshot (must be loaded).
        registry: Process-wide object registry shared with modules.
        dashboard: Progress renderer shared by all runs.
        module_timeout_seconds: Per-module deadline; ``None`` disables it.
    """

    def __init__(
        self,
        catalog: ModuleCatalog,
        config: HotConfigLoader,
        *,
        registry: ObjectRegistry | None = None,
        dashboard: Dashboard | None = None,
        module_timeout_seconds: float | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config
        self.registry = registry if registry is not None else ObjectRegistry()
        self.dashboard = dashboard if dashboard is not None else Dashboard()
        self.module_timeout_seconds = module_timeout_seconds
        self.last_state: RunState | None = None

    def create_run_core(self) -> CoreRunContext:
        """Fresh run context from the current snapshot."""
        return self.config.create_run_core()

    def plan(self, flow_name: str, ctx: CoreRunContext | None = None) -> ResolvedFlow:
        """Resolve ``flow_name`` without running anything."""
        config = ctx.config if ctx is not None else self.config.config
        return resolve_flow(self.catalog.slots(), flow_name, config)

    async def run_flow(self, flow_name: str, ctx: CoreRunContext | None = None) -> CoreRunContext:
        """Run every module applicable to ``flow_name`` and return the context.

        Module failures are recorded on the run (see ``last_state``), never
        raised.
        """
        context = ctx if ctx is not None else self.create_run_core()
        resolved = self.plan(flow_name, context)
        executor = FlowExecutor(
            resolved,
            context,
            dashboard=self.dashboard,
            module_timeout_seconds=self.module_timeout_seconds,
        )
        self.last_state = executor.state
        return await executor.execute()

    async def start_flows(self, entries: Iterable[FlowEntry]) -> None:
        """Start flow entrypoints in order.

        Each entry receives the config loader, :meth:`run_flow` and
        :meth:`create_run_core`. An entry that raises aborts startup.
        """
        for entry in entries:
            name = getattr(entry, "__name__", repr(entry))
            logger.info("flow_entry.start", entry=name)
            await entry(self.config, self.run_flow, self.create_run_core)


def build_engine(
    settings: JennySettings,
    catalog: ModuleCatalog,
    *,
    console: Console | None = None,
    dashboard_enabled: bool | None = None,
) -> FlowEngine:
    """Wire settings, registry, config loader and dashboard into an engine.

    The initial config load happens here and is fatal on failure.

    Raises:
        ConfigError: If the initial snapshot cannot be loaded.
    """
    loader = HotConfigLoader(settings.core_path, debounce_seconds=settings.reload_debounce_seconds)
    loader.load_initial()

    enabled = settings.dashboard_enabled if dashboard_enabled is None else dashboard_enabled
    dashboard = Dashboard(
        default_sink(enabled, console),
        interval_seconds=settings.dashboard_interval_seconds,
    )
    return FlowEngine(
        catalog,
        loader,
        registry=ObjectRegistry(settings.registry_config()),
        dashboard=dashboard,
        module_timeout_seconds=settings.module_timeout_seconds,
    )


__all__ = ["CreateRunCore", "FlowEngine", "FlowEntry", "RunFlow", "build_engine"]
