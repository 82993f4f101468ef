"""
Jenny orchestration — module catalog, flow resolver, executor, dashboard,
hot config loader and flow engine.

ARCHITECTURE
────────────
::

    catalog.py      ─ ModuleSlot, ModuleCatalog (registration table)
    context.py      ─ ModuleConfig, WorkingObject, CoreSnapshot, CoreRunContext
    resolver.py     ─ resolve_flow(): applicability + normal/jump partition
    state.py        ─ RunState, ModuleResult, Phase
    executor.py     ─ FlowExecutor: sequential run → jump → done
    dashboard.py    ─ render() + throttled Dashboard
    hot_config.py   ─ HotConfigLoader: atomic snapshot swap, debounced reload
    engine.py       ─ FlowEngine.run_flow / create_run_core / start_flows

Data flow::

    Flow entry ──► FlowEngine.run_flow(name, ctx?)
                        │ resolve_flow(catalog.slots(), name, ctx.config)
                        ▼
                   FlowExecutor ──► handler(ctx) … (one at a time)
                        │                 │
                        ▼                 ▼
                    Dashboard        ObjectRegistry (put/get)
"""

from jenny.orchestration.catalog import (
    JUMP_THRESHOLD,
    ModuleCatalog,
    ModuleHandler,
    ModuleProvider,
    ModuleSlot,
    catalog_from_provider,
    parse_identifier,
)
from jenny.orchestration.context import (
    ALL_FLOWS,
    CoreRunContext,
    CoreSnapshot,
    ModuleConfig,
    WorkingObject,
)
from jenny.orchestration.dashboard import Dashboard, console_sink, null_sink, render
from jenny.orchestration.engine import FlowEngine, FlowEntry, build_engine
from jenny.orchestration.executor import MAX_ERROR_LENGTH, FlowExecutor
from jenny.orchestration.hot_config import HotConfigLoader, load_snapshot, parse_snapshot
from jenny.orchestration.resolver import ResolvedFlow, module_applies, resolve_flow
from jenny.orchestration.state import ModuleKind, ModuleResult, Phase, RunState

__all__ = [
    # catalog
    "JUMP_THRESHOLD",
    "ModuleCatalog",
    "ModuleHandler",
    "ModuleProvider",
    "ModuleSlot",
    "catalog_from_provider",
    "parse_identifier",
    # context
    "ALL_FLOWS",
    "CoreRunContext",
    "CoreSnapshot",
    "ModuleConfig",
    "WorkingObject",
    # resolver
    "ResolvedFlow",
    "module_applies",
    "resolve_flow",
    # state
    "ModuleKind",
    "ModuleResult",
    "Phase",
    "RunState",
    # execution
    "FlowExecutor",
    "MAX_ERROR_LENGTH",
    "Dashboard",
    "console_sink",
    "null_sink",
    "render",
    # config
    "HotConfigLoader",
    "load_snapshot",
    "parse_snapshot",
    # engine
    "FlowEngine",
    "FlowEntry",
    "build_engine",
]
