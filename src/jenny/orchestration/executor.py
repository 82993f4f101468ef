"""Flow Executor — drives resolved modules through one run context.

The executor takes a :class:`~jenny.orchestration.resolver.ResolvedFlow`
and a :class:`~jenny.orchestration.context.CoreRunContext` and runs every
module strictly in sequence: the next handler is never started before the
previous one has settled, so mutations of the working object are applied
in a deterministic order.

State machine::

    run ──(normal phase ends or working_object.stop)──► jump ──► done
     └──────────────(no jump module applies)────────────────────► done

- **Isolation:** a module that raises becomes a failed row; the run goes on.
- **Early stop:** ``working_object.stop`` after a normal module skips the
  rest of the normal phase. The jump phase still runs in full.
- **Deadline:** with ``module_timeout_seconds`` set, an awaitable handler
  that does not settle in time is recorded as failed and the run goes on.
- **Counters:** ``ok``/``fail``/``skip``/``total`` count the normal phase only.

Example::

    resolved = resolve_flow(catalog.slots(), "discord", ctx.config)
    executor = FlowExecutor(resolved, ctx, dashboard=Dashboard(console_sink()))
    ctx = await executor.execute()
    print(executor.state.status, executor.state.executed)
"""

from __future__ import annotations

import asyncio
import inspect
import time

from jenny.core.errors import JennyError, ModuleTimeoutError, categorize_error, format_error
from jenny.core.logging import LogContext, get_logger
from jenny.orchestration.catalog import ModuleSlot
from jenny.orchestration.context import CoreRunContext
from jenny.orchestration.dashboard import Dashboard
from jenny.orchestration.resolver import ResolvedFlow
from jenny.orchestration.state import ModuleKind, ModuleResult, Phase, RunState

logger = get_logger(__name__)

MAX_ERROR_LENGTH = 500


class FlowExecutor:
    """Runs one resolved flow against one run context."""

    def __init__(
        self,
        resolved: ResolvedFlow,
        context: CoreRunContext,
        *,
        dashboard: Dashboard | None = None,
        module_timeout_seconds: float | None = None,
    ) -> None:
        """Initialise the executor.

        Args:
            resolved: Modules per phase, already ordered.
            context: The run context every handler receives.
            dashboard: Progress renderer (defaults to a silent one).
            module_timeout_seconds: Per-module deadline; ``None`` disables it.
        """
        self._resolved = resolved
        self._context = context
        self._dashboard = dashboard if dashboard is not None else Dashboard()
        self._timeout = module_timeout_seconds if module_timeout_seconds and module_timeout_seconds > 0 else None
        self.state = RunState(
            flow_name=resolved.flow_name,
            total=resolved.total,
            use_voice=bool(context.working_object.use_voice_channel),
        )

    @property
    def context(self) -> CoreRunContext:
        return self._context

    async def execute(self) -> CoreRunContext:
        """Run the normal phase, then the jump phase, and return the context."""
        state = self.state
        async with LogContext(flow=state.flow_name, run_id=state.run_id):
            logger.info(
                "flow.start",
                normal=[s.name for s in self._resolved.normal],
                jump=[s.name for s in self._resolved.jump],
            )
            self._render(force=True)

            normal = self._resolved.normal
            for index, slot in enumerate(normal):
                await self._run_module(slot, ModuleKind.NORMAL)
                if self._context.working_object.stop is True:
                    state.stopped = True
                    self._skip_remaining(normal[index + 1 :])
                    logger.info("flow.stopped", after=slot.name, skipped=len(normal) - index - 1)
                    break

            if self._resolved.jump:
                state.phase = Phase.JUMP
                logger.debug("flow.jump", modules=len(self._resolved.jump))
                self._render(force=True)
                for slot in self._resolved.jump:
                    await self._run_module(slot, ModuleKind.JUMP)

            state.phase = Phase.DONE
            state.current = ""
            state.finished_at = time.monotonic()
            self._render(force=True)
            logger.info(
                "flow.done",
                status=state.status,
                ok=state.ok,
                fail=state.fail,
                skip=state.skip,
                total=state.total,
                elapsed_seconds=round(state.elapsed_seconds, 3),
            )
        return self._context

    async def _run_module(self, slot: ModuleSlot, kind: ModuleKind) -> None:
        state = self.state
        state.current = slot.name
        self._render()

        t0 = time.perf_counter()
        try:
            await self._invoke(slot)
        except Exception as exc:
            duration_ms = (time.perf_counter() - t0) * 1000
            message = format_error(exc, MAX_ERROR_LENGTH)
            state.history.append(ModuleResult(slot.name, kind, False, duration_ms, message))
            if kind == ModuleKind.NORMAL:
                state.fail += 1
            extra = {"error_context": exc.context.to_dict()} if isinstance(exc, JennyError) else {}
            logger.warning(
                "module.failed",
                module=slot.name,
                kind=kind.value,
                duration_ms=round(duration_ms, 1),
                error=message,
                error_type=exc.__class__.__name__,
                category=categorize_error(exc).value,
                **extra,
            )
        else:
            duration_ms = (time.perf_counter() - t0) * 1000
            state.history.append(ModuleResult(slot.name, kind, True, duration_ms))
            if kind == ModuleKind.NORMAL:
                state.ok += 1
            logger.debug("module.ok", module=slot.name, kind=kind.value, duration_ms=round(duration_ms, 1))

        self._render()

    async def _invoke(self, slot: ModuleSlot) -> None:
        result = slot.handler(self._context)
        if not inspect.isawaitable(result):
            return
        if self._timeout is None:
            await result
            return
        deadline = asyncio.timeout(self._timeout)
        try:
            async with deadline:
                await result
        except TimeoutError as exc:
            if deadline.expired():
                timeout_error = ModuleTimeoutError(slot.name, self._timeout)
                raise timeout_error.with_context(flow=self.state.flow_name, run_id=self.state.run_id) from exc
            raise

    def _skip_remaining(self, slots: tuple[ModuleSlot, ...]) -> None:
        for slot in slots:
            self.state.skip += 1
            self.state.history.append(ModuleResult(slot.name, ModuleKind.NORMAL, None))

    def _render(self, force: bool = False) -> None:
        self._dashboard.update(self.state, force=force)


__all__ = ["FlowExecutor", "MAX_ERROR_LENGTH"]
