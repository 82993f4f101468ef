"""Live progress dashboard for a flow run.

``render(state)`` is a pure function from :class:`RunState` to text.
:class:`Dashboard` throttles it to one render per interval and writes to
a sink; phase boundaries are forced through the throttle. Neither the
renderer nor the sink can break a run: failures are logged and dropped.

Example output::

    ────────────────────────────────────────────────────────────
    Flow discord  2026-10-18T09:12:44+00:00
    · useVoiceChannel: off
    ────────────────────────────────────────────────────────────
    > core-ai  ██████████████░░░░░░░░░░░░░░ 50%
    RUN  (2 ok, 0 fail, 0 skip / 4)  1.52s
    ····························································
    Recent modules:
     OK core-channel-config           12ms
     OK discord-channel-gate          3ms
    ────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

from rich.console import Console

from jenny.core.logging import get_logger
from jenny.orchestration.state import ModuleKind, ModuleResult, Phase, RunState

logger = get_logger(__name__)

DashboardSink = Callable[[str], None]

SEP_WIDTH = 60
BAR_WIDTH = 28
NAME_WIDTH = 28
CURRENT_WIDTH = 38
ERROR_WIDTH = 40
RECENT_ROWS = 8


def _trunc(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def _progress_bar(fraction: float, width: int = BAR_WIDTH) -> str:
    p = max(0.0, min(1.0, fraction))
    filled = round(width * p)
    return f"{'█' * filled}{'░' * (width - filled)} {round(p * 100)}%"


def _row(result: ModuleResult) -> str:
    icon = "OK" if result.ok is True else ("X " if result.ok is False else "- ")
    name = _trunc(result.name, NAME_WIDTH).ljust(NAME_WIDTH)
    kind = "->" if result.kind == ModuleKind.JUMP else "  "
    err = f"  {_trunc(result.error, ERROR_WIDTH)}" if result.error else ""
    return f" {icon} {name} {result.duration_ms:.0f}ms {kind}{err}".rstrip()


def render(state: RunState, *, now: datetime | None = None) -> str:
    """Render ``state`` as a single screen of text."""
    stamp = (now or datetime.now(UTC)).isoformat(timespec="seconds")
    phase_text = "jump>=9000" if state.phase == Phase.JUMP else state.phase.value
    current = state.current or ("-" if state.phase == Phase.DONE else "…")
    voice = "on" if state.use_voice else "off"

    recent = list(reversed(state.history[-RECENT_ROWS:]))
    rows = "\n".join(_row(r) for r in recent) if recent else "(none yet)"

    lines = [
        "─" * SEP_WIDTH,
        f"Flow {state.flow_name}  {stamp}",
        f"· useVoiceChannel: {voice}",
        "─" * SEP_WIDTH,
        f"> {_trunc(current, CURRENT_WIDTH)}  {_progress_bar(state.progress)}",
        (
            f"{state.status}  ({state.ok} ok, {state.fail} fail, {state.skip} skip / {state.total})  "
            f"{state.elapsed_seconds:.2f}s  [{phase_text}]"
        ),
        "·" * SEP_WIDTH,
        "Recent modules:",
        rows,
        "─" * SEP_WIDTH,
    ]
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


def null_sink(text: str) -> None:
    """Discard output (non-interactive runs, tests)."""


def console_sink(console: Console | None = None) -> DashboardSink:
    """Write each frame to a rich console, clearing the screen on terminals."""
    target = console or Console()

    def write(text: str) -> None:
        if target.is_terminal:
            target.clear()
        target.print(text, markup=False, highlight=False, end="", soft_wrap=True)

    return write


def default_sink(enabled: bool = True, console: Console | None = None) -> DashboardSink:
    return console_sink(console) if enabled else null_sink


# ---------------------------------------------------------------------------
# Throttled renderer
# ---------------------------------------------------------------------------


class Dashboard:
    """Throttled renderer bound to a sink.

    Args:
        sink: Receives each rendered frame.
        interval_seconds: Minimum spacing between unforced frames.
        clock: Monotonic time source.
        renderer: Frame builder (defaults to :func:`render`).
    """

    def __init__(
        self,
        sink: DashboardSink = null_sink,
        *,
        interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        renderer: Callable[[RunState], str] = render,
    ):
        self._sink = sink
        self._interval = interval_seconds
        self._clock = clock
        self._renderer = renderer
        self._last_render: float | None = None
        self.frames = 0

    def update(self, state: RunState, force: bool = False) -> bool:
        """Render ``state`` unless throttled. Returns whether a frame was written."""
        now = self._clock()
        if not force and self._last_render is not None and now - self._last_render < self._interval:
            return False
        self._last_render = now
        try:
            self._sink(self._renderer(state))
        except Exception as exc:
            logger.debug("dashboard.render_failed", error=str(exc), flow=state.flow_name)
            return False
        self.frames += 1
        return True


__all__ = [
    "Dashboard",
    "DashboardSink",
    "console_sink",
    "default_sink",
    "null_sink",
    "render",
]
