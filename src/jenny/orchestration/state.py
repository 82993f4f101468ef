"""Run state — what the executor knows about a flow run while it runs."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Phase(str, Enum):
    """Executor phase. ``run`` → ``jump`` (if any jump module applies) → ``done``."""

    RUN = "run"
    JUMP = "jump"
    DONE = "done"


class ModuleKind(str, Enum):
    NORMAL = "normal"
    JUMP = "jump"


@dataclass
class ModuleResult:
    """Outcome of one module in a run.

    ``ok`` is ``None`` for a normal module skipped by an early stop.
    """

    name: str
    kind: ModuleKind
    ok: bool | None
    duration_ms: float = 0.0
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.ok is None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging/storage."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "ok": self.ok,
            "duration_ms": round(self.duration_ms, 3),
            "error": self.error,
        }


@dataclass
class RunState:
    """Live counters and history of one flow run.

    ``ok``/``fail``/``skip`` and ``total`` only count normal-phase modules;
    jump-phase results appear in ``history`` alone.
    """

    flow_name: str
    total: int = 0
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: float = field(default_factory=time.monotonic)
    started_wall: datetime = field(default_factory=lambda: datetime.now(UTC))
    ok: int = 0
    fail: int = 0
    skip: int = 0
    current: str = ""
    history: list[ModuleResult] = field(default_factory=list)
    stopped: bool = False
    phase: Phase = Phase.RUN
    use_voice: bool = False
    finished_at: float | None = None

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return max(end - self.started_at, 0.0)

    @property
    def progress(self) -> float:
        """Fraction of the normal phase accounted for, 0.0–1.0."""
        if self.total <= 0:
            return 0.0
        return min((self.ok + self.fail + self.skip) / self.total, 1.0)

    @property
    def status(self) -> str:
        if self.fail:
            return "FAIL"
        if self.stopped:
            return "STOP"
        if self.phase == Phase.DONE:
            return "DONE"
        return "RUN"

    @property
    def executed(self) -> list[str]:
        """Names of modules that actually ran, in order."""
        return [r.name for r in self.history if not r.skipped]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging/storage."""
        return {
            "flow_name": self.flow_name,
            "run_id": self.run_id,
            "started_at": self.started_wall.isoformat(),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "status": self.status,
            "phase": self.phase.value,
            "ok": self.ok,
            "fail": self.fail,
            "skip": self.skip,
            "total": self.total,
            "stopped": self.stopped,
            "history": [r.to_dict() for r in self.history],
        }


__all__ = ["ModuleKind", "ModuleResult", "Phase", "RunState"]
