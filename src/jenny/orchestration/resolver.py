"""Flow Resolver — which cataloged modules apply to a flow.

Pure functions over (slots, flow name, config). A module applies iff the
config has an entry under its name and that entry's ``flow`` lists the
requested flow or ``"all"``. Modules without a config entry are left out
entirely: not counted, not executed.

Applicable modules are split at order 9000 into the normal phase and the
jump phase, each sorted by order then name.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from jenny.orchestration.catalog import JUMP_THRESHOLD, ModuleSlot
from jenny.orchestration.context import ModuleConfig


@dataclass(frozen=True)
class ResolvedFlow:
    """Modules a flow will run, per phase."""

    flow_name: str
    normal: tuple[ModuleSlot, ...] = field(default_factory=tuple)
    jump: tuple[ModuleSlot, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        """Number of normal-phase modules (the dashboard denominator)."""
        return len(self.normal)

    @property
    def is_empty(self) -> bool:
        return not self.normal and not self.jump

    def names(self) -> list[str]:
        return [slot.name for slot in (*self.normal, *self.jump)]


def module_applies(name: str, flow_name: str, config: Mapping[str, ModuleConfig]) -> bool:
    """True when ``config[name]`` exists and joins ``flow_name`` or ``"all"``."""
    entry = config.get(name)
    if entry is None:
        return False
    return entry.applies_to(flow_name)


def resolve_flow(
    slots: Iterable[ModuleSlot],
    flow_name: str,
    config: Mapping[str, ModuleConfig],
) -> ResolvedFlow:
    """Select and partition the slots that apply to ``flow_name``."""
    applicable = sorted(
        (slot for slot in slots if module_applies(slot.name, flow_name, config)),
        key=ModuleSlot.sort_key,
    )
    return ResolvedFlow(
        flow_name=flow_name,
        normal=tuple(slot for slot in applicable if slot.order < JUMP_THRESHOLD),
        jump=tuple(slot for slot in applicable if slot.order >= JUMP_THRESHOLD),
    )


__all__ = ["ResolvedFlow", "module_applies", "resolve_flow"]
