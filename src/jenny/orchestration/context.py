"""Run context — base config snapshot, working object and per-run context.

A flow run sees two things: the shared, read-mostly ``config`` (module
name → per-module settings, including the flows the module joins) and a
``working_object`` that every module of the run mutates in turn.

Manifesto:
    The working object used to be an untyped bag whose fields were
    referenced by string convention, with inconsistent casing between
    modules. Here it is a declared model: core fields are typed, template
    keys arrive in either camelCase or snake_case, and anything an
    integration adds lives under ``data`` instead of becoming a stray
    attribute. Assigning an undeclared attribute raises, so a typo fails
    loudly instead of silently creating a new field.

Architecture:
    ::

        CoreSnapshot (frozen, swapped atomically by HotConfigLoader)
          ├── config          : dict[str, ModuleConfig]   ─ shared by reference
          └── working_object  : WorkingObject             ─ template, never mutated
                    │
                    │ create_run_core()  (deep copy)
                    ▼
        CoreRunContext
          ├── config          ─ same dict object as the snapshot
          └── working_object  ─ private to this run

Tags:
    context, working-object, snapshot, pydantic, jenny-orchestration
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from jenny.core.run_log import RunLogEntry

ALL_FLOWS = "all"


class ModuleConfig(BaseModel):
    """Per-module settings from the base config.

    ``flow`` accepts a single flow name or a list. Every other key is kept
    as module-specific settings (``settings``).
    """

    model_config = ConfigDict(extra="allow")

    flow: list[str] = Field(default_factory=list)

    @field_validator("flow", mode="before")
    @classmethod
    def _coerce_flow(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, str)]
        return []

    def applies_to(self, flow_name: str) -> bool:
        """True when the module joins ``flow_name`` (or joins every flow)."""
        return flow_name in self.flow or ALL_FLOWS in self.flow

    @property
    def settings(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class WorkingObject(BaseModel):
    """Declared per-run mutable state threaded through every module."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    # only a real ``True`` stops a run, so no coercion from 1 or "yes"
    stop: bool = Field(default=False, strict=True)
    flow: str | None = None
    id: str | None = None
    use_voice_channel: bool = False
    logging: list[RunLogEntry] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_undeclared(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        known: set[str] = set()
        for name, info in cls.model_fields.items():
            known.add(name)
            if info.alias:
                known.add(info.alias)
        declared = {k: v for k, v in value.items() if k in known}
        undeclared = {k: v for k, v in value.items() if k not in known}
        if undeclared:
            bag = declared.get("data")
            declared["data"] = {**undeclared, **(bag if isinstance(bag, Mapping) else {})}
        return declared


def _as_mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


class CoreSnapshot(BaseModel):
    """Immutable pairing of base config and working-object template."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    config: dict[str, ModuleConfig] = Field(default_factory=dict)
    working_object: WorkingObject = Field(default_factory=WorkingObject, alias="workingObject")

    @model_validator(mode="before")
    @classmethod
    def _tolerate_shapes(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        data = dict(value)
        config = _as_mapping(data.get("config"))
        # A non-object entry still counts as "configured" but joins no flow
        data["config"] = {name: entry if isinstance(entry, Mapping) else {} for name, entry in config.items()}
        snake = data.pop("working_object", None)
        template = data.pop("workingObject", snake)
        data["workingObject"] = template if isinstance(template, (Mapping, WorkingObject)) else {}
        return data

    def create_run_core(self) -> CoreRunContext:
        return CoreRunContext.from_snapshot(self)


@dataclass
class CoreRunContext:
    """What every module handler receives.

    Attributes:
        config: Shared base config (same object for all runs of a snapshot).
        working_object: This run's private mutable state.
    """

    config: dict[str, ModuleConfig]
    working_object: WorkingObject

    @classmethod
    def from_snapshot(cls, snapshot: CoreSnapshot) -> CoreRunContext:
        return cls(
            config=snapshot.config,
            working_object=snapshot.working_object.model_copy(deep=True),
        )

    def module_config(self, name: str) -> ModuleConfig | None:
        return self.config.get(name)


__all__ = [
    "ALL_FLOWS",
    "CoreRunContext",
    "CoreSnapshot",
    "ModuleConfig",
    "WorkingObject",
]
