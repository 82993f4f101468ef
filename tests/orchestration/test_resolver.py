"""Tests for jenny.orchestration.resolver — flow applicability and phases."""

from __future__ import annotations

from jenny.orchestration.context import ModuleConfig
from jenny.orchestration.resolver import module_applies, resolve_flow


def _config(**flows):
    return {name: ModuleConfig(flow=flow) for name, flow in flows.items()}


def test_module_applies():
    config = _config(a=["discord"], b=["all"], c=[])
    assert module_applies("a", "discord", config)
    assert not module_applies("a", "cron", config)
    assert module_applies("b", "anything", config)
    assert not module_applies("c", "discord", config)
    assert not module_applies("missing", "discord", config)


def test_resolve_partitions_and_orders(catalog, snapshot):
    plan = resolve_flow(catalog.slots(), "discord", snapshot.config)
    assert [s.name for s in plan.normal] == ["core-channel-config", "discord-gate", "core-ai"]
    assert [s.name for s in plan.jump] == ["core-output"]
    assert plan.total == 3
    assert not plan.is_empty


def test_unconfigured_modules_excluded(catalog, snapshot):
    plan = resolve_flow(catalog.slots(), "discord", snapshot.config)
    assert "unconfigured" not in plan.names()


def test_all_flow_joins_every_flow(catalog, snapshot):
    plan = resolve_flow(catalog.slots(), "webpage", snapshot.config)
    assert plan.normal == ()
    assert [s.name for s in plan.jump] == ["core-output"]
    assert plan.total == 0


def test_unknown_flow_with_no_all_modules_is_empty(catalog):
    plan = resolve_flow(catalog.slots(), "discord", {})
    assert plan.is_empty


def test_same_order_ties_break_by_name(catalog, snapshot):
    plan = resolve_flow(catalog.slots(), "discord", {**snapshot.config, **_config(**{"cron-tick": ["discord"]})})
    names = [s.name for s in plan.normal]
    assert names[-2:] == ["core-ai", "cron-tick"]
