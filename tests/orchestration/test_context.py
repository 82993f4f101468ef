"""Tests for jenny.orchestration.context — snapshots, working object, run context."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from jenny.orchestration.context import CoreRunContext, CoreSnapshot, ModuleConfig, WorkingObject


class TestModuleConfig:
    def test_flow_coercion(self):
        assert ModuleConfig(flow="discord").flow == ["discord"]
        assert ModuleConfig(flow=None).flow == []
        assert ModuleConfig(flow=["a", 3, "b"]).flow == ["a", "b"]
        assert ModuleConfig(flow=42).flow == []
        assert ModuleConfig().flow == []

    def test_extra_keys_are_settings(self):
        cfg = ModuleConfig.model_validate({"flow": "discord", "allowed": ["1"]})
        assert cfg.settings == {"allowed": ["1"]}

    def test_applies_to(self):
        assert ModuleConfig(flow=["all"]).applies_to("cron")
        assert not ModuleConfig(flow=["discord"]).applies_to("cron")


class TestWorkingObject:
    def test_camel_and_snake_input(self):
        assert WorkingObject.model_validate({"useVoiceChannel": True}).use_voice_channel is True
        assert WorkingObject.model_validate({"use_voice_channel": True}).use_voice_channel is True

    def test_undeclared_keys_move_to_data(self):
        wo = WorkingObject.model_validate({"botName": "jenny", "data": {"x": 1}})
        assert wo.data == {"botName": "jenny", "x": 1}

    def test_explicit_data_wins(self):
        wo = WorkingObject.model_validate({"x": 1, "data": {"x": 2}})
        assert wo.data["x"] == 2

    def test_undeclared_attribute_assignment_raises(self):
        wo = WorkingObject()
        with pytest.raises(ValueError):
            wo.no_such_field = 1

    def test_wrongly_typed_assignment_raises(self):
        wo = WorkingObject()
        with pytest.raises(ValidationError):
            wo.use_voice_channel = [1]
        with pytest.raises(ValidationError):
            wo.data = "not a mapping"
        assert wo.use_voice_channel is False
        assert wo.data == {}

    def test_stop_accepts_only_bool(self):
        """``1`` or ``"yes"`` must not become a stop signal."""
        wo = WorkingObject()
        with pytest.raises(ValidationError):
            wo.stop = "yes"
        with pytest.raises(ValidationError):
            wo.stop = 1
        assert wo.stop is False

        wo.stop = True
        assert wo.stop is True

    def test_valid_assignment_keeps_other_fields(self):
        wo = WorkingObject.model_validate({"flow": "discord", "botName": "jenny"})
        wo.id = "42"
        assert wo.flow == "discord"
        assert wo.id == "42"
        assert wo.data == {"botName": "jenny"}

    def test_dump_by_alias(self):
        dumped = WorkingObject(use_voice_channel=True).model_dump(by_alias=True)
        assert dumped["useVoiceChannel"] is True


class TestCoreSnapshot:
    def test_tolerates_bad_shapes(self):
        snap = CoreSnapshot.model_validate({"config": [1, 2], "workingObject": "nope"})
        assert snap.config == {}
        assert snap.working_object.model_dump() == WorkingObject().model_dump()

    def test_non_object_entry_is_configured_without_flows(self):
        snap = CoreSnapshot.model_validate({"config": {"a": True}})
        assert snap.config["a"].flow == []

    def test_snake_case_template_key(self):
        snap = CoreSnapshot.model_validate({"working_object": {"flow": "cron"}})
        assert snap.working_object.flow == "cron"

    def test_frozen(self, snapshot):
        with pytest.raises(ValidationError):
            snapshot.config = {}


class TestCoreRunContext:
    def test_working_object_is_deep_copied(self, snapshot):
        a = snapshot.create_run_core()
        b = snapshot.create_run_core()
        a.working_object.stop = True
        a.working_object.data["botName"] = "changed"
        assert b.working_object.stop is False
        assert b.working_object.data["botName"] == "jenny"
        assert snapshot.working_object.data["botName"] == "jenny"

    def test_config_is_shared(self, snapshot):
        a = CoreRunContext.from_snapshot(snapshot)
        b = CoreRunContext.from_snapshot(snapshot)
        assert a.config is b.config is snapshot.config

    def test_module_config_lookup(self, run_ctx):
        assert run_ctx.module_config("discord-gate").settings == {"allowed": ["123"]}
        assert run_ctx.module_config("missing") is None
