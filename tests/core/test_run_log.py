"""Tests for jenny.core.run_log — the per-run log stream."""

from __future__ import annotations

from datetime import datetime

from jenny.core.run_log import (
    append_log,
    get_module_logger,
    log_error,
    log_info,
    log_warn,
    module_prefix,
)
from jenny.orchestration.context import WorkingObject


def test_module_prefix():
    assert module_prefix(10, "core-ai") == "[00010:core-ai]"
    assert module_prefix(None, "core-ai") == "[core-ai]"


def test_append_plain_message():
    wo = WorkingObject()
    entry = append_log(wo, "hello", context={"k": 1})
    assert wo.logging == [entry]
    assert entry.level == "info"
    assert entry.message == "hello"
    assert entry.context == {"k": 1}
    assert entry.module_name == "run-log"
    assert datetime.fromisoformat(entry.ts).tzinfo is not None


def test_append_mapping_entry():
    wo = WorkingObject()
    entry = append_log(wo, {"level": "warn", "message": "careful", "context": {"a": 2}})
    assert entry.level == "warn"
    assert entry.message == "careful"
    assert entry.context == {"a": 2}


def test_append_non_string_is_stringified():
    wo = WorkingObject()
    assert append_log(wo, 42).message == "42"


def test_level_helpers():
    wo = WorkingObject()
    log_info(wo, "a")
    log_warn(wo, "b")
    log_error(wo, "c")
    assert [e.level for e in wo.logging] == ["info", "warn", "error"]


def test_module_logger_binds_prefix():
    wo = WorkingObject()
    log = get_module_logger(wo, 10, "core-channel-config")
    log("channel allowed", context={"channel": "123"})
    log({"message": "mapped"}, "error")

    first, second = wo.logging
    assert first.prefix == "[00010:core-channel-config]"
    assert first.module_name == "core-channel-config"
    assert first.context == {"channel": "123"}
    assert second.prefix == "[00010:core-channel-config]"
    assert second.level == "error"


def test_entries_serialize_with_working_object():
    wo = WorkingObject()
    log_info(wo, "x")
    dumped = wo.model_dump(mode="json", by_alias=True)
    assert dumped["logging"][0]["message"] == "x"
