"""
Shared pytest fixtures for jenny-core tests.

This module provides:
- A manual clock for deterministic TTL/LRU/throttle tests
- A small module catalog and matching base config
- Settings cache and logging context cleanup between tests
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import pytest
import structlog

from jenny.core.logging import clear_context
from jenny.core.settings import clear_settings_cache
from jenny.orchestration.catalog import ModuleCatalog
from jenny.orchestration.context import CoreRunContext, CoreSnapshot


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    """Keep settings cache, env and logging context from leaking across tests."""
    for key in list(os.environ):
        if key.startswith("JENNY_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    clear_context()
    yield
    clear_settings_cache()
    clear_context()


@pytest.fixture(autouse=True)
def _quiet_structlog():
    """Drop engine logs below CRITICAL; tests that inspect logs configure their own."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


# =============================================================================
# Sample catalog / config
# =============================================================================


@pytest.fixture
def base_config() -> dict[str, Any]:
    """Base snapshot: three discord modules, one cron module, one jump module."""
    return {
        "config": {
            "core-channel-config": {"flow": ["discord", "cron"]},
            "discord-gate": {"flow": "discord", "allowed": ["123"]},
            "core-ai": {"flow": ["discord"]},
            "cron-tick": {"flow": ["cron"]},
            "core-output": {"flow": ["all"]},
        },
        "workingObject": {"useVoiceChannel": False, "botName": "jenny"},
    }


@pytest.fixture
def snapshot(base_config: dict[str, Any]) -> CoreSnapshot:
    return CoreSnapshot.model_validate(base_config)


@pytest.fixture
def run_ctx(snapshot: CoreSnapshot) -> CoreRunContext:
    return snapshot.create_run_core()


@pytest.fixture
def calls() -> list[str]:
    """Names of handlers in the order they were invoked."""
    return []


@pytest.fixture
def catalog(calls: list[str]) -> ModuleCatalog:
    """Catalog matching ``base_config``; every handler records its name."""
    catalog = ModuleCatalog()

    @catalog.module(10)
    async def core_channel_config(ctx):
        calls.append("core-channel-config")
        ctx.working_object.data["channel_allowed"] = True

    @catalog.module(50)
    def discord_gate(ctx):
        calls.append("discord-gate")

    @catalog.module(1000)
    async def core_ai(ctx):
        calls.append("core-ai")
        ctx.working_object.data["reply"] = "hello"

    @catalog.module(1000)
    async def cron_tick(ctx):
        calls.append("cron-tick")

    @catalog.module(9000)
    async def core_output(ctx):
        calls.append("core-output")

    # registered but never configured
    @catalog.module(20)
    async def unconfigured(ctx):
        calls.append("unconfigured")

    return catalog


@pytest.fixture
def core_file(tmp_path: Path, base_config: dict[str, Any]) -> Path:
    path = tmp_path / "core.json"
    path.write_text(json.dumps(base_config), encoding="utf-8")
    return path
