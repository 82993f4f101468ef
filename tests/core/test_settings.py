"""Tests for jenny.core.settings — env loading, validation, caching."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from jenny.core.registry import DEFAULT_TTL_SECONDS
from jenny.core.settings import JennySettings, clear_settings_cache, get_settings


class TestJennySettings:
    def test_defaults(self):
        settings = JennySettings(_env_file=None)
        assert settings.core_path == Path("core.json")
        assert settings.registry_ttl_seconds == DEFAULT_TTL_SECONDS
        assert settings.registry_max_entries == 100_000
        assert settings.registry_sweep_interval_seconds == 1.0
        assert settings.dashboard_interval_seconds == 1.0
        assert settings.reload_debounce_seconds == 0.25
        assert settings.module_timeout_seconds == 300.0

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("JENNY_CORE_PATH", "/etc/jenny/core.yaml")
        monkeypatch.setenv("JENNY_REGISTRY_MAX_ENTRIES", "10")
        monkeypatch.setenv("JENNY_DASHBOARD_ENABLED", "false")
        settings = JennySettings(_env_file=None)
        assert settings.core_path == Path("/etc/jenny/core.yaml")
        assert settings.registry_max_entries == 10
        assert settings.dashboard_enabled is False

    def test_zero_disables_timeout_and_ttl(self):
        settings = JennySettings(_env_file=None, module_timeout_seconds=0, registry_ttl_seconds=-1)
        assert settings.module_timeout_seconds is None
        assert settings.registry_ttl_seconds is None

    def test_log_level_normalized(self):
        assert JennySettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("log_level", "loud"),
            ("registry_sweep_interval_seconds", 0),
            ("dashboard_interval_seconds", -1),
            ("reload_debounce_seconds", -0.1),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            JennySettings(_env_file=None, **{field: value})

    def test_registry_config(self):
        settings = JennySettings(_env_file=None, registry_ttl_seconds=60, registry_lru_enabled=False)
        config = settings.registry_config()
        assert config.ttl_seconds == 60
        assert config.lru_enabled is False
        assert config.max_entries == 100_000


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("JENNY_LOG_LEVEL", "ERROR")
        assert get_settings() is first
        assert get_settings(_force_reload=True).log_level == "ERROR"

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
