"""Process settings for the Jenny flow engine.

Every tunable of the substrate (registry TTL and capacity, sweep cadence,
dashboard throttle, reload debounce, per-module deadline) is a field here,
read from ``JENNY_*`` environment variables or a ``.env`` file.

Examples:
    >>> from jenny.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.registry_config().max_entries
    100000

Tags:
    settings, configuration, pydantic, environment, jenny-core
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jenny.core.registry import DEFAULT_TTL_SECONDS, RegistryConfig


class JennySettings(BaseSettings):
    """Jenny centralized configuration.

    Fields
    ──────
    core_path                         : Base config/template snapshot (JSON or YAML)
    log_level / json_logs             : structlog configuration
    registry_*                        : ObjectRegistry TTL, capacity and sweep
    dashboard_enabled / _interval     : Live progress dashboard
    reload_debounce_seconds           : Quiet period before a hot reload loads
    module_timeout_seconds            : Per-module deadline (None or 0 disables)
    """

    model_config = SettingsConfigDict(
        env_prefix="JENNY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Config source ────────────────────────────────────────────
    core_path: Path = Field(default=Path("core.json"), description="Base config/template snapshot")

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    json_logs: bool | None = Field(default=None, description="None → JSON when stderr is not a tty")

    # ── Registry ─────────────────────────────────────────────────
    registry_ttl_seconds: float | None = Field(default=DEFAULT_TTL_SECONDS)
    registry_max_entries: int | None = Field(default=100_000)
    registry_touch_on_get: bool = Field(default=True)
    registry_lru_enabled: bool = Field(default=True)
    registry_sweep_interval_seconds: float = Field(default=1.0)

    # ── Flow engine ──────────────────────────────────────────────
    dashboard_enabled: bool = Field(default=True)
    dashboard_interval_seconds: float = Field(default=1.0)
    reload_debounce_seconds: float = Field(default=0.25)
    module_timeout_seconds: float | None = Field(default=300.0)

    @field_validator("registry_sweep_interval_seconds", "dashboard_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"interval must be positive, got {value}")
        return value

    @field_validator("reload_debounce_seconds")
    @classmethod
    def _non_negative_debounce(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"debounce must be non-negative, got {value}")
        return value

    @field_validator("module_timeout_seconds", "registry_ttl_seconds")
    @classmethod
    def _zero_disables(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return upper

    def registry_config(self) -> RegistryConfig:
        """Build the :class:`RegistryConfig` described by these settings."""
        return RegistryConfig(
            ttl_seconds=self.registry_ttl_seconds,
            max_entries=self.registry_max_entries,
            touch_on_get=self.registry_touch_on_get,
            lru_enabled=self.registry_lru_enabled,
            sweep_interval_seconds=self.registry_sweep_interval_seconds,
        )


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, JennySettings] = {}


def get_settings(*, _force_reload: bool = False) -> JennySettings:
    """Load, validate, and cache a :class:`JennySettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = JennySettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["JennySettings", "get_settings", "clear_settings_cache"]
