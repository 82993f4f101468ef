"""Jenny Core -- process-wide primitives shared by every module and flow.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (JennyError, ConfigError)

    Layer 2 -- Shared State
        registry.py        ObjectRegistry: TTL expiration + LRU eviction + sweep
        run_log.py         Per-run log stream on the working object

    Layer 3 -- Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        JennySettings (pydantic-settings, JENNY_ prefix)

Nothing in this package holds import-time mutable state: the registry is
an explicitly constructed object, created once at process start and
passed by reference to whatever needs it.
"""

from jenny.core.errors import (
    CatalogError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    JennyError,
    MissingConfigError,
    ModuleError,
    ModuleTimeoutError,
    categorize_error,
    format_error,
)
from jenny.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from jenny.core.registry import ObjectRegistry, RegistryConfig, RegistryEntry, SweepStats

__all__ = [
    # errors
    "CatalogError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "JennyError",
    "MissingConfigError",
    "ModuleError",
    "ModuleTimeoutError",
    "categorize_error",
    "format_error",
    # logging
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # registry
    "ObjectRegistry",
    "RegistryConfig",
    "RegistryEntry",
    "SweepStats",
]
