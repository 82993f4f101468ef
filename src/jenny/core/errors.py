"""
Error types for the Jenny flow engine.

Almost every failure stays inside the run it belongs to: a module that
raises becomes a failed row, a dashboard render that raises is dropped, a
bad hot reload keeps the previous snapshot. The few errors that do travel
(startup config failure, catalog misuse) carry a category and the
flow/module they concern, and every contained error is formatted the
same way through :func:`format_error`.

Hierarchy::

    JennyError                  category, context, cause
     ├── ConfigError            CONFIG   fatal at startup, logged on reload
     │    ├── MissingConfigError
     │    └── InvalidConfigError
     ├── CatalogError           CATALOG  programming error at registration
     └── ModuleError            MODULE   recorded on the run, never raised
          └── ModuleTimeoutError TIMEOUT

Tags:
    error-handling, exception-hierarchy, error-context, jenny-core
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Where an error comes from; used as ``category`` in log events."""

    CONFIG = "CONFIG"
    CATALOG = "CATALOG"
    MODULE = "MODULE"
    TIMEOUT = "TIMEOUT"
    REGISTRY = "REGISTRY"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """What the engine knew at the failure site.

    >>> ErrorContext(flow="discord", module="core-ai").to_dict()
    {'flow': 'discord', 'module': 'core-ai'}
    """

    flow: str | None = None
    module: str | None = None
    run_id: str | None = None
    path: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "metadata"}
        return {k: v for k, v in data.items() if v is not None} | self.metadata


_CONTEXT_FIELDS = {f.name for f in fields(ErrorContext)} - {"metadata"}


class JennyError(Exception):
    """Base class of every error raised by jenny itself."""

    default_category = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category if category is not None else self.default_category
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **values: Any) -> JennyError:
        """Attach context and return ``self``.

        Known fields (``flow``, ``module``, ``run_id``, ``path``) are set
        directly; anything else lands in ``metadata``::

            raise ConfigError("bad snapshot").with_context(path="core.json")
        """
        for key, value in values.items():
            if key in _CONTEXT_FIELDS:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flatten for a structured log event."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if context := self.context.to_dict():
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(category={self.category.value}, message={self.message!r})"


# ── Config ───────────────────────────────────────────────────────────────


class ConfigError(JennyError):
    """The base config snapshot cannot be used."""

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Config not found: {key}", context=ErrorContext(path=key))


class InvalidConfigError(ConfigError):
    def __init__(self, key: str, value: Any, message: str | None = None, cause: Exception | None = None):
        self.key = key
        self.value = value
        super().__init__(
            message or f"Invalid value for {key}: {value!r}",
            context=ErrorContext(path=key),
            cause=cause,
        )


# ── Catalog / modules ────────────────────────────────────────────────────


class CatalogError(JennyError):
    """Module catalog misuse (duplicate registration, malformed slot)."""

    default_category = ErrorCategory.CATALOG


class ModuleError(JennyError):
    default_category = ErrorCategory.MODULE


class ModuleTimeoutError(ModuleError):
    """A module handler did not settle before its deadline."""

    default_category = ErrorCategory.TIMEOUT

    def __init__(self, module: str, timeout: float, elapsed: float | None = None):
        self.module = module
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(
            f"Module '{module}' timed out after {timeout:g}s",
            context=ErrorContext(module=module),
        )


# ── Helpers ──────────────────────────────────────────────────────────────


def format_error(error: BaseException, limit: int | None = None) -> str:
    """One-line message for ``error``, at most ``limit`` characters.

    An empty message falls back to the exception class name; a truncated
    one ends with an ellipsis.
    """
    text = error.message if isinstance(error, JennyError) else str(error)
    text = text or type(error).__name__
    if limit is not None and len(text) > limit:
        text = text[: max(limit - 1, 0)] + "…"
    return text


def categorize_error(error: BaseException) -> ErrorCategory:
    if isinstance(error, JennyError):
        return error.category
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
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
]
