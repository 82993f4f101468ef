"""Per-run log stream kept on the working object.

Modules report what they did into ``working_object.logging`` so that output
modules at the end of a flow (a debug embed, a webpage trace) can show the
run's own story. Every entry is also forwarded to structlog at debug level.

Example:
    >>> log = get_module_logger(ctx.working_object, 10, "core-channel-config")
    >>> log("channel allowed", context={"channel": "123"})
    >>> ctx.working_object.logging[-1].prefix
    '[00010:core-channel-config]'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from jenny.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MODULE_NAME = "run-log"


class RunLogEntry(BaseModel):
    """One line of a run's log stream."""

    model_config = ConfigDict(extra="forbid")

    ts: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    level: str = "info"
    message: str = ""
    module_name: str = DEFAULT_MODULE_NAME
    prefix: str | None = None
    context: dict[str, Any] | None = None


class HasRunLog(Protocol):
    logging: list[RunLogEntry]


def module_prefix(order: int | None, name: str) -> str:
    """Bracketed prefix for a module: ``[00010:name]`` or ``[name]``."""
    if order is None:
        return f"[{name}]"
    return f"[{order:05d}:{name}]"


def append_log(
    working_object: HasRunLog,
    entry: str | Mapping[str, Any] | Any,
    level: str = "info",
    context: Mapping[str, Any] | None = None,
    *,
    prefix: str | None = None,
    module_name: str = DEFAULT_MODULE_NAME,
) -> RunLogEntry:
    """Append an entry to ``working_object.logging`` and return it.

    ``entry`` may be a plain message or a mapping with ``level``,
    ``message``, ``prefix`` and ``context`` keys; anything else is
    stringified.
    """
    if isinstance(entry, Mapping):
        raw_level = entry.get("level")
        raw_message = entry.get("message")
        raw_prefix = entry.get("prefix")
        raw_context = entry.get("context")
        item = RunLogEntry(
            level=raw_level if isinstance(raw_level, str) else level,
            message=raw_message if isinstance(raw_message, str) else "",
            module_name=module_name,
            prefix=raw_prefix if isinstance(raw_prefix, str) else prefix,
            context=dict(raw_context) if isinstance(raw_context, Mapping) else (dict(context) if context else None),
        )
    else:
        item = RunLogEntry(
            level=level,
            message=entry if isinstance(entry, str) else str(entry),
            module_name=module_name,
            prefix=prefix,
            context=dict(context) if context else None,
        )

    working_object.logging.append(item)
    logger.debug("run_log.append", level=item.level, prefix=item.prefix, message=item.message)
    return item


def log_info(working_object: HasRunLog, message: str, context: Mapping[str, Any] | None = None) -> RunLogEntry:
    return append_log(working_object, message, "info", context)


def log_warn(working_object: HasRunLog, message: str, context: Mapping[str, Any] | None = None) -> RunLogEntry:
    return append_log(working_object, message, "warn", context)


def log_error(working_object: HasRunLog, message: str, context: Mapping[str, Any] | None = None) -> RunLogEntry:
    return append_log(working_object, message, "error", context)


def get_module_logger(
    working_object: HasRunLog,
    order: int | None,
    name: str,
) -> Callable[..., RunLogEntry]:
    """Return ``log(message_or_entry, level="info", context=None)`` bound to a module prefix."""
    prefix = module_prefix(order, name)

    def log(
        message_or_entry: str | Mapping[str, Any] | Any,
        level: str = "info",
        context: Mapping[str, Any] | None = None,
    ) -> RunLogEntry:
        if isinstance(message_or_entry, Mapping):
            entry = {**message_or_entry, "prefix": prefix}
            entry.setdefault("level", level)
            return append_log(working_object, entry, level, context, module_name=name)
        return append_log(working_object, message_or_entry, level, context, prefix=prefix, module_name=name)

    return log


__all__ = [
    "RunLogEntry",
    "append_log",
    "get_module_logger",
    "log_error",
    "log_info",
    "log_warn",
    "module_prefix",
]
