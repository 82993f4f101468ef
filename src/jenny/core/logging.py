"""
Jenny Logging - one structlog setup for the registry, the flow engine and
every module handler.

Manifesto:
    Many short flow runs interleave on one event loop. A log line that
    does not say which run emitted it is noise. Every component therefore
    logs key/value events through the same factory, and the executor binds
    ``flow`` and ``run_id`` into contextvars for the duration of a run.

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ▼
        _build_processors()
          timestamp (ISO, optional)
          merge_contextvars        flow, run_id, module ...
          add_log_level
          stack/exc info
          service tag
          ECS renames              JSON only
          JSONRenderer | ConsoleRenderer
            │
            ▼
        PrintLogger → stderr       (stdout belongs to the dashboard)

Examples:
    >>> configure_logging(level="DEBUG", service="jenny")
    >>> log = get_logger(__name__)
    >>> with LogContext(flow="discord", run_id="r-1"):
    ...     log.info("module.ok", module="core-ai", duration_ms=12)

Guardrails:
    - Call ``configure_logging`` once, at process start
    - ``json_format=None`` picks JSON when stderr is not a terminal

Tags:
    logging, structlog, observability, contextvars, jenny-core
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# ECS field names for the keys structlog produces
_ECS_RENAMES = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger": "log.logger",
}


def _service_tagger(service: str) -> Processor:
    def tag(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", service)
        return event_dict

    return tag


def _ecs_renames(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key, ecs_key in _ECS_RENAMES.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


def _build_processors(service: str, json_format: bool, add_timestamp: bool) -> list[Processor]:
    processors: list[Processor] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _service_tagger(service),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            _ecs_renames,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "jenny",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: ``True`` for JSON lines, ``False`` for the console
            renderer, ``None`` to decide from whether stderr is a terminal.
        service: Value of ``service.name`` on every event.
        add_timestamp: Stamp events with an ISO timestamp.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    if json_format is None:
        json_format = not sys.stderr.isatty()

    structlog.configure(
        processors=_build_processors(service, json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    # third-party libraries that use stdlib logging end up on stderr too
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger for ``name``.

    The name goes to the logger factory; ``PrintLoggerFactory`` ignores
    it, so nothing is added to the event dict.
    """
    return structlog.get_logger(name)


def bind_context(**values: Any) -> None:
    """Attach ``values`` to every event logged from the current task."""
    structlog.contextvars.bind_contextvars(**values)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Scoped logging context usable with ``with`` and ``async with``.

    Example:
        async with LogContext(flow="discord", run_id=state.run_id):
            logger.info("flow.start")
    """

    def __init__(self, **values: Any):
        self._values = values
        self._scope: Any = None

    def __enter__(self) -> LogContext:
        # restores outer values on exit, so nested runs keep theirs
        self._scope = structlog.contextvars.bound_contextvars(**self._values)
        self._scope.__enter__()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        scope, self._scope = self._scope, None
        if scope is not None:
            scope.__exit__(*exc_info)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: Any) -> None:
        self.__exit__(*exc_info)


__all__ = [
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
