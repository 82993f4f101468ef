"""Hot Config Loader — the process-wide base snapshot, swapped atomically.

Holds the current :class:`~jenny.orchestration.context.CoreSnapshot` (base
config plus working-object template). A reload builds a complete new
snapshot off to the side and publishes it with a single reference
assignment, so no run ever observes a half-updated config. Runs already in
flight keep their own deep-copied working object and the config dict they
started with.

Manifesto:
    Editing ``core.json`` while the bot is live is the normal way to
    operate it. A typo in that file must never take the bot down or leave
    it running on half a config.

    - **Fatal only at startup:** no initial snapshot → the process halts
    - **Keep last good:** a failed reload logs and keeps the old snapshot
    - **Debounced:** editors save in bursts; one load per quiet period
    - **Transport-agnostic:** whatever watches the file calls ``signal()``

Example::

    loader = HotConfigLoader("core.json", debounce_seconds=0.25)
    loader.load_initial()                  # raises ConfigError if unusable
    ctx = loader.create_run_core()
    ...
    loader.signal()                        # from a file watcher, on change

Tags:
    config, hot-reload, snapshot, debounce, jenny-orchestration
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeAlias

import yaml
from pydantic import ValidationError

from jenny.core.errors import ConfigError, InvalidConfigError, MissingConfigError
from jenny.core.logging import get_logger
from jenny.orchestration.context import CoreRunContext, CoreSnapshot, ModuleConfig, WorkingObject

logger = get_logger(__name__)

SnapshotSource: TypeAlias = Path | str | Callable[[], CoreSnapshot | Mapping[str, Any]]
SnapshotListener: TypeAlias = Callable[[CoreSnapshot], None]

YAML_SUFFIXES = {".yaml", ".yml"}


def parse_snapshot(data: Any, *, origin: str = "snapshot") -> CoreSnapshot:
    """Validate raw data into a :class:`CoreSnapshot`.

    Raises:
        InvalidConfigError: If ``data`` is not an object or fails validation.
    """
    if isinstance(data, CoreSnapshot):
        return data
    if not isinstance(data, Mapping):
        raise InvalidConfigError(origin, type(data).__name__, f"{origin} is not an object")
    try:
        return CoreSnapshot.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigError(origin, "…", f"{origin} failed validation: {exc}", cause=exc) from exc


def load_snapshot(path: Path | str) -> CoreSnapshot:
    """Read and validate a snapshot file (JSON, or YAML by suffix).

    Raises:
        MissingConfigError: If the file does not exist.
        InvalidConfigError: If it cannot be parsed or validated.
    """
    path = Path(path)
    if not path.is_file():
        raise MissingConfigError(str(path), f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidConfigError(str(path), "…", f"Cannot read {path}: {exc}", cause=exc) from exc

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidConfigError(str(path), "…", f"Cannot parse {path}: {exc}", cause=exc) from exc

    return parse_snapshot(data, origin=path.name)


class HotConfigLoader:
    """Owner of the current base snapshot.

    Args:
        source: Snapshot file path, or a zero-argument callable returning a
            snapshot or a raw mapping.
        debounce_seconds: Quiet period between the last ``signal()`` of a
            burst and the reload it triggers.
    """

    def __init__(self, source: SnapshotSource, *, debounce_seconds: float = 0.25):
        self._source = source
        self._debounce = debounce_seconds
        self._snapshot: CoreSnapshot | None = None
        self._version = 0
        self._pending: asyncio.TimerHandle | None = None
        self._listeners: list[SnapshotListener] = []

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    def _load(self) -> CoreSnapshot:
        source = self._source
        if isinstance(source, (str, Path)):
            return load_snapshot(source)
        try:
            produced = source()
        except ConfigError:
            raise
        except Exception as exc:
            name = getattr(source, "__qualname__", type(source).__name__)
            raise ConfigError(f"Config source failed: {exc}", cause=exc).with_context(source=name) from exc
        return parse_snapshot(produced, origin="config source")

    def load_initial(self) -> CoreSnapshot:
        """Load the first snapshot. Failure here is fatal for the process.

        Raises:
            ConfigError: If no valid snapshot can be obtained.
        """
        snapshot = self._load()
        self.apply(snapshot)
        logger.info("config.loaded", modules=len(snapshot.config), version=self._version)
        return snapshot

    def reload(self) -> bool:
        """Load, validate and publish a fresh snapshot.

        Returns:
            ``True`` if a new snapshot was published; ``False`` if loading
            failed and the previous snapshot was kept.
        """
        try:
            fresh = self._load()
        except ConfigError as exc:
            logger.error("config.reload_failed", **exc.to_dict())
            return False
        self.apply(fresh)
        logger.info("config.reloaded", modules=len(fresh.config), version=self._version)
        return True

    def apply(self, snapshot: CoreSnapshot | Mapping[str, Any]) -> CoreSnapshot:
        """Publish ``snapshot`` as the current one (single reference swap).

        Raises:
            InvalidConfigError: If a raw mapping fails validation.
        """
        validated = parse_snapshot(snapshot)
        self._snapshot = validated
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(validated)
            except Exception:
                logger.exception("config.listener_failed")
        return validated

    # ------------------------------------------------------------------ #
    # Debounced reload
    # ------------------------------------------------------------------ #

    def signal(self) -> None:
        """Request a reload; bursts collapse into one load after the debounce.

        Called outside a running event loop, the reload happens immediately.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.reload()
            return
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self._debounce, self._fire)

    def _fire(self) -> None:
        self._pending = None
        self.reload()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def cancel(self) -> None:
        """Drop a scheduled reload, if any."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def subscribe(self, listener: SnapshotListener) -> None:
        """Call ``listener(snapshot)`` after every publish."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def snapshot(self) -> CoreSnapshot:
        """The current snapshot.

        Raises:
            ConfigError: If nothing has been loaded yet.
        """
        if self._snapshot is None:
            raise ConfigError("No config snapshot loaded; call load_initial() first")
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def version(self) -> int:
        return self._version

    @property
    def config(self) -> dict[str, ModuleConfig]:
        return self.snapshot.config

    @property
    def working_object_template(self) -> WorkingObject:
        return self.snapshot.working_object

    def create_run_core(self) -> CoreRunContext:
        """Fresh run context: config by reference, working object deep-copied."""
        return CoreRunContext.from_snapshot(self.snapshot)


__all__ = [
    "HotConfigLoader",
    "SnapshotSource",
    "load_snapshot",
    "parse_snapshot",
]
