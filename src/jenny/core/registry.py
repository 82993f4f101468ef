"""
Object registry with TTL expiration, LRU eviction and a background sweep.

Modules stash objects here that must outlive a single flow run: long-lived
client handles, voice connections, pending interaction state. The registry
is an explicitly constructed store, created once at process start and
passed by reference to the flow engine and to anything else that needs it.

Manifesto:
    A bot process lives for weeks. Anything a module parks in a
    process-wide map without an expiry is a slow leak, and any expiry that
    is only checked on read never frees keys nobody asks for again.

    - **Lazy expiry:** ``get`` never returns an expired value
    - **Active expiry:** a periodic sweep drops expired entries nobody reads
    - **Bounded:** the sweep evicts least-recently-used entries over capacity
    - **Forgiving input:** a malformed key reads as "not found", never raises

Architecture:
    ::

        ObjectRegistry
          ├── _values : dict[key, value]          ─ insertion ordered
          ├── _meta   : dict[key, RegistryEntry]  ─ since, last_access, ttl, expire_at
          │
          ├── put(value, id?)  → key
          ├── get(id)          → value | None     (lazy expiry, touch on read)
          ├── delete(id)       → bool
          ├── list_keys(prefix?)
          ├── clear_all()
          │
          └── sweep()  ◄── asyncio task every sweep_interval_seconds
                pass 1: drop expire_at <= now
                pass 2: size > max_entries → drop (size - max) oldest last_access

Examples:
    >>> registry = ObjectRegistry(RegistryConfig(ttl_seconds=60))
    >>> key = registry.put({"token": "abc"})
    >>> registry.get(key)
    {'token': 'abc'}
    >>> registry.put("voice", "discord:voice:42")
    'discord:voice:42'
    >>> registry.list_keys("discord:")
    ['discord:voice:42']

Performance:
    - put/get/delete: O(1)
    - sweep: O(n log n) when capacity is exceeded, O(n) otherwise

Guardrails:
    ❌ DON'T: Rely on ``list_keys`` to hide expired keys; it reports what is
       stored until the next sweep or read removes it
    ✅ DO: Use ``get`` when you need a live value

    ❌ DON'T: Share one key between unrelated modules; ``put`` is
       last-writer-wins
    ✅ DO: Namespace keys (``discord:voice:<guild>``)

Tags:
    registry, ttl, lru, cache, sweep, asyncio, jenny-core
"""

from __future__ import annotations

import asyncio
import random
import string
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from jenny.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60

_KEY_ALPHABET = string.digits + string.ascii_lowercase


def _base36(number: int) -> str:
    if number <= 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_KEY_ALPHABET[rem])
    return "".join(reversed(digits))


@dataclass(frozen=True)
class RegistryConfig:
    """Registry tuning.

    Attributes:
        ttl_seconds: Global time-to-live applied on ``put`` (``None`` → no expiry).
        max_entries: Capacity enforced by the sweep (``None`` → unbounded).
        touch_on_get: Refresh ``last_access`` on every successful ``get``.
        lru_enabled: Enable the capacity pass of the sweep.
        sweep_interval_seconds: Cadence of the background sweep task.
        key_prefix: Prefix of generated keys.
    """

    ttl_seconds: float | None = DEFAULT_TTL_SECONDS
    max_entries: int | None = 100_000
    touch_on_get: bool = True
    lru_enabled: bool = True
    sweep_interval_seconds: float = 1.0
    key_prefix: str = "reg"


@dataclass
class RegistryEntry:
    """Metadata kept alongside every stored value."""

    value: Any
    since: float
    last_access: float
    ttl_seconds: float | None = None
    expire_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expire_at is not None and now >= self.expire_at


@dataclass(frozen=True)
class SweepStats:
    """Outcome of one sweep."""

    expired: int = 0
    evicted: int = 0

    @property
    def removed(self) -> int:
        return self.expired + self.evicted


def _valid_key(key: Any) -> bool:
    return isinstance(key, str) and bool(key)


class ObjectRegistry:
    """Process-wide key/value store with TTL and LRU policies.

    The value map and the metadata map always hold the same key set. Both
    are guarded by one re-entrant lock, so handlers that hop to worker
    threads (``asyncio.to_thread``) can use the registry too.

    Example:
        registry = ObjectRegistry(RegistryConfig(max_entries=1000))
        async with registry:              # starts/stops the sweep task
            key = registry.put(client, "jira:client")
            ...
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the registry.

        Args:
            config: Registry tuning (defaults to :class:`RegistryConfig`).
            clock: Source of "now" in seconds for TTL/LRU bookkeeping.
        """
        self._config = config or RegistryConfig()
        self._clock = clock
        self._values: dict[str, Any] = {}
        self._meta: dict[str, RegistryEntry] = {}
        self._lock = threading.RLock()
        self._task: asyncio.Task[None] | None = None

    @property
    def config(self) -> RegistryConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def put(self, value: Any, id: str | None = None, *, ttl_seconds: float | None = None) -> str:
        """Store ``value`` and return its key.

        Args:
            value: Any object.
            id: Caller-supplied key; trimmed. Empty or non-string → generated.
            ttl_seconds: Override of the global TTL for this entry.

        Returns:
            The key the value is stored under.
        """
        key = id.strip() if isinstance(id, str) and id.strip() else self._generate_key()
        ttl = ttl_seconds if ttl_seconds is not None else self._config.ttl_seconds
        if ttl is not None and ttl <= 0:
            ttl = None

        with self._lock:
            now = self._clock()
            if key in self._values:
                logger.debug("registry.overwrite", key=key)
            self._values[key] = value
            self._meta[key] = RegistryEntry(
                value=value,
                since=now,
                last_access=now,
                ttl_seconds=ttl,
                expire_at=(now + ttl) if ttl is not None else None,
            )
        return key

    def get(self, id: Any) -> Any | None:
        """Return the live value stored at ``id``, or ``None``.

        An entry found expired is removed on the spot.
        """
        if not _valid_key(id):
            return None
        with self._lock:
            if id not in self._values:
                return None
            meta = self._meta[id]
            now = self._clock()
            if meta.is_expired(now):
                self._remove(id)
                return None
            if self._config.touch_on_get:
                meta.last_access = now
            return self._values[id]

    def delete(self, id: Any) -> bool:
        """Remove ``id``; return whether it existed."""
        if not _valid_key(id):
            return False
        with self._lock:
            return self._remove(id)

    def list_keys(self, prefix: str | None = None) -> list[str]:
        """Keys in insertion order, optionally filtered by ``prefix``.

        Entries that are expired but not yet swept are still listed.
        """
        with self._lock:
            keys = list(self._values)
        if isinstance(prefix, str) and prefix:
            return [k for k in keys if k.startswith(prefix)]
        return keys

    def clear_all(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._values.clear()
            self._meta.clear()

    def entry(self, id: Any) -> RegistryEntry | None:
        """Return a copy of the metadata stored for ``id`` (no touch, no expiry)."""
        if not _valid_key(id):
            return None
        with self._lock:
            meta = self._meta.get(id)
            return replace(meta) if meta is not None else None

    def sweep(self) -> SweepStats:
        """Run one TTL pass and one capacity pass.

        Returns:
            Counts of entries removed by each pass.
        """
        with self._lock:
            now = self._clock()
            expired_keys = [k for k, meta in self._meta.items() if meta.is_expired(now)]
            for key in expired_keys:
                self._remove(key)
            evicted = self._enforce_capacity()

        stats = SweepStats(expired=len(expired_keys), evicted=evicted)
        if stats.removed:
            logger.debug("registry.sweep", expired=stats.expired, evicted=stats.evicted, size=len(self))
        return stats

    # ------------------------------------------------------------------ #
    # Background sweep
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the background sweep task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._sweep_loop(), name="registry-sweep")
        logger.debug("registry.sweep_started", interval=self._config.sweep_interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("registry.sweep_stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> ObjectRegistry:
        self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    async def _sweep_loop(self) -> None:
        interval = self._config.sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("registry.sweep_failed")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _remove(self, key: str) -> bool:
        existed = key in self._values
        self._values.pop(key, None)
        self._meta.pop(key, None)
        return existed

    def _enforce_capacity(self) -> int:
        cap = self._config.max_entries
        if not self._config.lru_enabled or cap is None:
            return 0
        excess = len(self._values) - cap
        if excess <= 0:
            return 0
        # sorted() is stable: equal last_access keeps insertion order
        oldest = sorted(self._meta.items(), key=lambda item: item[1].last_access)[:excess]
        for key, _ in oldest:
            self._remove(key)
        return len(oldest)

    def _generate_key(self) -> str:
        stamp = _base36(int(time.time() * 1000))
        suffix = "".join(random.choices(_KEY_ALPHABET, k=6))
        return f"{self._config.key_prefix}:{stamp}:{suffix}"

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self._values

    def __repr__(self) -> str:
        return f"ObjectRegistry(size={len(self)}, running={self.running})"


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "ObjectRegistry",
    "RegistryConfig",
    "RegistryEntry",
    "SweepStats",
]
