"""Module Catalog — the ordered registration table of executable modules.

A module is a unit of work with a numeric ordering prefix and a handler:
``00010-core-channel-config``, ``01000-core-ai``, ``09000-...``. The
catalog decouples registration (at import time or startup) from
resolution (when a flow runs), and supports both explicit tables built
by a loader and a decorator API.

ARCHITECTURE
────────────
::

    ModuleCatalog
      ├── .register(order, name, handler)  ─ add one slot
      ├── .module(order, name=None)        ─ decorator form
      ├── .from_listing(ids, resolve)      ─ Module Provider seam
      ├── .slots()                         ─ ordered (order, name)
      └── .get(name) / in / len / iter

    ModuleSlot(order, name, handler)       ─ immutable once cataloged
    parse_identifier("00010-core-ai")      → (10, "core-ai") | None

BEST PRACTICES
──────────────
- Build one catalog per process at startup and hand it to the engine.
- Pass an explicit catalog in tests; nothing here is global.

Tags:
    jenny-orchestration, catalog, module-registry, lookup
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

from jenny.core.errors import CatalogError
from jenny.core.logging import get_logger

if TYPE_CHECKING:
    from jenny.orchestration.context import CoreRunContext

logger = get_logger(__name__)

JUMP_THRESHOLD = 9000

ModuleHandler: TypeAlias = Callable[["CoreRunContext"], "Awaitable[Any] | Any"]

_IDENTIFIER_RE = re.compile(r"^(?P<order>\d+)-(?P<name>.+?)(?:\.py)?$")


def parse_identifier(identifier: Any) -> tuple[int, str] | None:
    """Split ``<digits>-<name>`` into ``(order, name)``.

    A trailing ``.py`` is ignored. Anything else returns ``None``.

    >>> parse_identifier("00010-core-channel-config")
    (10, 'core-channel-config')
    >>> parse_identifier("README") is None
    True
    """
    if not isinstance(identifier, str):
        return None
    match = _IDENTIFIER_RE.match(identifier.strip())
    if match is None:
        return None
    return int(match.group("order")), match.group("name")


@dataclass(frozen=True)
class ModuleSlot:
    """One cataloged module."""

    order: int
    name: str
    handler: ModuleHandler

    @property
    def identifier(self) -> str:
        return f"{self.order:05d}-{self.name}"

    @property
    def is_jump(self) -> bool:
        return self.order >= JUMP_THRESHOLD

    def sort_key(self) -> tuple[int, str]:
        return (self.order, self.name)


class ModuleProvider(Protocol):
    """Source of module identifiers and their handlers."""

    def identifiers(self) -> Iterable[str]: ...

    def resolve(self, identifier: str) -> ModuleHandler: ...


class ModuleCatalog:
    """Ordered table of :class:`ModuleSlot` records.

    Example:
        >>> catalog = ModuleCatalog()
        >>>
        >>> @catalog.module(10)
        ... async def core_channel_config(ctx):
        ...     ctx.working_object.data["channel_allowed"] = True
        >>>
        >>> [s.identifier for s in catalog.slots()]
        ['00010-core-channel-config']
    """

    def __init__(self, slots: Iterable[ModuleSlot] = ()):
        self._slots: dict[tuple[int, str], ModuleSlot] = {}
        for slot in slots:
            self._add(slot)

    def register(self, order: int, name: str, handler: ModuleHandler) -> ModuleSlot:
        """Register a handler under ``order``/``name``.

        Raises:
            CatalogError: If the identifier is already taken, or the slot is malformed.
        """
        if not isinstance(order, int) or isinstance(order, bool) or order < 0:
            raise CatalogError(f"Module order must be a non-negative integer, got {order!r}")
        if not isinstance(name, str) or not name.strip():
            raise CatalogError(f"Module name must be a non-empty string, got {name!r}")
        if not callable(handler):
            raise CatalogError(f"Handler for module '{name}' is not callable")
        return self._add(ModuleSlot(order=order, name=name.strip(), handler=handler))

    def module(self, order: int, name: str | None = None) -> Callable[[ModuleHandler], ModuleHandler]:
        """Decorator form of :meth:`register`.

        The module name defaults to the function name with underscores
        replaced by dashes.
        """

        def decorator(func: ModuleHandler) -> ModuleHandler:
            module_name = name or getattr(func, "__name__", "").replace("_", "-")
            self.register(order, module_name, func)
            return func

        return decorator

    @classmethod
    def from_listing(
        cls,
        identifiers: Iterable[str],
        resolve: Callable[[str], ModuleHandler],
    ) -> ModuleCatalog:
        """Build a catalog from a raw listing of identifiers.

        Identifiers that do not match ``<digits>-<name>`` are discarded.
        """
        catalog = cls()
        for identifier in identifiers:
            parsed = parse_identifier(identifier)
            if parsed is None:
                logger.debug("catalog.skip_identifier", identifier=identifier)
                continue
            order, name = parsed
            catalog.register(order, name, resolve(identifier))
        return catalog

    def slots(self) -> list[ModuleSlot]:
        """All slots ordered by order number, ties broken by name."""
        return [self._slots[key] for key in sorted(self._slots)]

    def get(self, name: str) -> ModuleSlot | None:
        """First slot (lowest order) registered under ``name``."""
        for slot in self.slots():
            if slot.name == name:
                return slot
        return None

    def names(self) -> list[str]:
        return [slot.name for slot in self.slots()]

    def _add(self, slot: ModuleSlot) -> ModuleSlot:
        key = slot.sort_key()
        if key in self._slots:
            raise CatalogError(f"Module already registered: {slot.identifier}")
        self._slots[key] = slot
        return slot

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[ModuleSlot]:
        return iter(self.slots())

    def __contains__(self, name: object) -> bool:
        return any(slot.name == name for slot in self._slots.values())

    def __repr__(self) -> str:
        return f"ModuleCatalog(modules={len(self)})"


def catalog_from_provider(provider: ModuleProvider) -> ModuleCatalog:
    """Build a catalog from a :class:`ModuleProvider`."""
    return ModuleCatalog.from_listing(provider.identifiers(), provider.resolve)


__all__ = [
    "JUMP_THRESHOLD",
    "ModuleCatalog",
    "ModuleHandler",
    "ModuleProvider",
    "ModuleSlot",
    "catalog_from_provider",
    "parse_identifier",
]
