"""Bounded metadata caches for cross-turn continuation state.

Backends issue opaque data (signed reasoning markers, pending reasoning
text, response ids) that must be replayed on a later turn, but the host
keeps none of it. Each concern gets its own named :class:`MetadataCache`
inside a :class:`CacheRegistry`, so namespaces never collide.

Persistence is opt-in per namespace. The registry is a plain object with
an explicit lifecycle::

    registry = CacheRegistry()
    await registry.initialize(JsonFileStorage("cache.json"))
    ...
    await registry.persist_all()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from modelmux.core.cache.storage import CacheStorage

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000

CACHE_STORAGE_PREFIX = "modelmux.cache."
CACHE_INDEX_KEY = "modelmux.cache.__index__"


class MetadataCache:
    """Insertion-ordered key/value store with FIFO eviction.

    Once ``max_size`` entries are held, inserting a new key evicts the
    oldest one. Overwriting an existing key keeps its position.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            msg = "max_size must be at least 1"
            raise ValueError(msg)
        self.max_size = max_size
        self._entries: dict[str, Any] = {}
        self._dirty = False

    def get(self, key: str) -> Any | None:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("MetadataCache: evicted %r", oldest)
        self._entries[key] = value
        self._dirty = True

    def resize(self, max_size: int) -> None:
        """Change the bound, evicting the oldest entries that no longer fit."""
        if max_size < 1:
            msg = "max_size must be at least 1"
            raise ValueError(msg)
        self.max_size = max_size
        while len(self._entries) > max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self._dirty = True
            logger.debug("MetadataCache: evicted %r after resize", oldest)

    def has(self, key: str) -> bool:
        return key in self._entries

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns ``True`` if it was present."""
        if key not in self._entries:
            return False
        del self._entries[key]
        self._dirty = True
        return True

    def pop(self, key: str) -> Any | None:
        """Read and delete in one step, for single-use entries."""
        value = self._entries.get(key)
        self.delete(key)
        return value

    def clear(self) -> None:
        if self._entries:
            self._dirty = True
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # -- persistence bookkeeping -------------------------------------------

    def is_dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    def to_serialized(self) -> dict[str, Any]:
        return {"entries": [[k, v] for k, v in self._entries.items()]}

    def load_from_serialized(self, data: Any) -> None:
        """Replace the contents from :meth:`to_serialized` output.

        Malformed entries are skipped and loading stops at capacity.
        """
        self._entries.clear()
        entries: Any = data.get("entries") if isinstance(data, dict) else None
        if isinstance(entries, list):
            for item in entries:  # pyright: ignore[reportUnknownVariableType]
                if len(self._entries) >= self.max_size:
                    break
                if isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str):  # pyright: ignore[reportUnknownArgumentType]
                    self._entries[item[0]] = item[1]
            logger.info("MetadataCache: loaded %d entries from storage", len(self._entries))
        self._dirty = False


class CacheRegistry:
    """Named :class:`MetadataCache` instances with optional persistence.

    Without :meth:`initialize` the registry is memory-only.
    """

    def __init__(self) -> None:
        self._caches: dict[str, MetadataCache] = {}
        self._storage: CacheStorage | None = None
        self._persistent: set[str] = set()

    def get_cache(self, name: str, max_size: int | None = None) -> MetadataCache:
        """Return the named cache, creating it if needed.

        An explicit ``max_size`` also applies to an existing cache, so a
        namespace restored from storage picks up its owner's bound.
        """
        cache = self._caches.get(name)
        if cache is None:
            cache = MetadataCache(DEFAULT_MAX_SIZE if max_size is None else max_size)
            self._caches[name] = cache
        elif max_size is not None and max_size != cache.max_size:
            cache.resize(max_size)
        return cache

    def names(self) -> list[str]:
        return list(self._caches)

    @property
    def persistent_names(self) -> list[str]:
        return sorted(self._persistent)

    def is_persistence_enabled(self) -> bool:
        return self._storage is not None

    def mark_for_persistence(self, name: str) -> None:
        self._persistent.add(name)
        logger.debug("CacheRegistry: marked %r for persistence", name)

    async def initialize(
        self,
        storage: CacheStorage,
        default_names: tuple[str, ...] = ("toolCallMetadata",),
    ) -> None:
        """Attach storage and restore every previously persisted namespace.

        The index of persisted names is read first so dynamically created
        namespaces come back too. A storage failure leaves the registry
        memory-only.
        """
        try:
            index: Any = await storage.load(CACHE_INDEX_KEY)
        except (OSError, ValueError) as exc:
            logger.warning("CacheRegistry: cannot read cache index, running memory-only: %s", exc)
            self._storage = None
            return

        self._storage = storage
        persisted = [n for n in index if isinstance(n, str)] if isinstance(index, list) else []  # pyright: ignore[reportUnknownVariableType]
        self._persistent.update(default_names)
        self._persistent.update(persisted)
        logger.info("CacheRegistry: persistence enabled for %s", ", ".join(sorted(self._persistent)))

        for name in sorted(self._persistent):
            await self._restore(name)

    async def _restore(self, name: str) -> None:
        assert self._storage is not None
        try:
            data = await self._storage.load(CACHE_STORAGE_PREFIX + name)
        except (OSError, ValueError) as exc:
            logger.warning("CacheRegistry: failed to restore %r: %s", name, exc)
            return
        if data is not None:
            self.get_cache(name).load_from_serialized(data)
            logger.debug("CacheRegistry: restored %r", name)

    async def persist_cache(self, name: str) -> bool:
        """Flush one namespace if it is persistent and dirty.

        Returns ``True`` when something was written.
        """
        if self._storage is None:
            logger.debug("CacheRegistry: no storage configured, skipping %r", name)
            return False
        if name not in self._persistent:
            logger.debug("CacheRegistry: %r is not marked for persistence", name)
            return False
        cache = self._caches.get(name)
        if cache is None or not cache.is_dirty():
            return False

        try:
            await self._storage.save(CACHE_STORAGE_PREFIX + name, cache.to_serialized())
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("CacheRegistry: failed to persist %r, keeping it in memory: %s", name, exc)
            return False
        cache.mark_clean()
        logger.info("CacheRegistry: persisted %r with %d entries", name, cache.size())
        return True

    async def persist_all(self) -> None:
        """Write the namespace index, then every dirty persistent cache."""
        if self._storage is None:
            logger.debug("CacheRegistry: no storage configured, skipping persist_all")
            return
        try:
            await self._storage.save(CACHE_INDEX_KEY, sorted(self._persistent))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("CacheRegistry: failed to write cache index: %s", exc)
            return
        for name in sorted(self._persistent):
            await self.persist_cache(name)
        logger.info("CacheRegistry: persisted all caches")

    def clear_cache(self, name: str) -> None:
        cache = self._caches.get(name)
        if cache is not None:
            cache.clear()

    def clear_all(self) -> None:
        for cache in self._caches.values():
            cache.clear()

    def snapshot(self) -> dict[str, list[list[Any]]]:
        """Return every namespace's entries, for inspection."""
        return {name: cache.to_serialized()["entries"] for name, cache in self._caches.items()}

