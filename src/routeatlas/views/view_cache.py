"""Memo tables for derived views, bounded by wholesale clearing."""

from __future__ import annotations

import logging
from typing import Dict, Generic, Hashable, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

FLIGHTS = "flights"
AIRPORTS = "airports"
SERIES = "series"
CATEGORIES = (FLIGHTS, AIRPORTS, SERIES)


class BoundedCache(Generic[V]):
    """Dictionary that is emptied in one go once it grows past ``limit``.

    There is no per-entry eviction: :meth:`enforce_limit` either leaves the
    table untouched or clears all of it.
    """

    def __init__(self, name: str, limit: int = 30):
        if limit <= 0:
            raise ValueError("limit must be positive.")
        self.name = name
        self.limit = int(limit)
        self._entries: Dict[Hashable, V] = {}
        self.clears = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._entries)

    def get(self, key: Hashable) -> Optional[V]:
        return self._entries.get(key)

    def put(self, key: Hashable, value: V) -> V:
        self._entries[key] = value
        return value

    def enforce_limit(self) -> bool:
        if len(self._entries) <= self.limit:
            return False
        logger.debug("Clearing %s cache (%d entries > %d)", self.name, len(self._entries), self.limit)
        self._entries.clear()
        self.clears += 1
        return True

    def clear(self) -> None:
        self._entries.clear()


class ViewCacheRegistry:
    """One :class:`BoundedCache` per derived-view category."""

    def __init__(self, limit: int = 30):
        self._caches: Dict[str, BoundedCache] = {name: BoundedCache(name, limit) for name in CATEGORIES}

    def __getitem__(self, category: str) -> BoundedCache:
        return self._caches[category]

    def on_selection_change(self) -> None:
        """Apply the size policy to every category."""
        for cache in self._caches.values():
            cache.enforce_limit()

    def sizes(self) -> Dict[str, int]:
        return {name: len(cache) for name, cache in self._caches.items()}

    def clear(self) -> None:
        for cache in self._caches.values():
            cache.clear()
