"""
In-memory tables — entry store and tag index.

Both are owned by a CacheEngine instance; nothing here is module-global.
"""

from __future__ import annotations

import asyncio
from typing import Any

from quickcache._types import CacheEntry

# ═══════════════════════════════════════════════════════════════════════════════
# Entry Store
# ═══════════════════════════════════════════════════════════════════════════════


class EntryStore:
    """
    Key → CacheEntry mapping. Single source of truth for current data.

    Note: Entries are frozen and replaced whole, so a reader never sees a
    half-written entry. mark_stale is the only read-modify-write path and
    runs under the lock.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> CacheEntry[Any] | None:
        async with self._lock:
            return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry[Any]) -> None:
        async with self._lock:
            self._entries[key] = entry

    async def mark_stale(
        self, key: str, fallback: CacheEntry[Any]
    ) -> CacheEntry[Any]:
        """
        Move the entry's expiry into the past.

        Uses the current entry if one is stored, otherwise fallback
        (an entry resolved from disk). Returns the stored stale entry.
        """
        async with self._lock:
            current = self._entries.get(key, fallback)
            stale = current.expired()
            self._entries[key] = stale
            return stale

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()


# ═══════════════════════════════════════════════════════════════════════════════
# Tag Index
# ═══════════════════════════════════════════════════════════════════════════════


class TagIndex:
    """
    Tag → set of keys.

    Keys are never pruned: invalidation marks staleness, it does not delete.
    """

    def __init__(self) -> None:
        self._keys: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    async def index(self, tag: str, key: str) -> None:
        async with self._lock:
            self._keys.setdefault(tag, set()).add(key)

    async def index_all(self, tags: frozenset[str], key: str) -> None:
        async with self._lock:
            for tag in tags:
                self._keys.setdefault(tag, set()).add(key)

    async def keys_for(self, tag: str) -> frozenset[str]:
        """Snapshot of keys under tag; empty for unknown tags."""
        async with self._lock:
            return frozenset(self._keys.get(tag, ()))

    async def clear(self) -> None:
        async with self._lock:
            self._keys.clear()


__all__ = ("EntryStore", "TagIndex")
