"""Tests for EntryStore and TagIndex."""

import math

from quickcache import CacheEntry, EntryStore, TagIndex


def _entry(data: str) -> CacheEntry:
    return CacheEntry.fresh(data, revalidate=60, now=1000.0)


class TestEntryStore:
    """Entries are replaced whole; mark_stale is per-key and atomic."""

    async def test_get_set_clear(self) -> None:
        store = EntryStore()
        assert await store.get("k") is None

        await store.set("k", _entry("a"))
        await store.set("k", _entry("b"))
        assert (await store.get("k")).data == "b"
        assert len(store) == 1

        await store.clear()
        assert await store.get("k") is None
        assert len(store) == 0

    async def test_mark_stale_keeps_data(self) -> None:
        store = EntryStore()
        await store.set("k", _entry("a"))

        stale = await store.mark_stale("k", _entry("ignored"))

        assert stale.data == "a"
        assert stale.is_stale(now=1.0)
        assert await store.get("k") == stale

    async def test_mark_stale_adopts_fallback(self) -> None:
        store = EntryStore()
        fallback = CacheEntry.fresh("from-disk", revalidate=None)
        assert fallback.expiry == math.inf

        stale = await store.mark_stale("k", fallback)

        assert stale.data == "from-disk"
        assert stale.revalidate is None
        assert (await store.get("k")).is_stale(now=0.0)


class TestTagIndex:
    """Tags accumulate keys; unknown tags are empty."""

    async def test_index_is_idempotent(self) -> None:
        tags = TagIndex()
        await tags.index("users", "k1")
        await tags.index("users", "k1")
        await tags.index_all(frozenset({"users", "admins"}), "k2")

        assert await tags.keys_for("users") == frozenset({"k1", "k2"})
        assert await tags.keys_for("admins") == frozenset({"k2"})

    async def test_unknown_tag(self) -> None:
        assert await TagIndex().keys_for("nope") == frozenset()

    async def test_snapshot_is_detached(self) -> None:
        tags = TagIndex()
        await tags.index("users", "k1")
        snapshot = await tags.keys_for("users")
        await tags.index("users", "k2")
        assert snapshot == frozenset({"k1"})
