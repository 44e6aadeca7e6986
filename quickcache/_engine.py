"""
Cache engine — stale-while-revalidate orchestration.

Per call, decides between:
    fresh hit        → return cached data
    stale + serve    → return stale data, refresh in background
    stale, no serve  → wait for a fresh value
    miss             → start (or join) the single in-flight invocation,
                       or return the placeholder right away

Architecture:

    get_or_compute(key)
         │
         ▼
    EntryStore ──miss──► DiskStore.load
         │
         ├── fresh ─────────────────────────────► data
         ├── stale + serve_stale ──► InFlight ──► data (stale)
         └── miss / stale, no serve ──► InFlight ──► placeholder | await
                                           │
                                           ▼
                                   producer → EntryStore + TagIndex + DiskStore
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from kungfu import Error, Ok, Result

from quickcache._config import CacheConfig
from quickcache._disk import DiskStore
from quickcache._inflight import InFlight
from quickcache._policy import Policy
from quickcache._store import EntryStore, TagIndex
from quickcache._types import CacheEntry, CacheStats, Clock, Producer

logger = logging.getLogger(__name__)


class CacheEngine:
    """
    Owns every shared table: entries, tags, in-flight invocations, disk writes.

    Create one per process and inject it; tests create isolated instances.

    Example:
        engine = CacheEngine(CacheConfig().with_cache_dir("/tmp/app-cache"))
        result = await engine.get_or_compute(key, fetch_user, (uid,), policy)
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        clock: Clock = time.time,
    ) -> None:
        self.config = config if config is not None else CacheConfig()
        self._clock = clock
        self._entries = EntryStore()
        self._tags = TagIndex()
        self._in_flight = InFlight()
        self._disk = DiskStore(self.config, clock=clock)
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def disk(self) -> DiskStore:
        return self._disk

    @property
    def in_flight(self) -> InFlight:
        return self._in_flight

    # ═══════════════════════════════════════════════════════════════════════
    # get_or_compute() — Decision Procedure
    # ═══════════════════════════════════════════════════════════════════════

    async def get_or_compute[T, E](
        self,
        key: str,
        producer: Producer[T, E],
        args: tuple[Any, ...],
        policy: Policy,
    ) -> Result[T, E]:
        """
        Serve key from cache, refreshing or computing per policy.

        Only producer failures reach the caller (as Error); persistence
        problems are logged and absorbed.
        """
        entry = await self._entries.get(key)
        if entry is None and policy.persist:
            entry = await self._seed_from_disk(key)

        if entry is not None:
            if not entry.is_stale(self._clock()):
                logger.debug("Cache HIT: %s", key)
                return Ok(entry.data)

            if policy.serve_stale:
                logger.debug("Cache STALE (serving): %s", key)
                self._revalidate_in_background(key, producer, args, policy)
                return Ok(entry.data)

            # Bypassed for this call; replaced on success, kept on failure.
            logger.debug("Cache STALE (waiting): %s", key)
        else:
            logger.debug("Cache MISS: %s", key)

        flight = self._in_flight.begin(
            key, lambda: self._compute(key, producer, args, policy)
        )

        if policy.placeholder is not None:
            if flight.started:
                self._detach(key, flight.task, "Placeholder-backed fetch")
            return Ok(policy.placeholder(*args))

        return await asyncio.shield(flight.task)

    async def _seed_from_disk(self, key: str) -> CacheEntry[Any] | None:
        """Fresh disk entries are adopted; stale ones seed this call only."""
        loaded = await self._disk.load(key)
        if loaded is None:
            return None
        if not loaded.is_stale:
            await self._adopt(key, loaded.entry)
        return loaded.entry

    async def _adopt(self, key: str, entry: CacheEntry[Any]) -> None:
        await self._entries.set(key, entry)
        if entry.tags:
            await self._tags.index_all(entry.tags, key)

    # ═══════════════════════════════════════════════════════════════════════
    # Invocation
    # ═══════════════════════════════════════════════════════════════════════

    async def _compute[T, E](
        self,
        key: str,
        producer: Producer[T, E],
        args: tuple[Any, ...],
        policy: Policy,
    ) -> Result[T, E]:
        result = await producer(*args)
        match result:
            case Ok(value):
                entry = CacheEntry.fresh(
                    value, policy.revalidate_seconds, policy.tags, now=self._clock()
                )
                await self._adopt(key, entry)
                logger.debug("Cache SET: %s", key)
                if policy.persist:
                    # DiskStore logs write failures; memory stays authoritative.
                    self._disk.schedule(key, entry)
            case Error(e):
                logger.debug("Producer failed for %s: %r", key, e)
        return result

    def _revalidate_in_background[T, E](
        self,
        key: str,
        producer: Producer[T, E],
        args: tuple[Any, ...],
        policy: Policy,
    ) -> None:
        flight = self._in_flight.begin(
            key, lambda: self._compute(key, producer, args, policy)
        )
        if flight.started:
            self._detach(key, flight.task, "Background revalidation")

    # ═══════════════════════════════════════════════════════════════════════
    # Detached Work
    # ═══════════════════════════════════════════════════════════════════════

    def _detach(self, key: str, task: asyncio.Task[Any], what: str) -> None:
        """Track a task nobody awaits; report its failure."""
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        task.add_done_callback(lambda t: _report(what, key, t))

    async def drain(self) -> None:
        """Wait for background revalidations, detached fetches and disk writes."""
        while self._background:
            await asyncio.wait(list(self._background))
        await self._disk.wait_writes()

    # ═══════════════════════════════════════════════════════════════════════
    # revalidate_tag() — Bulk Staleness
    # ═══════════════════════════════════════════════════════════════════════

    async def revalidate_tag(self, tag: str) -> int:
        """
        Mark every entry under tag as stale, in memory and on disk.

        Does not refetch: the next read decides per its own policy.
        Returns number of entries marked; unknown tags mark nothing.
        """
        marked = 0
        for key in await self._tags.keys_for(tag):
            entry = await self._entries.get(key)
            # A queued write counts: the stale save must coalesce over it.
            on_disk = self._disk.pending(key) or await self._disk.contains(key)
            if entry is None and on_disk:
                loaded = await self._disk.load(key)
                entry = loaded.entry if loaded is not None else None
            if entry is None:
                continue

            stale = await self._entries.mark_stale(key, entry)
            if on_disk:
                await self._disk.save(key, stale)
            marked += 1

        logger.info("Cache REVALIDATE tag %r: %s entries", tag, marked)
        return marked

    # ═══════════════════════════════════════════════════════════════════════
    # clear_all() / stats()
    # ═══════════════════════════════════════════════════════════════════════

    async def clear_all(self) -> int:
        """
        Drop in-memory entries and tags, delete persisted files.

        Outstanding invocations are left running. Returns files removed.
        """
        await self._entries.clear()
        await self._tags.clear()
        await self._disk.wait_writes()
        cleared = await self._disk.clear()
        match cleared:
            case Ok(removed):
                return removed
            case Error(_):
                return 0

    async def stats(self) -> CacheStats:
        files, size = await self._disk.stats()
        return CacheStats(
            memory_entries=len(self._entries),
            disk_entries=files,
            disk_size_bytes=size,
        )


def _report(what: str, key: str, task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("%s raised for %s", what, key, exc_info=exc)
        return
    match task.result():
        case Error(e):
            logger.warning("%s failed for %s: %r", what, key, e)
        case _:
            pass


__all__ = ("CacheEngine",)
