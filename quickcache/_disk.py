"""Disk persistence for cache entries.

One file per key, named by the SHA-256 of the key. Writes go to a temp file
and are renamed into place. Concurrent saves for the same file coalesce:
at most one write is in progress and one is queued; a save arriving while
one is queued replaces the queued payload and shares its completion.

Read-side failures (missing file, I/O error, undecodable body) are misses.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os
from kungfu import Error, Ok, Result

from quickcache._codec import decode_entry, encode_entry
from quickcache._config import CacheConfig
from quickcache._types import CacheEntry, Clock, DiskError, DiskErrorKind, LoadResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _QueuedWrite:
    """Pending payload for one file; replaced while still queued."""

    entry: CacheEntry[Any]
    task: asyncio.Task[Result[None, DiskError]]


class DiskStore:
    """Async file-backed store of encoded cache entries.

    Owned by a CacheEngine; the coalescing tables are per instance.
    clock is the wall-clock source used for staleness on load.

    Example:
        disk = DiskStore(CacheConfig().with_cache_dir("/tmp/app-cache"))
        await disk.save(key, entry)
        loaded = await disk.load(key)   # LoadResult | None
    """

    def __init__(self, config: CacheConfig, clock: Clock = time.time) -> None:
        self.config = config
        self._clock = clock
        self._dir_ready = False
        self._queued: dict[Path, _QueuedWrite] = {}
        self._writing: dict[Path, asyncio.Task[Result[None, DiskError]]] = {}

    @property
    def directory(self) -> Path:
        return self.config.cache_dir

    def path_for(self, key: str) -> Path:
        """Deterministic file path for key."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{self.config.file_suffix}"

    async def _ensure_dir(self) -> None:
        if not self._dir_ready:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            self._dir_ready = True

    # ── read ────────────────────────────────────────────────────────────────

    async def contains(self, key: str) -> bool:
        return await aiofiles.os.path.exists(self.path_for(key))

    def pending(self, key: str) -> bool:
        """True while a write for key is queued or in progress."""
        path = self.path_for(key)
        return path in self._queued or path in self._writing

    async def load(self, key: str) -> LoadResult[Any] | None:
        """Read the entry for key with staleness computed now.

        Missing file, I/O error and decode failure all return None.
        """
        path = self.path_for(key)
        try:
            async with aiofiles.open(path, "rb") as f:
                raw = await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Disk cache read failed for %s: %s", path.name, e)
            return None

        try:
            entry = decode_entry(raw)
        except ValueError as e:
            logger.warning("Disk cache entry %s is unreadable: %s", path.name, e)
            return None

        return LoadResult(entry=entry, is_stale=entry.is_stale(self._clock()))

    # ── write ───────────────────────────────────────────────────────────────

    def schedule(self, key: str, entry: CacheEntry[Any]) -> asyncio.Task[Result[None, DiskError]]:
        """
        Queue entry for key without waiting on the write.

        Returns the write task, shared with any save already queued for the
        same file. Registration happens before this method returns, so
        pending(key) is True right away.
        """
        path = self.path_for(key)
        queued = self._queued.get(path)
        if queued is not None:
            queued.entry = entry
            logger.debug("Disk write coalesced: %s", path.name)
            return queued.task

        task = asyncio.create_task(self._flush(path))
        self._queued[path] = _QueuedWrite(entry=entry, task=task)
        return task

    async def save(self, key: str, entry: CacheEntry[Any]) -> Result[None, DiskError]:
        """Persist entry for key; Ok(None) once the (possibly shared) write landed."""
        return await asyncio.shield(self.schedule(key, entry))

    async def _flush(self, path: Path) -> Result[None, DiskError]:
        previous = self._writing.get(path)
        if previous is not None:
            await asyncio.wait([previous])

        # Payload is frozen from here on; later saves queue a new write.
        queued = self._queued.pop(path)
        self._writing[path] = queued.task
        try:
            return await self._write(path, queued.entry)
        finally:
            if self._writing.get(path) is queued.task:
                del self._writing[path]

    async def _write(self, path: Path, entry: CacheEntry[Any]) -> Result[None, DiskError]:
        try:
            body = encode_entry(entry)
        except (TypeError, ValueError) as e:
            logger.warning("Disk cache encode failed for %s: %s", path.name, e)
            return Error(DiskError(DiskErrorKind.ENCODE, str(e), e))

        tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await self._ensure_dir()
            async with aiofiles.open(tmp, "wb") as f:
                await f.write(body)
            await aiofiles.os.replace(tmp, path)
        except OSError as e:
            logger.warning("Disk cache write failed for %s: %s", path.name, e)
            self._dir_ready = False
            try:
                await aiofiles.os.remove(tmp)
            except OSError:
                pass
            return Error(DiskError(DiskErrorKind.WRITE, str(e), e))

        logger.debug("Disk cache SET: %s (%s bytes)", path.name, len(body))
        return Ok(None)

    async def wait_writes(self) -> None:
        """Wait until every queued and in-progress write has finished."""
        while self._queued or self._writing:
            pending = [q.task for q in self._queued.values()]
            pending.extend(self._writing.values())
            await asyncio.wait(pending)

    # ── maintenance ─────────────────────────────────────────────────────────

    async def _entry_files(self) -> list[Path]:
        names = await aiofiles.os.listdir(self.directory)
        suffix = self.config.file_suffix
        return [self.directory / n for n in names if n.endswith(suffix)]

    async def clear(self) -> Result[int, DiskError]:
        """Delete every persisted entry file. Returns count removed."""
        try:
            files = await self._entry_files()
        except FileNotFoundError:
            return Ok(0)
        except OSError as e:
            logger.warning("Disk cache clear failed: %s", e)
            return Error(DiskError(DiskErrorKind.CLEAR, str(e), e))

        removed = 0
        for file in files:
            try:
                await aiofiles.os.remove(file)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Disk cache clear could not remove %s: %s", file.name, e)
        logger.info("Disk cache CLEARED: %s files", removed)
        return Ok(removed)

    async def stats(self) -> tuple[int, int]:
        """(file count, total bytes). Zeros when the directory is unreadable."""
        try:
            files = await self._entry_files()
        except OSError:
            return 0, 0

        total = 0
        for file in files:
            try:
                total += (await aiofiles.os.stat(file)).st_size
            except OSError:
                continue
        return len(files), total


__all__ = ("DiskStore",)
