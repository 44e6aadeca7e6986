"""
Cache types — entries, load results, errors.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from enum import Enum, auto

from kungfu import LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Producer / Placeholder Contracts
# ═══════════════════════════════════════════════════════════════════════════════

type Producer[T, E] = Callable[..., LazyCoroResult[T, E]]
"""Fetch function: called with the call arguments, returns a lazy result."""

type Placeholder[T] = Callable[..., T]
"""Synchronous stand-in value, returned when the caller must not wait."""

type Clock = Callable[[], float]


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Entry — Stored State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheEntry[T]:
    """
    A stored cache entry.

    expiry: wall-clock seconds; math.inf means "never expires".
    revalidate: seconds-to-live used for the next expiry, None = never revalidate.

    Note: Immutable; the store replaces entries whole.
    """

    data: T
    expiry: float
    revalidate: float | None
    tags: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def fresh(
        cls,
        data: T,
        revalidate: float | None,
        tags: Iterable[str] = (),
        *,
        now: float | None = None,
    ) -> CacheEntry[T]:
        """Build an entry whose expiry is derived from the revalidate window."""
        if revalidate is None:
            expiry = math.inf
        else:
            expiry = (time.time() if now is None else now) + revalidate
        return cls(data=data, expiry=expiry, revalidate=revalidate, tags=frozenset(tags))

    def is_stale(self, now: float | None = None) -> bool:
        """Stale once the expiry instant has been reached."""
        return (time.time() if now is None else now) >= self.expiry

    def expired(self) -> CacheEntry[T]:
        """Same entry, expiry moved into the past."""
        return replace(self, expiry=0.0)


# ═══════════════════════════════════════════════════════════════════════════════
# Disk Load Result / Stats
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class LoadResult[T]:
    """Entry read back from disk, with staleness computed at load time."""

    entry: CacheEntry[T]
    is_stale: bool


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of memory and disk usage."""

    memory_entries: int
    disk_entries: int
    disk_size_bytes: int


# ═══════════════════════════════════════════════════════════════════════════════
# Disk Errors
# ═══════════════════════════════════════════════════════════════════════════════


class DiskErrorKind(Enum):
    """Disk persistence error kinds."""

    READ = auto()
    WRITE = auto()
    DECODE = auto()
    ENCODE = auto()
    CLEAR = auto()


@dataclass(frozen=True, slots=True)
class DiskError:
    """
    Disk persistence error.

    Note: Never reaches callers of get_or_compute; logged and absorbed.
    """

    kind: DiskErrorKind
    message: str
    cause: Exception | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Producer",
    "Placeholder",
    "Clock",
    "CacheEntry",
    "LoadResult",
    "CacheStats",
    "DiskErrorKind",
    "DiskError",
)
