"""
quickcache — stale-while-revalidate memoization for async producers.

    import quickcache as Q

    engine = Q.CacheEngine()

    users = (
        Q.cached("users.by_id", fetch_user)
        .policy(Q.Policy().with_revalidate(seconds=60).with_tags("users"))
        .engine(engine)
        .build()
    )

    result = await users.get(user_id)   # Result[User, E]
    await engine.revalidate_tag("users")
"""

from __future__ import annotations

from quickcache._types import (
    Producer,
    Placeholder,
    CacheEntry,
    LoadResult,
    CacheStats,
    DiskError,
    DiskErrorKind,
)
from quickcache._policy import Policy
from quickcache._config import CacheConfig
from quickcache._keys import derive_key
from quickcache._store import EntryStore, TagIndex
from quickcache._disk import DiskStore
from quickcache._inflight import Flight, InFlight
from quickcache._engine import CacheEngine
from quickcache._builder import cached, Cached, CachedExecutor

__version__ = "0.1.0"

__all__ = (
    # Types
    "Producer",
    "Placeholder",
    "CacheEntry",
    "LoadResult",
    "CacheStats",
    "DiskError",
    "DiskErrorKind",
    # Configuration
    "Policy",
    "CacheConfig",
    # Components
    "derive_key",
    "EntryStore",
    "TagIndex",
    "DiskStore",
    "Flight",
    "InFlight",
    # Engine & API
    "CacheEngine",
    "cached",
    "Cached",
    "CachedExecutor",
)
