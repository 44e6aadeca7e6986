"""
Cache builder — fluent API.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from kungfu import LazyCoroResult, Result

from quickcache._engine import CacheEngine
from quickcache._keys import derive_key
from quickcache._policy import Policy
from quickcache._types import Producer

# ═══════════════════════════════════════════════════════════════════════════════
# Cached Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Cached[T, E]:
    """
    Fluent cached-function builder.

    Type parameters:
        T: Value type
        E: Error type from fetch

    Example:
        users = (
            Q.cached("users.by_id", fetch_user)
            .key_parts("v2")
            .policy(Q.Policy().with_revalidate(seconds=60).with_tags("users"))
            .engine(engine)
            .build()
        )
    """

    _name: str
    _fetch: Producer[T, E]
    _key_parts: tuple[str, ...]
    _policy: Policy
    _engine: CacheEngine | None

    def key_parts(self, *parts: str) -> Cached[T, E]:
        """Add key parts (e.g. a schema version) to every key."""
        return replace(self, _key_parts=(*self._key_parts, *parts))

    def policy(self, p: Policy) -> Cached[T, E]:
        """Set cache policy."""
        return replace(self, _policy=p)

    def engine(self, e: CacheEngine) -> Cached[T, E]:
        """Set the engine that owns storage and in-flight state."""
        return replace(self, _engine=e)

    def build(self) -> CachedExecutor[T, E]:
        """Build executable cached function."""
        if self._engine is None:
            raise ValueError("engine() is required")

        return CachedExecutor(
            name=self._name,
            fetch=self._fetch,
            key_parts=self._key_parts,
            policy=self._policy,
            engine=self._engine,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Cached Executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class CachedExecutor[T, E]:
    """Compiled cached function."""

    name: str
    fetch: Producer[T, E]
    key_parts: tuple[str, ...]
    policy: Policy
    engine: CacheEngine

    def key(self, *args: Any) -> str:
        """Cache key for these arguments."""
        return derive_key(self.name, self.key_parts, args)

    def get(self, *args: Any) -> LazyCoroResult[T, E]:
        """
        Get value for arguments.

        Fresh → cached. Stale → cached now, refreshed in background
        (or awaited with serve_stale=False). Miss → fetched once, shared
        by every concurrent caller.
        """
        cache_key = self.key(*args)
        engine = self.engine
        fetch = self.fetch
        policy = self.policy

        async def execute() -> Result[T, E]:
            return await engine.get_or_compute(cache_key, fetch, args, policy)

        return LazyCoroResult(execute)

    async def revalidate_tag(self, tag: str) -> int:
        """Mark all entries under tag as stale."""
        return await self.engine.revalidate_tag(tag)


# ═══════════════════════════════════════════════════════════════════════════════
# cached() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def cached[T, E](
    name: str,
    fetch: Producer[T, E],
) -> Cached[T, E]:
    """
    Create cached-function builder.

    name is the function's identity in every key. Keep it stable across
    deploys and unique per cached function.

    Example:
        import quickcache as Q

        def fetch_user(uid: int) -> LazyCoroResult[User, NotFound]:
            ...

        users = Q.cached("users.by_id", fetch_user).engine(engine).build()
        result = await users.get(42)
    """
    return Cached(
        _name=name,
        _fetch=fetch,
        _key_parts=(),
        _policy=Policy(),
        _engine=None,
    )


__all__ = ("Cached", "CachedExecutor", "cached")
