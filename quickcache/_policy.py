"""
Cache policy — per-function behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any

from quickcache._types import Placeholder

# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Cache policy configuration.

    Fluent builder pattern: chain methods to configure.

    Example:
        policy = (
            Policy()
            .with_revalidate(seconds=60)
            .with_tags("users")
            .with_serve_stale(True)
            .with_placeholder(lambda uid: User.anonymous(uid))
        )

    Note: Immutable, each method returns new Policy.
    Defaults: never revalidate, no tags, serve stale, no placeholder, persist to disk.
    """

    revalidate: timedelta | None = None
    tags: frozenset[str] = frozenset()
    serve_stale: bool = True
    placeholder: Placeholder[Any] | None = None
    persist: bool = True

    @property
    def revalidate_seconds(self) -> float | None:
        """Revalidate window in seconds, None when revalidation is disabled."""
        if self.revalidate is None:
            return None
        return self.revalidate.total_seconds()

    def with_revalidate(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        hours: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Set the freshness window.

        After the window, the next read treats the entry as stale.

        Example:
            .with_revalidate(seconds=60)
            .with_revalidate(hours=1)
            .with_revalidate(delta=timedelta(days=1))
        """
        if delta is not None:
            window = delta
        else:
            window = timedelta(
                seconds=(seconds or 0) + (minutes or 0) * 60 + (hours or 0) * 3600
            )
        if window.total_seconds() < 0:
            raise ValueError("revalidate window must not be negative")
        return replace(self, revalidate=window)

    def never_revalidate(self) -> Policy:
        """Entries never expire by time (tag invalidation still applies)."""
        return replace(self, revalidate=None)

    def with_tags(self, *tags: str) -> Policy:
        """
        Add tags for bulk invalidation.

        Example:
            .with_tags("users", "profiles")
        """
        return replace(self, tags=self.tags | frozenset(tags))

    def with_serve_stale(self, serve: bool = True) -> Policy:
        """
        Whether stale data is returned while revalidating.

        If False, a stale read waits for a fresh value.
        """
        return replace(self, serve_stale=serve)

    def with_placeholder(self, fn: Placeholder[Any] | None) -> Policy:
        """
        Set a synchronous placeholder returned instead of waiting on a producer.

        Example:
            .with_placeholder(lambda uid: [])
        """
        return replace(self, placeholder=fn)

    def with_persist(self, persist: bool = True) -> Policy:
        """Whether entries are written to and read from disk."""
        return replace(self, persist=persist)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Policy",)
