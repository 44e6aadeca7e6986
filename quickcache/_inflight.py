"""
In-flight coordinator — one producer invocation per key.

Foreground misses and background revalidations share this registry, so a
refresh and a cold read for the same key can never run the producer twice.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Flight[R]:
    """
    Handle to an outstanding invocation.

    started: True only for the caller whose begin() created the task.
    """

    task: asyncio.Task[R]
    started: bool


class InFlight:
    """
    Key → running task registry.

    Example:
        flight = in_flight.begin(key, lambda: compute(key))
        result = await asyncio.shield(flight.task)
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, key: str) -> asyncio.Task[Any] | None:
        return self._tasks.get(key)

    def begin[R](self, key: str, call: Callable[[], Awaitable[R]]) -> Flight[R]:
        """
        Attach to the outstanding invocation for key, or start one.

        Registration happens before this method returns, i.e. before the
        task gets its first chance to run.
        """
        existing = self._tasks.get(key)
        if existing is not None:
            return Flight(task=existing, started=False)

        task = asyncio.create_task(self._run(key, call), name=f"quickcache:{key[:64]}")
        self._tasks[key] = task
        task.add_done_callback(lambda t: self._release(key, t))
        return Flight(task=task, started=True)

    async def _run[R](self, key: str, call: Callable[[], Awaitable[R]]) -> R:
        try:
            return await call()
        finally:
            # Only this task can be registered for key while it runs.
            self._tasks.pop(key, None)

    def _release(self, key: str, task: asyncio.Task[Any]) -> None:
        # Covers a task cancelled before its first step, when _run never executes.
        if self._tasks.get(key) is task:
            del self._tasks[key]

    def tasks(self) -> list[asyncio.Task[Any]]:
        return list(self._tasks.values())


__all__ = ("Flight", "InFlight")
