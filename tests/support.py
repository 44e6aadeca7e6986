"""Test doubles: controllable clock and a counting, gateable producer."""

from __future__ import annotations

import asyncio
from typing import Any

from kungfu import Error, LazyCoroResult, Ok, Result


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Source:
    """Producer that records calls and can be held open, fail, or raise."""

    def __init__(self, value: Any = "v1") -> None:
        self.value = value
        self.error: Any = None
        self.exception: Exception | None = None
        self.calls: list[tuple[Any, ...]] = []
        self._gate = asyncio.Event()
        self._gate.set()

    def hold(self) -> None:
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    def __call__(self, *args: Any) -> LazyCoroResult[Any, Any]:
        async def run() -> Result[Any, Any]:
            self.calls.append(args)
            await self._gate.wait()
            if self.exception is not None:
                raise self.exception
            if self.error is not None:
                return Error(self.error)
            return Ok(self.value)

        return LazyCoroResult(run)


def ok(result: Result[Any, Any]) -> Any:
    match result:
        case Ok(value):
            return value
        case _:
            raise AssertionError(f"expected Ok, got {result!r}")


def err(result: Result[Any, Any]) -> Any:
    match result:
        case Error(e):
            return e
        case _:
            raise AssertionError(f"expected Error, got {result!r}")


async def settle(rounds: int = 5) -> None:
    """Let freshly created tasks reach their first suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)
