"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field

from kungfu import Result, Ok, Error


# Errors
@dataclass(frozen=True, slots=True)
class NotFound(Exception):
    entity: str
    id: int | str

    def __str__(self) -> str:
        return f"{self.entity}:{self.id} not found"


# Fake DB — slow, counts round-trips
@dataclass(slots=True)
class FakeDb:
    users: dict[int, dict[str, str]] = field(default_factory=lambda: {
        1: {"name": "Alice", "email": "alice@example.com", "tier": "gold"},
        2: {"name": "Bob", "email": "bob@example.com", "tier": "silver"},
    })
    queries: int = 0
    latency: float = 0.05

    async def get_user(self, user_id: int) -> Result[dict[str, str], NotFound]:
        self.queries += 1
        await asyncio.sleep(self.latency)
        user = self.users.get(user_id)
        return Ok(dict(user)) if user else Error(NotFound("User", user_id))


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
