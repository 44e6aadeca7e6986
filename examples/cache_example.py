"""
Cache — stale-while-revalidate with request dedup.

Key concepts:
- Engine = owns entries, tags, in-flight fetches (create once, inject)
- cached() = declarative builder (per-function, type-safe)
- Stale reads answer immediately; one background fetch refreshes the entry
"""

import asyncio
import tempfile

from kungfu import LazyCoroResult, Ok, Error
import quickcache as Q
from examples._infra import banner, run, NotFound, FakeDb


db = FakeDb()


# ═══════════════════════════════════════════════════════════════════════════════
# 1. ONE ENGINE PER PROCESS — create once, inject everywhere
# ═══════════════════════════════════════════════════════════════════════════════

engine = Q.CacheEngine(Q.CacheConfig().with_cache_dir(tempfile.mkdtemp()))


# ═══════════════════════════════════════════════════════════════════════════════
# 2. FETCH FUNCTION — returns LazyCoroResult
# ═══════════════════════════════════════════════════════════════════════════════


def fetch_user(uid: int) -> LazyCoroResult[dict[str, str], NotFound]:
    async def _fetch():
        print(f"  [ORIGIN] Fetching user {uid} from DB...")
        return await db.get_user(uid)

    return LazyCoroResult(_fetch)


# ═══════════════════════════════════════════════════════════════════════════════
# 3. CACHED = BUILDER — name is the identity in every key
# ═══════════════════════════════════════════════════════════════════════════════

users = (
    Q.cached("users.by_id", fetch_user)
    .policy(Q.Policy().with_revalidate(seconds=0.2).with_tags("users"))
    .engine(engine)
    .build()
)

# How it works:
# FRESH:  memory → return
# STALE:  memory → return stale, refresh once in background
# MISS:   one fetch, shared by every concurrent caller


def show(result: object) -> None:
    match result:
        case Ok(user):
            print(f"   → {user['name']} ({user['tier']})")
        case Error(e):
            print(f"   error: {e}")


async def main() -> None:
    banner("Cache: Stale-While-Revalidate")

    print("\n1. Ten concurrent cold requests (one DB query):")
    results = await asyncio.gather(*(users.get(1) for _ in range(10)))
    show(results[0])
    print(f"   queries so far: {db.queries}")

    print("\n2. Fresh hit:")
    show(await users.get(1))

    print("\n3. Data changes, entry goes stale: served stale, refreshed in background:")
    db.users[1]["tier"] = "platinum"
    await asyncio.sleep(0.25)
    show(await users.get(1))
    await engine.drain()
    show(await users.get(1))

    print("\n4. Tag invalidation, blocking read:")
    db.users[1]["tier"] = "diamond"
    await engine.revalidate_tag("users")
    strict = (
        Q.cached("users.by_id", fetch_user)
        .policy(users.policy.with_serve_stale(False))
        .engine(engine)
        .build()
    )
    show(await strict.get(1))

    print("\n5. Missing user:")
    show(await users.get(99))

    await engine.drain()
    stats = await engine.stats()
    print(f"\n   stats: {stats}")
    print(f"   total queries: {db.queries}")
    await engine.clear_all()

    print("\nDone!")


if __name__ == "__main__":
    run(main)
