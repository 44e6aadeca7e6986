"""Pytest fixtures for quickcache.

Every test gets its own engine over a tmp_path cache directory and a fake
clock, so nothing is shared between tests and time only moves on demand.
"""

import pytest

from quickcache import CacheConfig, CacheEngine, Policy
from tests.support import FakeClock, Source


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path) -> CacheConfig:
    return CacheConfig().with_cache_dir(tmp_path / "cache")


@pytest.fixture
async def engine(config: CacheConfig, clock: FakeClock) -> CacheEngine:
    """Isolated engine; background work is drained after the test."""
    eng = CacheEngine(config, clock=clock)
    yield eng
    await eng.drain()


@pytest.fixture
def source() -> Source:
    return Source()


@pytest.fixture
def memory_policy() -> Policy:
    """Policy without disk persistence."""
    return Policy().with_persist(False)
