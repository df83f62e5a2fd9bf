import asyncio
import os
import random
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics.core.database import DatabaseManager
from analytics.generator import SyntheticGenerator
from cache.core import Cache

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def generator(clock):
    """Seeded generator so test records are reproducible."""
    return SyntheticGenerator(rng=random.Random(42), clock=clock)


@pytest.fixture
def read_cache(clock):
    return Cache(default_ttl=30, max_size=100, clock=clock)


@pytest.fixture
def store(tmp_path, clock):
    """Store on a temporary SQLite file; tables are created by run_with_store."""
    return DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", clock=clock)


@pytest.fixture
def run_with_store(store):
    """Run an async scenario against an initialized store on a fresh event loop."""
    def run(scenario):
        async def wrapper():
            await store.init()
            try:
                return await scenario(store)
            finally:
                await store.close()
        return asyncio.run(wrapper())
    return run
