"""Pytest configuration and fixtures."""

import os
from datetime import timedelta
from typing import AsyncGenerator, Awaitable, Callable

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("SWEEPER_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import RedisError

from ride_dispatch.main import app
from ride_dispatch.models.driver import Driver
from ride_dispatch.services.broadcaster import DispatchBroadcaster
from ride_dispatch.services.resolver import AcceptanceResolver
from ride_dispatch.services.sweeper import RideSweeper
from ride_dispatch.state.memory import MemoryStore
from ride_dispatch.state.provider import get_store
from ride_dispatch.state.redis_store import RedisStore

RIDE_DURATION = timedelta(minutes=5)
TEST_REDIS_URL = os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def store() -> MemoryStore:
    """Create an empty in-memory store."""
    return MemoryStore()


@pytest_asyncio.fixture
async def redis_store() -> AsyncGenerator[RedisStore, None]:
    """Create a store on a scratch Redis database, skipping without a server."""
    redis_store = RedisStore(redis_url=TEST_REDIS_URL)
    await redis_store.connect()
    try:
        await redis_store.redis_client.ping()
    except (RedisError, OSError):
        await redis_store.disconnect()
        pytest.skip(f"Redis not reachable at {TEST_REDIS_URL}")

    await redis_store.flush()
    yield redis_store
    await redis_store.flush()
    await redis_store.disconnect()


@pytest.fixture
def broadcaster(store: MemoryStore) -> DispatchBroadcaster:
    """Create a broadcaster over the memory store."""
    return DispatchBroadcaster(store)


@pytest.fixture
def resolver(store: MemoryStore) -> AcceptanceResolver:
    """Create an acceptance resolver over the memory store."""
    return AcceptanceResolver(store)


@pytest.fixture
def sweeper(store: MemoryStore) -> RideSweeper:
    """Create a sweeper with a five minute ride duration."""
    return RideSweeper(store, ride_duration=RIDE_DURATION, interval_seconds=0.01)


@pytest.fixture
def add_driver(store: MemoryStore) -> Callable[..., Awaitable[Driver]]:
    """Factory that registers a driver in the memory store."""

    async def _add_driver(name: str = "Test Driver", **fields) -> Driver:
        driver = Driver(name=name, **fields)
        return await store.insert_driver(driver)

    return _add_driver


@pytest_asyncio.fixture
async def test_client(store: MemoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the memory store."""
    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
