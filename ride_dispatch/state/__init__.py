"""State management modules."""

from ride_dispatch.state.memory import MemoryStore
from ride_dispatch.state.provider import close_store, get_store
from ride_dispatch.state.redis_store import RedisStore
from ride_dispatch.state.store import BOOKINGS, DRIVERS, GuardedWrite, Store

__all__ = [
    "BOOKINGS",
    "DRIVERS",
    "GuardedWrite",
    "MemoryStore",
    "RedisStore",
    "Store",
    "close_store",
    "get_store",
]
