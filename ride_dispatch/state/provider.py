"""Process-wide store selection."""

from ride_dispatch.config import get_settings
from ride_dispatch.state.memory import MemoryStore
from ride_dispatch.state.redis_store import RedisStore
from ride_dispatch.state.store import Store
from ride_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

# Global store instance
_store: Store | None = None


async def get_store() -> Store:
    """Get the global store instance for the configured backend."""
    global _store
    if _store is None:
        settings = get_settings()
        if settings.store_backend == "memory":
            _store = MemoryStore()
        else:
            redis_store = RedisStore()
            await redis_store.connect()
            _store = redis_store
        logger.info("store_initialized", backend=settings.store_backend)
    return _store


async def close_store() -> None:
    """Close and forget the global store."""
    global _store
    if _store is not None:
        await _store.close()
        _store = None
