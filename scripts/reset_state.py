"""Reset all dispatch state in Redis (useful for testing)."""

import asyncio

from ride_dispatch.state.redis_store import RedisStore


async def reset_all_state() -> None:
    """Clear all drivers, bookings and indexes from Redis."""
    print("\n⚠️  WARNING: This will delete ALL data from the configured Redis database!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    store = RedisStore()
    await store.connect()
    await store.flush()
    await store.disconnect()

    print("✓ All state cleared from Redis\n")


if __name__ == "__main__":
    asyncio.run(reset_all_state())
