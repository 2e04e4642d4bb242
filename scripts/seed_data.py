"""Seed a driver pool and a sample booking."""

import asyncio

from ride_dispatch.models.driver import Driver
from ride_dispatch.services.broadcaster import DispatchBroadcaster
from ride_dispatch.state.redis_store import RedisStore


async def seed_drivers(store: RedisStore) -> list[Driver]:
    """Seed driver pool."""
    print("Seeding drivers...")

    drivers = [
        Driver(
            name="John Smith",
            email="john.smith@example.com",
            phone="+1234567890",
            location={"lat": 40.7128, "lng": -74.0060},
        ),
        Driver(
            name="Maria Garcia",
            email="maria.garcia@example.com",
            phone="+1234567891",
            location={"lat": 40.7200, "lng": -74.0100},
        ),
        Driver(
            name="Ahmed Khan",
            email="ahmed.khan@example.com",
            phone="+1234567892",
            location={"lat": 40.7100, "lng": -74.0050},
        ),
    ]

    for driver in drivers:
        await store.insert_driver(driver)
        print(f"  ✓ Added {driver.name} ({driver.id})")

    print("✓ Drivers seeded successfully\n")
    return drivers


async def seed_booking(store: RedisStore) -> None:
    """Create one booking broadcast to the seeded drivers."""
    print("Seeding a sample booking...")

    broadcaster = DispatchBroadcaster(store)
    booking = await broadcaster.create_booking(
        user="sample-user",
        location={"pickup": "123 Main St, New York, NY 10001"},
    )
    print(f"  ✓ Booking {booking.id} broadcast to {len(booking.broadcast_list)} drivers")
    print("✓ Booking seeded successfully\n")


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding Ride Dispatch Data")
    print("=" * 50 + "\n")

    store = RedisStore()
    await store.connect()

    await seed_drivers(store)
    await seed_booking(store)

    await store.disconnect()

    print("=" * 50)
    print("  ✓ All data seeded successfully!")
    print("=" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
