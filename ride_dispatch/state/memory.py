"""In-process store for local development and tests."""

import asyncio
import copy
from datetime import datetime
from typing import Any

from ride_dispatch.models.booking import Booking
from ride_dispatch.models.driver import Driver
from ride_dispatch.state.store import BOOKINGS, DRIVERS, GuardedWrite, Store, apply_writes, is_stale
from ride_dispatch.utils.logging import get_logger

logger = get_logger(__name__)


class MemoryStore(Store):
    """Store backed by dictionaries, serialized by a single lock on commit."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {
            DRIVERS: {},
            BOOKINGS: {},
        }
        self._lock = asyncio.Lock()

    async def _yield(self) -> None:
        # Every store call is a suspension point, as it would be over a network.
        await asyncio.sleep(0)

    async def insert_driver(self, driver: Driver) -> Driver:
        await self._yield()
        async with self._lock:
            self._collections[DRIVERS][driver.id] = driver.model_dump(mode="json")
        logger.debug("driver_inserted", driver_id=driver.id)
        return driver

    async def insert_booking(self, booking: Booking) -> Booking:
        await self._yield()
        async with self._lock:
            self._collections[BOOKINGS][booking.id] = booking.model_dump(mode="json")
        logger.debug("booking_inserted", booking_id=booking.id)
        return booking

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        await self._yield()
        record = self._collections[collection].get(record_id)
        return copy.deepcopy(record) if record else None

    async def list_driver_ids(self) -> list[str]:
        await self._yield()
        return list(self._collections[DRIVERS])

    async def find_bookings_broadcast_to(self, driver_id: str) -> list[Booking]:
        await self._yield()
        return [
            Booking(**record)
            for record in self._collections[BOOKINGS].values()
            if driver_id in record["broadcast_list"]
        ]

    async def find_stale_drivers(self, cutoff: datetime) -> list[Driver]:
        await self._yield()
        return [
            Driver(**record)
            for record in self._collections[DRIVERS].values()
            if is_stale(record, cutoff)
        ]

    async def commit(
        self,
        writes: list[GuardedWrite],
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        now = self._now(now)
        async with self._lock:
            records = [
                self._collections[write.collection].get(write.record_id)
                for write in writes
            ]
            updated = apply_writes(writes, records, now)
            await self._yield()
            for write, record in zip(writes, updated):
                self._collections[write.collection][write.record_id] = record

        return copy.deepcopy(updated)
