"""Transactional store interface for drivers and bookings."""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ride_dispatch.errors import PreconditionFailedError, RecordNotFoundError
from ride_dispatch.models.booking import Booking
from ride_dispatch.models.driver import Driver, DriverStatus
from ride_dispatch.utils.timeutils import parse_timestamp, utcnow

DRIVERS = "driver"
BOOKINGS = "booking"


def _plain(value: Any) -> Any:
    """Reduce enums to their stored value."""
    return getattr(value, "value", value)


@dataclass(frozen=True)
class GuardedWrite:
    """
    Conditional update of a single record.

    The write applies only if every ``expect`` field equals the stored value
    and no ``forbid`` field equals it, evaluated at commit time.
    """

    collection: str
    record_id: str
    changes: dict[str, Any]
    expect: dict[str, Any] = field(default_factory=dict)
    forbid: dict[str, Any] = field(default_factory=dict)

    def matches(self, record: dict[str, Any]) -> bool:
        """Check the guards against a stored record."""
        for name, value in self.expect.items():
            if record.get(name) != _plain(value):
                return False
        for name, value in self.forbid.items():
            if record.get(name) == _plain(value):
                return False
        return True

    def apply(self, record: dict[str, Any], now: datetime) -> dict[str, Any]:
        """Return a copy of the record with the changes applied."""
        updated = copy.deepcopy(record)
        for name, value in self.changes.items():
            updated[name] = _plain(value)
        updated["updated_at"] = now.isoformat()
        return updated


def apply_writes(
    writes: list[GuardedWrite],
    records: list[dict[str, Any] | None],
    now: datetime,
) -> list[dict[str, Any]]:
    """
    Evaluate guards in order and compute the new records.

    Every record must exist before any guard is checked, so a missing record
    is reported as RecordNotFoundError even when an earlier guard would fail.
    Otherwise the first failed guard raises PreconditionFailedError. Callers
    must not persist anything in either case.
    """
    for write, record in zip(writes, records):
        if record is None:
            raise RecordNotFoundError(write.collection, write.record_id)

    updated = []
    for write, record in zip(writes, records):
        if not write.matches(record):
            raise PreconditionFailedError(write, record)
        updated.append(write.apply(record, now))
    return updated


def is_stale(record: dict[str, Any], cutoff: datetime) -> bool:
    """Check if a driver record is on a ride that started before the cutoff."""
    return (
        record.get("status") == DriverStatus.ON_RIDE.value
        and parse_timestamp(record["updated_at"]) < cutoff
    )


class Store(ABC):
    """Persistence for drivers and bookings with compare-and-set commits."""

    @abstractmethod
    async def insert_driver(self, driver: Driver) -> Driver:
        """Persist a new driver."""

    @abstractmethod
    async def insert_booking(self, booking: Booking) -> Booking:
        """Persist a new booking along with its broadcast entries."""

    @abstractmethod
    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Fetch a raw stored record."""

    @abstractmethod
    async def list_driver_ids(self) -> list[str]:
        """Return every known driver id."""

    @abstractmethod
    async def find_bookings_broadcast_to(self, driver_id: str) -> list[Booking]:
        """Return bookings whose broadcast list contains the driver."""

    @abstractmethod
    async def find_stale_drivers(self, cutoff: datetime) -> list[Driver]:
        """Return on-ride drivers last updated before the cutoff."""

    @abstractmethod
    async def commit(
        self,
        writes: list[GuardedWrite],
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Apply all writes atomically or none of them."""

    async def close(self) -> None:
        """Release store resources."""

    async def get_driver(self, driver_id: str) -> Driver | None:
        """Retrieve a driver by ID."""
        record = await self.get_record(DRIVERS, driver_id)
        return Driver(**record) if record else None

    async def get_booking(self, booking_id: str) -> Booking | None:
        """Retrieve a booking by ID."""
        record = await self.get_record(BOOKINGS, booking_id)
        return Booking(**record) if record else None

    @staticmethod
    def _now(now: datetime | None) -> datetime:
        return now or utcnow()
