"""Exceptions raised by the dispatch core and the store layer."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ride_dispatch.state.store import GuardedWrite


class DispatchError(Exception):
    """Base class for dispatch outcomes reported to callers."""

    code = "dispatch_error"


class NotFoundError(DispatchError):
    """Raised when a driver or booking id does not resolve to a record."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        self.code = f"{entity}_not_found"
        super().__init__(f"{entity.capitalize()} {entity_id} does not exist")


class ConflictError(DispatchError):
    """Raised when a state precondition no longer holds."""

    code = "conflict"


class DriverBusyError(ConflictError):
    """Raised when the driver is already on a ride."""

    code = "driver_busy"

    def __init__(self, driver_id: str):
        self.driver_id = driver_id
        super().__init__(f"Driver {driver_id} is already on a ride")


class BookingTakenError(ConflictError):
    """Raised when the booking is no longer waiting for a driver."""

    code = "booking_taken"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} is already assigned or closed")


class InvalidBookingError(DispatchError):
    """Raised when a booking cannot be broadcast in its current state."""

    code = "invalid_booking"


class StoreError(Exception):
    """Base class for store failures."""


class RecordNotFoundError(StoreError):
    """Raised by a commit that references a missing record."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection}:{record_id} not found")


class PreconditionFailedError(StoreError):
    """Raised by a commit whose guard does not match the stored record."""

    def __init__(self, write: "GuardedWrite", record: dict[str, Any]):
        self.write = write
        self.record = record
        super().__init__(
            f"Guard failed for {write.collection}:{write.record_id}"
        )


class TransientStoreError(StoreError):
    """Raised on store I/O failure; the whole operation may be retried."""

    code = "store_unavailable"
