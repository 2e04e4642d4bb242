"""Acceptance resolver - binds exactly one driver to a waiting booking."""

import time

from ride_dispatch.errors import (
    BookingTakenError,
    DriverBusyError,
    NotFoundError,
    PreconditionFailedError,
    RecordNotFoundError,
)
from ride_dispatch.models.booking import Booking, BookingStatus
from ride_dispatch.models.driver import DriverStatus
from ride_dispatch.state.store import BOOKINGS, DRIVERS, GuardedWrite, Store
from ride_dispatch.utils.logging import RideEventLogger


class AcceptanceResolver:
    """
    Resolves driver acceptance of broadcast bookings.

    The driver and booking preconditions are guards on a single store commit,
    so two drivers racing for the same booking can never both win: whichever
    commit lands second finds the booking no longer waiting.
    """

    def __init__(self, store: Store):
        self.store = store
        self.logger = RideEventLogger("acceptance_resolver")

    async def accept_booking(self, driver_id: str, booking_id: str) -> Booking:
        """
        Assign a driver to a waiting booking.

        Args:
            driver_id: Driver claiming the booking
            booking_id: Booking being claimed

        Returns:
            The booking, now on ride with the driver assigned

        Raises:
            NotFoundError: If the driver or booking does not exist
            BookingTakenError: If the booking is not waiting
            DriverBusyError: If the driver is already on a ride
        """
        start_time = time.time()

        writes = [
            GuardedWrite(
                BOOKINGS,
                booking_id,
                expect={"status": BookingStatus.WAITING},
                changes={
                    "status": BookingStatus.ON_RIDE,
                    "assigned_driver": driver_id,
                    "broadcast_list": [],
                },
            ),
            GuardedWrite(
                DRIVERS,
                driver_id,
                forbid={"status": DriverStatus.ON_RIDE},
                changes={
                    "status": DriverStatus.ON_RIDE,
                    "current_ride": booking_id,
                },
            ),
        ]

        try:
            booking_record, _ = await self.store.commit(writes)
        except RecordNotFoundError as e:
            raise NotFoundError(e.collection, e.record_id) from e
        except PreconditionFailedError as e:
            if e.write.collection == BOOKINGS:
                reason = "booking_taken"
                error: Exception = BookingTakenError(booking_id)
            else:
                reason = "driver_busy"
                error = DriverBusyError(driver_id)

            self.logger.log_rejection(
                action="accept",
                reason=reason,
                driver_id=driver_id,
                booking_id=booking_id,
                current_status=e.record.get("status"),
            )
            raise error from e

        self.logger.log_transition(
            action="accept",
            driver_id=driver_id,
            booking_id=booking_id,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return Booking(**booking_record)
