"""Dispatch broadcaster - stamps new bookings with their candidate drivers."""

from typing import Any, Awaitable, Callable

from ride_dispatch.errors import InvalidBookingError, NotFoundError
from ride_dispatch.models.booking import Booking
from ride_dispatch.state.store import Store
from ride_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

CandidatePolicy = Callable[[Store, Booking], Awaitable[list[str]]]


async def all_known_drivers(store: Store, booking: Booking) -> list[str]:
    """Every registered driver is a candidate, regardless of state or location."""
    return await store.list_driver_ids()


class DispatchBroadcaster:
    """
    Broadcasts new bookings to the driver pool.

    Candidate selection is delegated to ``candidate_policy`` so availability or
    proximity filtering can be introduced without touching the booking flow.
    """

    def __init__(
        self,
        store: Store,
        candidate_policy: CandidatePolicy = all_known_drivers,
    ):
        self.store = store
        self.candidate_policy = candidate_policy

    async def create_booking(
        self,
        user: str,
        location: dict[str, Any] | None = None,
    ) -> Booking:
        """Create a waiting booking and broadcast it."""
        return await self.broadcast(Booking(user=user, location=location))

    async def broadcast(self, booking: Booking) -> Booking:
        """
        Populate the broadcast list of a fresh booking and persist it.

        Args:
            booking: Unsaved booking in the waiting state

        Returns:
            The persisted booking

        Raises:
            InvalidBookingError: If the booking is not fresh and waiting
        """
        if not booking.is_open:
            raise InvalidBookingError(
                f"Booking {booking.id} is {booking.status.value}, only waiting bookings are broadcast"
            )
        if booking.broadcast_list:
            raise InvalidBookingError(f"Booking {booking.id} was already broadcast")

        candidates = await self.candidate_policy(self.store, booking)
        booking = booking.model_copy(update={"broadcast_list": list(candidates)})

        await self.store.insert_booking(booking)

        logger.info(
            "booking_broadcast",
            booking_id=booking.id,
            user=booking.user,
            candidates=len(booking.broadcast_list),
        )
        return booking

    async def bookings_for_driver(self, driver_id: str) -> list[Booking]:
        """Get the bookings currently broadcast to a driver."""
        if await self.store.get_driver(driver_id) is None:
            raise NotFoundError("driver", driver_id)

        return await self.store.find_bookings_broadcast_to(driver_id)
