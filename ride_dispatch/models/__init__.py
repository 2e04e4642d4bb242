"""Data models for the dispatch service."""

from ride_dispatch.models.booking import Booking, BookingStatus
from ride_dispatch.models.driver import Driver, DriverStatus

__all__ = [
    # Booking
    "Booking",
    "BookingStatus",
    # Driver
    "Driver",
    "DriverStatus",
]
