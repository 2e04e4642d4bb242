"""Booking models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from ride_dispatch.utils.timeutils import utcnow


class BookingStatus(str, Enum):
    """Booking status progression."""

    WAITING = "waiting"
    ON_RIDE = "onRide"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class Booking(BaseModel):
    """Ride booking and its dispatch state."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    user: str = Field(min_length=1)
    assigned_driver: str | None = None
    broadcast_list: list[str] = Field(default_factory=list)
    status: BookingStatus = BookingStatus.WAITING

    # Opaque payload, stored as given
    location: dict[str, Any] | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_open(self) -> bool:
        """Check if the booking can still be accepted."""
        return self.status == BookingStatus.WAITING and self.assigned_driver is None
