"""Driver models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, EmailStr, Field

from ride_dispatch.utils.timeutils import utcnow


class DriverStatus(str, Enum):
    """Driver status states."""

    WAITING = "waiting"
    ON_RIDE = "onRide"


class Driver(BaseModel):
    """Driver profile and ride state."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str | None = Field(default=None, max_length=128)
    email: EmailStr | None = None
    phone: str | None = None
    status: DriverStatus = DriverStatus.WAITING
    current_ride: str | None = None
    location: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
