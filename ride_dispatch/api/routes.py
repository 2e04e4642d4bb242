"""API routes for the dispatch service."""

from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from ride_dispatch.errors import (
    BookingTakenError,
    DispatchError,
    DriverBusyError,
    InvalidBookingError,
    NotFoundError,
    TransientStoreError,
)
from ride_dispatch.models.booking import Booking
from ride_dispatch.models.driver import Driver
from ride_dispatch.services.broadcaster import DispatchBroadcaster
from ride_dispatch.services.resolver import AcceptanceResolver
from ride_dispatch.state.provider import get_store
from ride_dispatch.state.store import Store
from ride_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Driver busy and booking taken are distinct outcomes for clients
ERROR_STATUS: dict[type[Exception], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    BookingTakenError: status.HTTP_409_CONFLICT,
    DriverBusyError: status.HTTP_423_LOCKED,
    InvalidBookingError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TransientStoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


# Request/Response Models


class CreateDriverRequest(BaseModel):
    """Request to register a driver."""

    name: str | None = Field(default=None, max_length=128)
    email: EmailStr | None = None
    phone: str | None = None
    location: dict[str, Any] | None = None


class CreateBookingRequest(BaseModel):
    """Request to create a booking."""

    user: str = Field(min_length=1)
    location: dict[str, Any] | None = None


class AcceptBookingResponse(BaseModel):
    """Confirmation of a successful acceptance."""

    message: str
    booking: Booking


# Dependencies


async def get_broadcaster(store: Store = Depends(get_store)) -> DispatchBroadcaster:
    """Get broadcaster bound to the store."""
    return DispatchBroadcaster(store)


async def get_resolver(store: Store = Depends(get_store)) -> AcceptanceResolver:
    """Get acceptance resolver bound to the store."""
    return AcceptanceResolver(store)


def raise_http_error(error: Exception) -> NoReturn:
    """Translate a dispatch or store error into an HTTP error."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            raise HTTPException(
                status_code=status_code,
                detail={"code": error.code, "message": str(error)},
            ) from error
    raise error


# Driver endpoints


@router.post(
    "/driver",
    response_model=Driver,
    status_code=status.HTTP_201_CREATED,
)
async def create_driver(
    request: CreateDriverRequest,
    store: Store = Depends(get_store),
) -> Driver:
    """Register a new driver, waiting for bookings."""
    driver = Driver(**request.model_dump())

    try:
        await store.insert_driver(driver)
    except TransientStoreError as e:
        raise_http_error(e)

    logger.info("driver_registered", driver_id=driver.id)
    return driver


@router.get("/driver/{driver_id}", response_model=Driver)
async def get_driver(driver_id: str, store: Store = Depends(get_store)) -> Driver:
    """Get driver details."""
    try:
        driver = await store.get_driver(driver_id)
    except TransientStoreError as e:
        raise_http_error(e)

    if not driver:
        raise_http_error(NotFoundError("driver", driver_id))
    return driver


@router.get("/driver/{driver_id}/booking", response_model=list[Booking])
async def list_driver_bookings(
    driver_id: str,
    broadcaster: DispatchBroadcaster = Depends(get_broadcaster),
) -> list[Booking]:
    """List the bookings broadcast to a driver."""
    try:
        return await broadcaster.bookings_for_driver(driver_id)
    except (DispatchError, TransientStoreError) as e:
        raise_http_error(e)


@router.post(
    "/driver/{driver_id}/booking/{booking_id}/accept",
    response_model=AcceptBookingResponse,
)
async def accept_booking(
    driver_id: str,
    booking_id: str,
    resolver: AcceptanceResolver = Depends(get_resolver),
) -> AcceptBookingResponse:
    """
    Accept a broadcast booking.

    Responds 404 when the driver or booking does not exist, 409 when the
    booking was already taken or closed and 423 when the driver is on a ride.
    """
    try:
        booking = await resolver.accept_booking(driver_id, booking_id)
    except (DispatchError, TransientStoreError) as e:
        raise_http_error(e)

    return AcceptBookingResponse(
        message="Assigned driver to this booking",
        booking=booking,
    )


# Booking endpoints


@router.post(
    "/booking",
    response_model=Booking,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    request: CreateBookingRequest,
    broadcaster: DispatchBroadcaster = Depends(get_broadcaster),
) -> Booking:
    """Create a booking and broadcast it to the driver pool."""
    try:
        return await broadcaster.create_booking(request.user, request.location)
    except (DispatchError, TransientStoreError) as e:
        raise_http_error(e)


@router.get("/booking/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, store: Store = Depends(get_store)) -> Booking:
    """Get booking details."""
    try:
        booking = await store.get_booking(booking_id)
    except TransientStoreError as e:
        raise_http_error(e)

    if not booking:
        raise_http_error(NotFoundError("booking", booking_id))
    return booking
