"""Tests for the HTTP boundary."""

import asyncio

import pytest
from httpx import AsyncClient

from ride_dispatch.errors import TransientStoreError
from ride_dispatch.state.memory import MemoryStore


async def register_driver(client: AsyncClient, name: str = "Test Driver") -> str:
    response = await client.post(
        "/api/v1/driver",
        json={"name": name, "email": f"{name.lower().replace(' ', '.')}@example.com"},
    )
    assert response.status_code == 201
    return response.json()["id"]


async def create_booking(client: AsyncClient, user: str = "user-1") -> dict:
    response = await client.post(
        "/api/v1/booking",
        json={"user": user, "location": {"lat": 40.71, "lng": -74.0}},
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health(test_client: AsyncClient) -> None:
    """Test the health endpoint."""
    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_register_and_get_driver(test_client: AsyncClient) -> None:
    """Test driver registration."""
    driver_id = await register_driver(test_client)

    response = await test_client.get(f"/api/v1/driver/{driver_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "waiting"
    assert body["current_ride"] is None


@pytest.mark.asyncio
async def test_register_driver_rejects_bad_email(test_client: AsyncClient) -> None:
    """Test request validation on registration."""
    response = await test_client.post("/api/v1/driver", json={"email": "not-an-email"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_booking_broadcasts(test_client: AsyncClient) -> None:
    """Test that a new booking lists every driver."""
    first = await register_driver(test_client, "First")
    second = await register_driver(test_client, "Second")

    booking = await create_booking(test_client)

    assert booking["status"] == "waiting"
    assert sorted(booking["broadcast_list"]) == sorted([first, second])
    assert booking["location"] == {"lat": 40.71, "lng": -74.0}


@pytest.mark.asyncio
async def test_create_booking_requires_user(test_client: AsyncClient) -> None:
    """Test that a booking needs a requesting user."""
    response = await test_client.post("/api/v1/booking", json={"user": ""})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_booking_store_unavailable(
    test_client: AsyncClient, store: MemoryStore, monkeypatch
) -> None:
    """Test that a store outage surfaces as 503."""

    async def failing_insert(booking):
        raise TransientStoreError("connection refused")

    monkeypatch.setattr(store, "insert_booking", failing_insert)

    response = await test_client.post("/api/v1/booking", json={"user": "u1"})

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "store_unavailable"


@pytest.mark.asyncio
async def test_list_driver_bookings(test_client: AsyncClient) -> None:
    """Test listing bookings broadcast to a driver."""
    driver_id = await register_driver(test_client)
    booking = await create_booking(test_client)

    response = await test_client.get(f"/api/v1/driver/{driver_id}/booking")

    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [booking["id"]]


@pytest.mark.asyncio
async def test_list_bookings_unknown_driver(test_client: AsyncClient) -> None:
    """Test that listing for an unknown driver is 404."""
    response = await test_client.get("/api/v1/driver/nobody/booking")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "driver_not_found"


@pytest.mark.asyncio
async def test_accept_booking(test_client: AsyncClient) -> None:
    """Test accepting a booking."""
    driver_id = await register_driver(test_client)
    booking = await create_booking(test_client)

    response = await test_client.post(
        f"/api/v1/driver/{driver_id}/booking/{booking['id']}/accept"
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Assigned driver to this booking"
    assert body["booking"]["status"] == "onRide"
    assert body["booking"]["assigned_driver"] == driver_id
    assert body["booking"]["broadcast_list"] == []

    listed = await test_client.get(f"/api/v1/driver/{driver_id}/booking")
    assert listed.json() == []
    driver = await test_client.get(f"/api/v1/driver/{driver_id}")
    assert driver.json()["current_ride"] == booking["id"]


@pytest.mark.asyncio
async def test_accept_conflicts_are_distinct(test_client: AsyncClient) -> None:
    """Test that booking taken and driver busy have different status codes."""
    first = await register_driver(test_client, "First")
    second = await register_driver(test_client, "Second")
    taken = await create_booking(test_client, "u1")
    other = await create_booking(test_client, "u2")
    await test_client.post(f"/api/v1/driver/{first}/booking/{taken['id']}/accept")

    booking_taken = await test_client.post(
        f"/api/v1/driver/{second}/booking/{taken['id']}/accept"
    )
    driver_busy = await test_client.post(
        f"/api/v1/driver/{first}/booking/{other['id']}/accept"
    )

    assert booking_taken.status_code == 409
    assert booking_taken.json()["detail"]["code"] == "booking_taken"
    assert driver_busy.status_code == 423
    assert driver_busy.json()["detail"]["code"] == "driver_busy"


@pytest.mark.asyncio
async def test_accept_not_found(test_client: AsyncClient) -> None:
    """Test that unknown ids are 404 with the entity named."""
    driver_id = await register_driver(test_client)
    booking = await create_booking(test_client)

    missing_booking = await test_client.post(
        f"/api/v1/driver/{driver_id}/booking/missing/accept"
    )
    missing_driver = await test_client.post(
        f"/api/v1/driver/missing/booking/{booking['id']}/accept"
    )

    assert missing_booking.status_code == 404
    assert missing_booking.json()["detail"]["code"] == "booking_not_found"
    assert missing_driver.status_code == 404
    assert missing_driver.json()["detail"]["code"] == "driver_not_found"


@pytest.mark.asyncio
async def test_concurrent_accept_requests(test_client: AsyncClient) -> None:
    """Test racing accept requests over HTTP."""
    drivers = [await register_driver(test_client, f"Driver {i}") for i in range(5)]
    booking = await create_booking(test_client)

    responses = await asyncio.gather(
        *(
            test_client.post(f"/api/v1/driver/{d}/booking/{booking['id']}/accept")
            for d in drivers
        )
    )

    codes = sorted(r.status_code for r in responses)
    assert codes == [200, 409, 409, 409, 409]


@pytest.mark.asyncio
async def test_get_booking(test_client: AsyncClient) -> None:
    """Test fetching a booking and the 404 path."""
    booking = await create_booking(test_client)

    found = await test_client.get(f"/api/v1/booking/{booking['id']}")
    missing = await test_client.get("/api/v1/booking/missing")

    assert found.status_code == 200
    assert found.json()["user"] == "user-1"
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "booking_not_found"


@pytest.mark.asyncio
async def test_accept_unknown_driver_on_taken_booking(test_client: AsyncClient) -> None:
    """Test that an unknown driver is 404 rather than a conflict."""
    driver_id = await register_driver(test_client)
    booking = await create_booking(test_client)
    await test_client.post(f"/api/v1/driver/{driver_id}/booking/{booking['id']}/accept")

    response = await test_client.post(
        f"/api/v1/driver/ghost/booking/{booking['id']}/accept"
    )

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "driver_not_found"
