"""
Tests for booking endpoints including seat conflicts and concurrency.
"""

import asyncio

import pytest
from httpx import AsyncClient

from conftest import SHOWING, booking_payload


@pytest.mark.asyncio
async def test_book_seats(client: AsyncClient):
    """Any valid request on an empty showing is admitted with normalized seats."""
    response = await client.post("/bookings", json=booking_payload(" a2 , A1"))
    assert response.status_code == 201
    data = response.json()
    assert isinstance(data["id"], int)
    assert data["seats"] == ["A1", "A2"]
    assert data["status"] == "active"
    assert data["movie_name"] == SHOWING.title
    assert data["created_at"]


@pytest.mark.asyncio
async def test_book_seats_conflict_names_exact_seats(client: AsyncClient, active_booking):
    """A1 is held, so A1+A2 is rejected and only A1 is reported."""
    response = await client.post("/bookings", json=booking_payload(["A1", "A2"]))
    assert response.status_code == 409
    data = response.json()
    assert data["conflicting_seats"] == ["A1"]
    assert "A1" in data["detail"]

    # Nothing was written for the rejected request
    bookings = await client.get("/bookings")
    assert len(bookings.json()) == 1


@pytest.mark.asyncio
async def test_conflict_enumerates_every_overlap(client: AsyncClient):
    await client.post("/bookings", json=booking_payload(["A10", "A2", "B1"]))

    response = await client.post("/bookings", json=booking_payload(["B1", "A10", "A2", "C3"]))
    assert response.status_code == 409
    assert response.json()["conflicting_seats"] == ["A2", "A10", "B1"]


@pytest.mark.asyncio
async def test_same_seat_on_other_showing_is_admitted(client: AsyncClient, active_booking):
    other_time = await client.post("/bookings", json=booking_payload(["A1"], time="21:00"))
    other_movie = await client.post("/bookings", json=booking_payload(["A1"], movie_name="Tenet"))
    assert other_time.status_code == 201
    assert other_movie.status_code == 201


@pytest.mark.asyncio
async def test_event_name_shares_showing_with_movie_name(client: AsyncClient, active_booking):
    """A booking keyed by event_name conflicts with one keyed by the same movie_name."""
    response = await client.post(
        "/bookings",
        json=booking_payload(["A1"], movie_name=None, event_name=SHOWING.title),
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_padded_title_is_stored_trimmed(client: AsyncClient):
    response = await client.post("/bookings", json=booking_payload(["A1"], movie_name=" Inception "))
    assert response.status_code == 201
    assert response.json()["movie_name"] == "Inception"

    booked = await client.get(
        "/booked-seats", params={"movie": "Inception", "date": SHOWING.date, "time": SHOWING.time}
    )
    assert booked.json() == {"bookedSeats": ["A1"]}

    conflict = await client.post("/bookings", json=booking_payload(["A1", "A2"]))
    assert conflict.status_code == 409
    assert conflict.json()["conflicting_seats"] == ["A1"]

    listed = await client.get("/bookings", params={"movie_name": "Inception"})
    assert [b["id"] for b in listed.json()] == [response.json()["id"]]


@pytest.mark.asyncio
async def test_legacy_rows_take_part_in_conflict_check(client: AsyncClient, legacy_booking):
    response = await client.post("/bookings", json=booking_payload("C7, D1"))
    assert response.status_code == 409
    assert response.json()["conflicting_seats"] == ["C7"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        booking_payload([]),
        booking_payload(" , ;"),
        booking_payload(None),
        booking_payload(["A1"], movie_name=None),
        booking_payload(["A1"], movie_name="  ", event_name=""),
        booking_payload(["A1"], date=""),
        {k: v for k, v in booking_payload(["A1"]).items() if k != "time"},
    ],
)
async def test_book_seats_invalid_input(client: AsyncClient, payload):
    """Missing or blank fields are rejected with 400, not 422."""
    response = await client.post("/bookings", json=payload)
    assert response.status_code == 400
    assert "detail" in response.json()


@pytest.mark.asyncio
async def test_concurrent_disjoint_requests_both_succeed(client: AsyncClient):
    first, second = await asyncio.gather(
        client.post("/bookings", json=booking_payload(["A1", "A2"])),
        client.post("/bookings", json=booking_payload(["B1", "B2"])),
    )
    assert first.status_code == 201
    assert second.status_code == 201


@pytest.mark.asyncio
async def test_concurrent_overlapping_requests_admit_exactly_one(client: AsyncClient):
    responses = await asyncio.gather(
        client.post("/bookings", json=booking_payload(["A1", "A2"])),
        client.post("/bookings", json=booking_payload(["A2", "A3"])),
    )
    codes = sorted(r.status_code for r in responses)
    assert codes == [201, 409]
    conflict = next(r for r in responses if r.status_code == 409)
    assert conflict.json()["conflicting_seats"] == ["A2"]


@pytest.mark.asyncio
async def test_many_concurrent_requests_keep_seats_disjoint(client: AsyncClient):
    requests = [
        client.post("/bookings", json=booking_payload([f"A{i}", f"A{i + 1}"]))
        for i in range(1, 9)
    ]
    await asyncio.gather(*requests)

    bookings = (await client.get("/bookings", params={"active_only": True})).json()
    held = [seat for booking in bookings for seat in booking["seats"]]
    assert len(held) == len(set(held))
    assert bookings


@pytest.mark.asyncio
async def test_list_bookings_filters(client: AsyncClient, active_booking):
    await client.post("/bookings", json=booking_payload(["B1"], name="dave", time="21:00"))

    everything = await client.get("/bookings")
    assert len(everything.json()) == 2

    by_name = await client.get("/bookings", params={"name": "alice"})
    assert [b["id"] for b in by_name.json()] == [active_booking.id]

    by_showing = await client.get(
        "/bookings", params={"movie_name": SHOWING.title, "date": SHOWING.date, "time": "21:00"}
    )
    assert [b["name"] for b in by_showing.json()] == ["dave"]


@pytest.mark.asyncio
async def test_list_bookings_active_only(client: AsyncClient, active_booking):
    await client.post(
        "/cancelled-bookings", json={"booking_id": active_booking.id, "reason": "changed plans"}
    )

    everything = await client.get("/bookings")
    assert [b["status"] for b in everything.json()] == ["cancelled"]

    active = await client.get("/bookings", params={"active_only": True})
    assert active.json() == []


@pytest.mark.asyncio
async def test_booked_seats(client: AsyncClient, active_booking, legacy_booking):
    response = await client.get(
        "/booked-seats", params={"movie": SHOWING.title, "date": SHOWING.date, "time": SHOWING.time}
    )
    assert response.status_code == 200
    assert response.json() == {"bookedSeats": ["A1", "B4", "C7"]}


@pytest.mark.asyncio
async def test_booked_seats_empty_showing(client: AsyncClient):
    response = await client.get(
        "/booked-seats", params={"movie": "Nobody Watches", "date": "2024-01-01", "time": "09:00"}
    )
    assert response.status_code == 200
    assert response.json() == {"bookedSeats": []}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"date": "2024-01-01", "time": "18:00"},
        {"movie": "Inception", "time": "18:00"},
        {"movie": "Inception", "date": "2024-01-01"},
        {"movie": " ", "date": "2024-01-01", "time": "18:00"},
    ],
)
async def test_booked_seats_missing_params(client: AsyncClient, params):
    response = await client.get("/booked-seats", params=params)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_booking_releases_seats(client: AsyncClient, active_booking):
    response = await client.delete(f"/bookings/{active_booking.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Booking deleted"
    assert data["deletedBooking"]["id"] == active_booking.id
    assert data["deletedBooking"]["seats"] == ["A1"]

    assert (await client.get("/bookings")).json() == []
    rebook = await client.post("/bookings", json=booking_payload(["A1"]))
    assert rebook.status_code == 201


@pytest.mark.asyncio
async def test_delete_cancelled_booking(client: AsyncClient, active_booking):
    await client.post("/cancelled-bookings", json={"booking_id": active_booking.id, "reason": "ill"})

    response = await client.delete(f"/bookings/{active_booking.id}")
    assert response.status_code == 200
    assert (await client.get("/cancelled-bookings")).json() == []


@pytest.mark.asyncio
async def test_delete_nonexistent_booking(client: AsyncClient):
    response = await client.delete("/bookings/99999")
    assert response.status_code == 404
