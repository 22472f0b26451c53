"""
Tests for booking endpoints: quoting, creation, capacity and status changes.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.models import Holiday

from conftest import _headers_for, _make_user, booking_payload


@pytest.mark.asyncio
async def test_quote_with_voucher(client: AsyncClient, test_package, test_voucher, db_session):
    response = await client.post(
        "/api/v1/bookings/quote",
        json={"package_id": test_package.id, "number_of_children": 3, "voucher_code": "save10"},
    )
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["subtotal"]) == Decimal("300.00")
    assert Decimal(data["discount_applied"]) == Decimal("20.00")
    assert Decimal(data["total"]) == Decimal("280.00")
    assert data["voucher_code"] == "SAVE10"

    # Quoting never consumes the voucher
    await db_session.refresh(test_voucher)
    assert test_voucher.used_count == 0


@pytest.mark.asyncio
async def test_quote_with_unknown_voucher(client: AsyncClient, test_package):
    response = await client.post(
        "/api/v1/bookings/quote",
        json={"package_id": test_package.id, "number_of_children": 1, "voucher_code": "NOPE"},
    )
    assert response.status_code == 400
    assert "not found" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, auth_headers, test_user, test_package, test_slot, booking_date):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date, children=3),
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == test_user.id
    assert data["number_of_children"] == 3
    assert Decimal(data["total_amount"]) == Decimal("300.00")

    availability = await client.get(
        f"/api/v1/availability/{booking_date.isoformat()}/{test_slot.id}", params={"children": 1}
    )
    assert availability.json()["remaining"] == 12


@pytest.mark.asyncio
async def test_create_booking_unauthenticated(client: AsyncClient, test_package, test_slot, booking_date):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date),
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_children_ages_must_match_count(client: AsyncClient, auth_headers, test_package, test_slot, booking_date):
    payload = booking_payload(test_package, test_slot, booking_date, children=2)
    payload["children_ages"] = [4]
    response = await client.post("/api/v1/bookings", json=payload, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_zero_children_rejected(client: AsyncClient, auth_headers, test_package, test_slot, booking_date):
    payload = booking_payload(test_package, test_slot, booking_date)
    payload.update(number_of_children=0, children_ages=[])
    response = await client.post("/api/v1/bookings", json=payload, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_overbooking_rejected(client: AsyncClient, auth_headers, test_package, small_slot, booking_date):
    first = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, small_slot, booking_date, children=2),
        headers=auth_headers,
    )
    assert first.status_code == 201

    second = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, small_slot, booking_date, children=2),
        headers=auth_headers,
    )
    assert second.status_code == 409
    assert second.json()["detail"] == "Only 1 spots remaining"

    last = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, small_slot, booking_date, children=1),
        headers=auth_headers,
    )
    assert last.status_code == 201

    full = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, small_slot, booking_date, children=1),
        headers=auth_headers,
    )
    assert full.status_code == 409
    assert full.json()["detail"] == "Time slot is full"


@pytest.mark.asyncio
async def test_holiday_booking_rejected(client: AsyncClient, auth_headers, db_session, test_package, test_slot, booking_date):
    db_session.add(Holiday(date=booking_date, name="Holi", type="holiday", is_active=True))
    await db_session.commit()

    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date),
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Holi"


@pytest.mark.asyncio
async def test_invalid_voucher_rejects_booking(client: AsyncClient, auth_headers, test_package, test_slot, booking_date):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date, voucher_code="EXPIRED1"),
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_voucher_not_counted_until_confirmed(
    client: AsyncClient, auth_headers, admin_headers, db_session, test_package, test_slot, booking_date, test_voucher
):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date, children=3, voucher_code="SAVE10"),
        headers=auth_headers,
    )
    assert response.status_code == 201
    booking = response.json()
    assert Decimal(booking["discount_amount"]) == Decimal("20.00")
    assert Decimal(booking["total_amount"]) == Decimal("280.00")

    await db_session.refresh(test_voucher)
    assert test_voucher.used_count == 0

    for _ in range(2):
        confirmed = await client.patch(
            f"/api/v1/admin/bookings/{booking['id']}/status",
            json={"status": "confirmed"},
            headers=admin_headers,
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"

    await db_session.refresh(test_voucher)
    assert test_voucher.used_count == 1


@pytest.mark.asyncio
async def test_cancelling_frees_capacity(
    client: AsyncClient, auth_headers, admin_headers, test_package, small_slot, booking_date
):
    booked = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, small_slot, booking_date, children=3),
        headers=auth_headers,
    )
    assert booked.status_code == 201

    cancelled = await client.patch(
        f"/api/v1/admin/bookings/{booked.json()['id']}/status",
        json={"status": "cancelled"},
        headers=admin_headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    rebooked = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, small_slot, booking_date, children=3),
        headers=auth_headers,
    )
    assert rebooked.status_code == 201


@pytest.mark.asyncio
async def test_illegal_transition_returns_409(
    client: AsyncClient, auth_headers, admin_headers, test_package, test_slot, booking_date
):
    booked = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date),
        headers=auth_headers,
    )
    booking_id = booked.json()["id"]

    await client.patch(
        f"/api/v1/admin/bookings/{booking_id}/status", json={"status": "cancelled"}, headers=admin_headers
    )
    response = await client.patch(
        f"/api/v1/admin/bookings/{booking_id}/status", json={"status": "pending"}, headers=admin_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_list_and_get_own_bookings(
    client: AsyncClient, auth_headers, db_session, test_package, test_slot, booking_date
):
    created = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date),
        headers=auth_headers,
    )
    booking_id = created.json()["id"]

    listing = await client.get("/api/v1/bookings", headers=auth_headers)
    assert listing.status_code == 200
    assert [b["id"] for b in listing.json()] == [booking_id]

    single = await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert single.status_code == 200


@pytest.mark.asyncio
async def test_other_customers_cannot_see_booking(
    client: AsyncClient, auth_headers, db_session, test_package, test_slot, booking_date
):
    created = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date),
        headers=auth_headers,
    )
    other = await _make_user(db_session, "other@example.com", "otheruser", "customer")

    response = await client.get(f"/api/v1/bookings/{created.json()['id']}", headers=_headers_for(other))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_past_date_rejected(client: AsyncClient, auth_headers, test_package, test_slot, booking_date):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, date.today() - timedelta(days=1)),
        headers=auth_headers,
    )
    assert response.status_code == 400
