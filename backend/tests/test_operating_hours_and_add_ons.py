"""
Tests for weekday opening hours and priced add-ons.
"""

from datetime import time, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.models import AddOn, OperatingHours
from app.services.availability_service import check_availability, day_of_week, slot_availability_for_date

from conftest import booking_payload


async def set_hours(db, on, open_time=time(9, 0), close_time=time(20, 0), is_open=True) -> OperatingHours:
    hours = OperatingHours(
        day_of_week=day_of_week(on), open_time=open_time, close_time=close_time, is_open=is_open
    )
    db.add(hours)
    await db.commit()
    return hours


@pytest_asyncio.fixture
async def grip_socks(db_session) -> AddOn:
    """Required for everyone on the play floor."""
    add_on = AddOn(name="Grip Socks", price=Decimal("50.00"), category="general", is_required=True)
    db_session.add(add_on)
    await db_session.commit()
    await db_session.refresh(add_on)
    return add_on


@pytest_asyncio.fixture
async def photo_pack(db_session, test_package) -> AddOn:
    add_on = AddOn(
        name="Photo Pack",
        price=Decimal("199.00"),
        category="photography",
        applicable_packages=[test_package.id],
    )
    db_session.add(add_on)
    await db_session.commit()
    await db_session.refresh(add_on)
    return add_on


def test_day_of_week_starts_on_sunday(booking_date):
    sunday = booking_date - timedelta(days=booking_date.isoweekday() % 7)
    assert day_of_week(sunday) == 0
    assert day_of_week(sunday + timedelta(days=6)) == 6


@pytest.mark.asyncio
async def test_closed_weekday_is_unavailable(db_session, test_slot, booking_date):
    await set_hours(db_session, booking_date, is_open=False)

    result = await check_availability(db_session, booking_date, test_slot.id, 1)
    assert result.available is False
    assert result.reason == f"Closed on {booking_date:%A}s"

    other_day = await check_availability(db_session, booking_date + timedelta(days=1), test_slot.id, 1)
    assert other_day.available is True


@pytest.mark.asyncio
async def test_slot_outside_opening_hours(db_session, test_slot, small_slot, booking_date):
    # Open 09:00-17:00: the 10:00 slot fits, the 16:00-18:00 slot runs past closing
    await set_hours(db_session, booking_date, close_time=time(17, 0))

    assert (await check_availability(db_session, booking_date, test_slot.id, 1)).available is True

    late = await check_availability(db_session, booking_date, small_slot.id, 1)
    assert late.available is False
    assert late.reason == "Time slot is outside opening hours"

    views = {view.time_slot_id: view for view in await slot_availability_for_date(db_session, booking_date)}
    assert views[test_slot.id].remaining == 15
    assert views[small_slot.id].remaining == 0
    assert views[small_slot.id].available is False


@pytest.mark.asyncio
async def test_operating_hours_admin_and_public(client: AsyncClient, admin_headers, auth_headers):
    forbidden = await client.put(
        "/api/v1/admin/operating-hours",
        json={"days": [{"day_of_week": 1, "open_time": "10:00", "close_time": "20:00"}]},
        headers=auth_headers,
    )
    assert forbidden.status_code == 403

    response = await client.put(
        "/api/v1/admin/operating-hours",
        json={
            "days": [
                {"day_of_week": 1, "open_time": "10:00", "close_time": "20:00"},
                {"day_of_week": 2, "open_time": "10:00", "close_time": "20:00", "is_open": False},
            ]
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert [d["day_of_week"] for d in response.json()] == [1, 2]

    # Second upsert changes Monday in place
    response = await client.put(
        "/api/v1/admin/operating-hours",
        json={"days": [{"day_of_week": 1, "open_time": "11:00", "close_time": "19:00"}]},
        headers=admin_headers,
    )
    assert len(response.json()) == 2

    monday = await client.get("/api/v1/operating-hours/1")
    assert monday.status_code == 200
    assert monday.json()["open_time"] == "11:00:00"
    assert monday.json()["close_time"] == "19:00:00"

    tuesday = await client.get("/api/v1/operating-hours/2")
    assert tuesday.json()["is_open"] is False

    assert (await client.get("/api/v1/operating-hours/0")).status_code == 404
    assert (await client.get("/api/v1/operating-hours/7")).status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [
    [{"day_of_week": 1, "open_time": "20:00", "close_time": "10:00"}],
    [
        {"day_of_week": 3, "open_time": "10:00", "close_time": "20:00"},
        {"day_of_week": 3, "open_time": "11:00", "close_time": "20:00"},
    ],
])
async def test_operating_hours_validation(client: AsyncClient, admin_headers, days):
    response = await client.put("/api/v1/admin/operating-hours", json={"days": days}, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_add_on_admin_crud(client: AsyncClient, admin_headers, test_package, birthday_package):
    created = await client.post(
        "/api/v1/admin/add-ons",
        json={
            "name": "Party Hats",
            "price": "80.00",
            "category": "birthday",
            "applicable_packages": [birthday_package.id],
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    add_on_id = created.json()["id"]

    for_party = await client.get(f"/api/v1/add-ons?package_id={birthday_package.id}")
    assert [a["id"] for a in for_party.json()] == [add_on_id]
    for_play = await client.get(f"/api/v1/add-ons?package_id={test_package.id}")
    assert for_play.json() == []

    updated = await client.patch(
        f"/api/v1/admin/add-ons/{add_on_id}", json={"price": "90.00"}, headers=admin_headers
    )
    assert Decimal(updated.json()["price"]) == Decimal("90.00")

    removed = await client.delete(f"/api/v1/admin/add-ons/{add_on_id}", headers=admin_headers)
    assert removed.json()["is_active"] is False
    assert (await client.get("/api/v1/add-ons")).json() == []

    listed = await client.get("/api/v1/admin/add-ons", headers=admin_headers)
    assert len(listed.json()) == 1


@pytest.mark.asyncio
async def test_quote_includes_required_and_chosen_add_ons(
    client: AsyncClient, test_package, test_voucher, grip_socks, photo_pack
):
    response = await client.post(
        "/api/v1/bookings/quote",
        json={
            "package_id": test_package.id,
            "number_of_children": 3,
            "voucher_code": "SAVE10",
            "add_on_ids": [photo_pack.id],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["subtotal"]) == Decimal("300.00")
    assert Decimal(data["discount_applied"]) == Decimal("20.00")
    assert Decimal(data["add_ons_amount"]) == Decimal("249.00")
    assert Decimal(data["total"]) == Decimal("529.00")
    assert sorted(data["add_on_ids"]) == sorted([grip_socks.id, photo_pack.id])


@pytest.mark.asyncio
async def test_add_on_for_other_package_rejected(client: AsyncClient, birthday_package, photo_pack):
    response = await client.post(
        "/api/v1/bookings/quote",
        json={"package_id": birthday_package.id, "number_of_children": 1, "add_on_ids": [photo_pack.id]},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == f"Add-on {photo_pack.id} is not available for this package"


@pytest.mark.asyncio
async def test_booking_stores_add_on_charges(
    client: AsyncClient, auth_headers, test_package, test_slot, booking_date, grip_socks, photo_pack
):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date, children=2, add_on_ids=[photo_pack.id]),
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert Decimal(data["add_ons_amount"]) == Decimal("249.00")
    assert Decimal(data["total_amount"]) == Decimal("449.00")
    assert sorted(data["add_on_ids"]) == sorted([grip_socks.id, photo_pack.id])


@pytest.mark.asyncio
async def test_unknown_add_on_rejects_booking(
    client: AsyncClient, auth_headers, test_package, test_slot, booking_date
):
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(test_package, test_slot, booking_date, add_on_ids=[999]),
        headers=auth_headers,
    )
    assert response.status_code == 400

    availability = await client.get(f"/api/v1/availability/{booking_date.isoformat()}/{test_slot.id}")
    assert availability.json()["booked"] == 0
