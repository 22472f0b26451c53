"""
Tests for slot availability and atomic capacity reservation.
"""

from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException
from prometheus_client import REGISTRY
from sqlalchemy import select, update

from app.models import Booking, Holiday, SlotOccupancy, TimeSlot
from app.services.availability_service import check_availability, slot_availability_for_date
from app.services import capacity_service
from app.services.capacity_service import MAX_RETRY_ATTEMPTS, release_capacity, reserve_capacity


async def add_booking(db, package, slot, on: date, children: int, status: str = "pending") -> Booking:
    booking = Booking(
        package_id=package.id,
        time_slot_id=slot.id,
        booking_date=on,
        number_of_children=children,
        children_ages=[4] * children,
        status=status,
        subtotal_amount=Decimal("100.00") * children,
        discount_amount=Decimal("0.00"),
        total_amount=Decimal("100.00") * children,
        parent_name="Parent",
        parent_phone="9876543210",
        parent_email="parent@example.com",
    )
    db.add(booking)
    await db.commit()
    return booking


@pytest.mark.asyncio
async def test_empty_slot_is_available(db_session, test_slot, booking_date):
    result = await check_availability(db_session, booking_date, test_slot.id, 4)
    assert result.available
    assert result.remaining == 15
    assert result.capacity == 15
    assert result.booked == 0
    assert result.reason is None


@pytest.mark.asyncio
async def test_remaining_spots_reported(db_session, test_package, test_slot, booking_date):
    await add_booking(db_session, test_package, test_slot, booking_date, 10)

    too_many = await check_availability(db_session, booking_date, test_slot.id, 6)
    assert not too_many.available
    assert too_many.remaining == 5
    assert too_many.reason == "Only 5 spots remaining"

    exact = await check_availability(db_session, booking_date, test_slot.id, 5)
    assert exact.available
    assert exact.remaining == 5


@pytest.mark.asyncio
async def test_full_slot(db_session, test_package, small_slot, booking_date):
    await add_booking(db_session, test_package, small_slot, booking_date, 3, status="confirmed")

    result = await check_availability(db_session, booking_date, small_slot.id, 1)
    assert not result.available
    assert result.remaining == 0
    assert result.reason == "Time slot is full"


@pytest.mark.asyncio
async def test_cancelled_bookings_do_not_count(db_session, test_package, small_slot, booking_date):
    await add_booking(db_session, test_package, small_slot, booking_date, 3, status="cancelled")

    result = await check_availability(db_session, booking_date, small_slot.id, 3)
    assert result.available
    assert result.booked == 0


@pytest.mark.asyncio
async def test_other_dates_and_slots_do_not_count(db_session, test_package, test_slot, small_slot, booking_date):
    await add_booking(db_session, test_package, small_slot, booking_date + timedelta(days=1), 3)
    await add_booking(db_session, test_package, test_slot, booking_date, 10)

    result = await check_availability(db_session, booking_date, small_slot.id, 3)
    assert result.available
    assert result.remaining == 3


@pytest.mark.asyncio
async def test_holiday_closes_every_slot(db_session, test_slot, booking_date):
    db_session.add(Holiday(date=booking_date, name="Diwali", type="holiday", is_active=True))
    await db_session.commit()

    result = await check_availability(db_session, booking_date, test_slot.id, 1)
    assert not result.available
    assert result.remaining == 0
    assert result.reason == "Diwali"


@pytest.mark.asyncio
async def test_inactive_holiday_is_ignored(db_session, test_slot, booking_date):
    db_session.add(Holiday(date=booking_date, name="Maintenance", type="maintenance", is_active=False))
    await db_session.commit()

    result = await check_availability(db_session, booking_date, test_slot.id, 1)
    assert result.available


@pytest.mark.asyncio
async def test_inactive_or_unknown_slot(db_session, booking_date):
    slot = TimeSlot(start_time=time(8, 0), end_time=time(9, 0), max_capacity=10, is_active=False)
    db_session.add(slot)
    await db_session.commit()

    inactive = await check_availability(db_session, booking_date, slot.id, 1)
    assert not inactive.available
    assert inactive.reason == "Time slot not available"

    unknown = await check_availability(db_session, booking_date, 9999, 1)
    assert not unknown.available
    assert unknown.reason == "Time slot not available"


@pytest.mark.asyncio
async def test_non_positive_request_rejected(db_session, test_slot, booking_date):
    with pytest.raises(ValueError):
        await check_availability(db_session, booking_date, test_slot.id, 0)


@pytest.mark.asyncio
async def test_slot_availability_for_date(db_session, test_package, test_slot, small_slot, booking_date):
    await add_booking(db_session, test_package, test_slot, booking_date, 4)

    views = {v.time_slot_id: v for v in await slot_availability_for_date(db_session, booking_date)}
    assert views[test_slot.id].remaining == 11
    assert views[test_slot.id].start_time == "10:00"
    assert views[small_slot.id].remaining == 3
    assert all(v.available for v in views.values())


@pytest.mark.asyncio
async def test_reserve_capacity_enforces_ceiling(db_session, small_slot, booking_date):
    occupancy = await reserve_capacity(db_session, small_slot, booking_date, 2)
    assert occupancy.booked_children == 2
    assert occupancy.version == 2

    with pytest.raises(HTTPException) as exc_info:
        await reserve_capacity(db_session, small_slot, booking_date, 2)
    assert exc_info.value.status_code == 409
    assert "Remaining: 1" in exc_info.value.detail

    occupancy = await reserve_capacity(db_session, small_slot, booking_date, 1)
    assert occupancy.booked_children == 3


@pytest.mark.asyncio
async def test_occupancy_seeded_from_existing_bookings(db_session, test_package, small_slot, booking_date):
    await add_booking(db_session, test_package, small_slot, booking_date, 2)

    with pytest.raises(HTTPException):
        await reserve_capacity(db_session, small_slot, booking_date, 2)

    occupancy = await reserve_capacity(db_session, small_slot, booking_date, 1)
    assert occupancy.booked_children == 3


@pytest.mark.asyncio
async def test_release_capacity_frees_places(db_session, small_slot, booking_date):
    await reserve_capacity(db_session, small_slot, booking_date, 3)
    await release_capacity(db_session, small_slot.id, booking_date, 2)

    row = (
        await db_session.execute(
            select(SlotOccupancy)
            .where(SlotOccupancy.time_slot_id == small_slot.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert row.booked_children == 1

    occupancy = await reserve_capacity(db_session, small_slot, booking_date, 2)
    assert occupancy.booked_children == 3


def bump_version_after_read(monkeypatch, times: int) -> dict:
    """Make the occupancy row change under the reader for the first `times` reads."""
    real_get_occupancy = capacity_service._get_occupancy
    reads = {"count": 0}

    async def racing_read(db, time_slot_id, booking_date):
        occupancy = await real_get_occupancy(db, time_slot_id, booking_date)
        reads["count"] += 1
        if reads["count"] <= times:
            # Another writer commits between our read and our UPDATE
            await db.execute(
                update(SlotOccupancy)
                .where(SlotOccupancy.id == occupancy.id)
                .values(version=SlotOccupancy.version + 1)
                .execution_options(synchronize_session=False)
            )
        return occupancy

    monkeypatch.setattr(capacity_service, "_get_occupancy", racing_read)
    return reads


def retry_count() -> float:
    return REGISTRY.get_sample_value("capacity_retry_attempts_total") or 0.0


@pytest.mark.asyncio
async def test_version_conflict_is_retried(monkeypatch, db_session, small_slot, booking_date):
    reads = bump_version_after_read(monkeypatch, times=1)
    retries_before = retry_count()

    occupancy = await reserve_capacity(db_session, small_slot, booking_date, 2)

    assert reads["count"] == 2
    assert occupancy.booked_children == 2
    assert occupancy.version == 3
    assert retry_count() == retries_before + 1


@pytest.mark.asyncio
async def test_persistent_conflict_gives_up_with_409(monkeypatch, db_session, small_slot, booking_date):
    reads = bump_version_after_read(monkeypatch, times=MAX_RETRY_ATTEMPTS)
    retries_before = retry_count()

    with pytest.raises(HTTPException) as exc_info:
        await reserve_capacity(db_session, small_slot, booking_date, 2)
    assert exc_info.value.status_code == 409
    assert "high demand" in exc_info.value.detail
    assert reads["count"] == MAX_RETRY_ATTEMPTS
    assert retry_count() == retries_before + MAX_RETRY_ATTEMPTS

    row = (
        await db_session.execute(
            select(SlotOccupancy)
            .where(SlotOccupancy.time_slot_id == small_slot.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert row.booked_children == 0
