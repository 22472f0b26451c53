"""
Time-slot availability for a given date.

The check is a read-only aggregate: it reserves nothing. Booking
creation follows it with capacity_service.reserve_capacity(), which is
the atomic guard against two requests both seeing the last spots.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.models.catalog import Holiday, OperatingHours, TimeSlot
from app.core.metrics import record_availability_check
from app.core.logging import get_logger

logger = get_logger(__name__)


class AvailabilityResult(BaseModel):
    available: bool
    remaining: int
    capacity: int = 0
    booked: int = 0
    reason: Optional[str] = None


class SlotAvailability(BaseModel):
    time_slot_id: int
    start_time: str
    end_time: str
    capacity: int
    booked: int
    remaining: int
    available: bool


async def get_active_holiday(db: AsyncSession, booking_date: date) -> Optional[Holiday]:
    result = await db.execute(
        select(Holiday).where(Holiday.date == booking_date, Holiday.is_active.is_(True))
    )
    return result.scalar_one_or_none()


def day_of_week(on: date) -> int:
    """0 = Sunday ... 6 = Saturday, matching OperatingHours.day_of_week."""
    return on.isoweekday() % 7


async def get_operating_hours(db: AsyncSession, on: date) -> Optional[OperatingHours]:
    result = await db.execute(
        select(OperatingHours).where(OperatingHours.day_of_week == day_of_week(on))
    )
    return result.scalar_one_or_none()


def _within_hours(slot: TimeSlot, hours: Optional[OperatingHours]) -> bool:
    if hours is None:
        return True
    return hours.is_open and hours.open_time <= slot.start_time and slot.end_time <= hours.close_time


async def sum_children_for_slot(db: AsyncSession, booking_date: date, time_slot_id: int) -> int:
    """Children on non-cancelled bookings for this exact (date, slot) pair."""
    result = await db.execute(
        select(func.coalesce(func.sum(Booking.number_of_children), 0)).where(
            Booking.time_slot_id == time_slot_id,
            Booking.booking_date == booking_date,
            Booking.status != BookingStatus.CANCELLED.value,
        )
    )
    return int(result.scalar_one())


async def check_availability(
    db: AsyncSession,
    booking_date: date,
    time_slot_id: int,
    requested_children: int,
) -> AvailabilityResult:
    """
    Can a booking of `requested_children` be accepted on this date and slot?

    Holidays and weekdays marked closed short-circuit everything. An
    unknown or inactive slot, or one outside that day's opening hours,
    is unavailable. Otherwise `remaining` is reported even when it is too
    small for this request, so callers can show "N spots left".
    """
    if requested_children < 1:
        raise ValueError("requested_children must be a positive integer")

    holiday = await get_active_holiday(db, booking_date)
    if holiday:
        record_availability_check("holiday")
        return AvailabilityResult(available=False, remaining=0, reason=holiday.name)

    hours = await get_operating_hours(db, booking_date)
    if hours is not None and not hours.is_open:
        record_availability_check("closed")
        return AvailabilityResult(
            available=False, remaining=0, reason=f"Closed on {booking_date:%A}s"
        )

    slot = await db.get(TimeSlot, time_slot_id)
    if slot is None or not slot.is_active:
        record_availability_check("invalid_slot")
        return AvailabilityResult(available=False, remaining=0, reason="Time slot not available")

    if not _within_hours(slot, hours):
        record_availability_check("closed")
        return AvailabilityResult(
            available=False, remaining=0, reason="Time slot is outside opening hours"
        )

    booked = await sum_children_for_slot(db, booking_date, time_slot_id)
    remaining = slot.max_capacity - booked

    if remaining >= requested_children:
        record_availability_check("available")
        return AvailabilityResult(
            available=True, remaining=remaining, capacity=slot.max_capacity, booked=booked
        )

    record_availability_check("insufficient")
    reason = "Time slot is full" if remaining <= 0 else f"Only {remaining} spots remaining"
    logger.debug(
        "availability_insufficient",
        time_slot_id=time_slot_id,
        date=str(booking_date),
        requested=requested_children,
        remaining=remaining,
    )
    return AvailabilityResult(
        available=False,
        remaining=remaining,
        capacity=slot.max_capacity,
        booked=booked,
        reason=reason,
    )


async def slot_availability_for_date(db: AsyncSession, booking_date: date) -> list[SlotAvailability]:
    """Capacity view of every active slot on a date; zero remaining when closed."""
    slots = (
        await db.execute(
            select(TimeSlot).where(TimeSlot.is_active.is_(True)).order_by(TimeSlot.start_time)
        )
    ).scalars().all()

    booked_by_slot = dict(
        (
            await db.execute(
                select(Booking.time_slot_id, func.sum(Booking.number_of_children))
                .where(
                    Booking.booking_date == booking_date,
                    Booking.status != BookingStatus.CANCELLED.value,
                )
                .group_by(Booking.time_slot_id)
            )
        ).all()
    )
    closed = await get_active_holiday(db, booking_date) is not None
    hours = await get_operating_hours(db, booking_date)

    views = []
    for slot in slots:
        booked = int(booked_by_slot.get(slot.id) or 0)
        remaining = 0 if closed or not _within_hours(slot, hours) else slot.max_capacity - booked
        views.append(
            SlotAvailability(
                time_slot_id=slot.id,
                start_time=slot.start_time.strftime("%H:%M"),
                end_time=slot.end_time.strftime("%H:%M"),
                capacity=slot.max_capacity,
                booked=booked,
                remaining=remaining,
                available=remaining > 0,
            )
        )
    return views
