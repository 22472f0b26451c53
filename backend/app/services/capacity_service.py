"""
Atomic capacity reservation for (time slot, date) pairs.

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Two parents try to book the last spots of the 10:00 slot at once.
  Both run check_availability(), both see 3 remaining, both insert.
  Result: more children in the room than the slot allows.

Solution:
  Each (slot, date) pair has a SlotOccupancy row with a running
  `booked_children` count and a `version` column.

  1. Read the occupancy row (seed it from the booking aggregate if new)
  2. UPDATE slot_occupancy
       SET booked_children = booked_children + N, version = version + 1
     WHERE id = :id AND version = :v AND booked_children + N <= :capacity
  3. If rows_affected == 0, someone else changed the row -> re-read, retry

  The capacity ceiling is part of the WHERE clause, so the write itself
  enforces the limit; the availability check only produces the message.
"""

from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import SlotOccupancy
from app.models.catalog import TimeSlot
from app.services.availability_service import sum_children_for_slot
from app.core.metrics import record_capacity_retry
from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3


async def _get_occupancy(db: AsyncSession, time_slot_id: int, booking_date: date) -> SlotOccupancy:
    result = await db.execute(
        select(SlotOccupancy).where(
            SlotOccupancy.time_slot_id == time_slot_id,
            SlotOccupancy.booking_date == booking_date,
        )
        .execution_options(populate_existing=True)
    )
    occupancy = result.scalar_one_or_none()
    if occupancy is not None:
        return occupancy

    booked = await sum_children_for_slot(db, booking_date, time_slot_id)
    occupancy = SlotOccupancy(
        time_slot_id=time_slot_id,
        booking_date=booking_date,
        booked_children=booked,
        version=1,
    )
    db.add(occupancy)
    try:
        await db.flush()
    except IntegrityError:
        # Another request seeded the same pair first
        await db.rollback()
        logger.info("occupancy_seed_conflict", time_slot_id=time_slot_id, date=str(booking_date))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Booking failed due to high demand. Please try again.",
        )
    return occupancy


async def reserve_capacity(
    db: AsyncSession,
    slot: TimeSlot,
    booking_date: date,
    children: int,
) -> SlotOccupancy:
    """
    Claim `children` places on the slot for the date, or raise 409.
    Retries up to MAX_RETRY_ATTEMPTS on version conflicts.
    """
    for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
        occupancy = await _get_occupancy(db, slot.id, booking_date)
        remaining = slot.max_capacity - occupancy.booked_children

        if remaining < children:
            logger.warning(
                "booking_failed_no_capacity",
                time_slot_id=slot.id,
                date=str(booking_date),
                requested=children,
                remaining=remaining,
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Not enough capacity. Requested: {children}, Remaining: {max(remaining, 0)}",
            )

        current_version = occupancy.version
        result = await db.execute(
            update(SlotOccupancy)
            .where(
                SlotOccupancy.id == occupancy.id,
                SlotOccupancy.version == current_version,
                SlotOccupancy.booked_children + children <= slot.max_capacity,
            )
            .values(
                booked_children=SlotOccupancy.booked_children + children,
                version=SlotOccupancy.version + 1,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            logger.info(
                "capacity_retry",
                time_slot_id=slot.id,
                date=str(booking_date),
                attempt=attempt,
                reason="version_conflict",
            )
            record_capacity_retry()
            # Drop the stale row so the next read sees the committed state
            db.expire(occupancy)
            if attempt == MAX_RETRY_ATTEMPTS:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Booking failed due to high demand. Please try again.",
                )
            continue

        await db.refresh(occupancy)
        return occupancy

    # Should not reach here, but just in case
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Capacity reservation failed unexpectedly",
    )


async def release_capacity(db: AsyncSession, time_slot_id: int, booking_date: date, children: int) -> None:
    """Give places back when a booking is cancelled."""
    await db.execute(
        update(SlotOccupancy)
        .where(
            SlotOccupancy.time_slot_id == time_slot_id,
            SlotOccupancy.booking_date == booking_date,
            SlotOccupancy.booked_children >= children,
        )
        .values(
            booked_children=SlotOccupancy.booked_children - children,
            version=SlotOccupancy.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    logger.info(
        "capacity_released",
        time_slot_id=time_slot_id,
        date=str(booking_date),
        children=children,
    )
