"""
Packages, time slots, holidays, operating hours and add-ons.

Public package and time-slot listings are read through the catalog
cache; every write to packages or slots invalidates it.
"""

from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.catalog import AddOn, Holiday, OperatingHours, Package, TimeSlot
from app.schemas.catalog import (
    AddOnCreate,
    AddOnUpdate,
    BulkCapacityUpdate,
    HolidayCreate,
    OperatingHoursUpdate,
    PackageCreate,
    PackageResponse,
    PackageUpdate,
    TimeSlotCreate,
    TimeSlotResponse,
    TimeSlotUpdate,
)
from app.services.cache_service import get_cached_catalog, set_cached_catalog, invalidate_catalog_cache
from app.core.logging import get_logger

logger = get_logger(__name__)


# ---- Packages ----

async def list_active_packages(db: AsyncSession) -> list[dict]:
    cached = await get_cached_catalog("packages")
    if cached is not None:
        return cached

    result = await db.execute(
        select(Package).where(Package.is_active.is_(True)).order_by(Package.price, Package.id)
    )
    packages = [PackageResponse.model_validate(p).model_dump(mode="json") for p in result.scalars().all()]
    await set_cached_catalog("packages", packages)
    return packages


async def list_all_packages(db: AsyncSession) -> list[Package]:
    result = await db.execute(select(Package).order_by(Package.id))
    return list(result.scalars().all())


async def get_package(db: AsyncSession, package_id: int) -> Package:
    package = await db.get(Package, package_id)
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")
    return package


async def create_package(db: AsyncSession, data: PackageCreate) -> Package:
    payload = data.model_dump()
    payload["type"] = data.type.value
    package = Package(**payload)
    db.add(package)
    await db.flush()
    await db.refresh(package)
    await invalidate_catalog_cache()
    logger.info("package_created", package_id=package.id, name=package.name)
    return package


async def update_package(db: AsyncSession, package_id: int, data: PackageUpdate) -> Package:
    package = await get_package(db, package_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("type") is not None:
        changes["type"] = data.type.value
    for field, value in changes.items():
        setattr(package, field, value)
    await db.flush()
    await db.refresh(package)
    await invalidate_catalog_cache()
    logger.info("package_updated", package_id=package.id, fields=sorted(changes))
    return package


async def deactivate_package(db: AsyncSession, package_id: int) -> Package:
    """Soft delete; existing bookings keep pointing at the package."""
    package = await get_package(db, package_id)
    package.is_active = False
    await db.flush()
    await db.refresh(package)
    await invalidate_catalog_cache()
    logger.info("package_deactivated", package_id=package.id)
    return package


# ---- Time slots ----

async def list_active_time_slots(db: AsyncSession) -> list[dict]:
    cached = await get_cached_catalog("time_slots")
    if cached is not None:
        return cached

    result = await db.execute(
        select(TimeSlot).where(TimeSlot.is_active.is_(True)).order_by(TimeSlot.start_time)
    )
    slots = [TimeSlotResponse.model_validate(s).model_dump(mode="json") for s in result.scalars().all()]
    await set_cached_catalog("time_slots", slots)
    return slots


async def list_all_time_slots(db: AsyncSession) -> list[TimeSlot]:
    result = await db.execute(select(TimeSlot).order_by(TimeSlot.start_time))
    return list(result.scalars().all())


async def get_time_slot(db: AsyncSession, time_slot_id: int) -> TimeSlot:
    slot = await db.get(TimeSlot, time_slot_id)
    if not slot:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time slot not found")
    return slot


async def create_time_slot(db: AsyncSession, data: TimeSlotCreate) -> TimeSlot:
    slot = TimeSlot(**data.model_dump())
    db.add(slot)
    await db.flush()
    await db.refresh(slot)
    await invalidate_catalog_cache()
    logger.info("time_slot_created", time_slot_id=slot.id, label=slot.label, capacity=slot.max_capacity)
    return slot


async def update_time_slot(db: AsyncSession, time_slot_id: int, data: TimeSlotUpdate) -> TimeSlot:
    slot = await get_time_slot(db, time_slot_id)
    changes = data.model_dump(exclude_unset=True)
    start = changes.get("start_time", slot.start_time)
    end = changes.get("end_time", slot.end_time)
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_time must be after start_time",
        )
    for field, value in changes.items():
        setattr(slot, field, value)
    await db.flush()
    await db.refresh(slot)
    await invalidate_catalog_cache()
    logger.info("time_slot_updated", time_slot_id=slot.id, fields=sorted(changes))
    return slot


async def bulk_update_capacity(db: AsyncSession, data: BulkCapacityUpdate) -> int:
    """Set the same ceiling on every slot. Returns the number of slots changed."""
    result = await db.execute(
        update(TimeSlot).values(max_capacity=data.max_capacity)
    )
    await invalidate_catalog_cache()
    logger.info("time_slot_capacity_bulk_updated", max_capacity=data.max_capacity, slots=result.rowcount)
    return result.rowcount


# ---- Holidays ----

async def list_holidays(db: AsyncSession, from_date: Optional[date] = None) -> list[Holiday]:
    query = select(Holiday).order_by(Holiday.date)
    if from_date is not None:
        query = query.where(Holiday.date >= from_date)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_holiday(db: AsyncSession, data: HolidayCreate) -> Holiday:
    holiday = Holiday(**data.model_dump())
    db.add(holiday)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A holiday already exists on {data.date}",
        )
    await db.refresh(holiday)
    logger.info("holiday_created", holiday_id=holiday.id, date=str(holiday.date), name=holiday.name)
    return holiday


async def delete_holiday(db: AsyncSession, holiday_id: int) -> None:
    holiday = await db.get(Holiday, holiday_id)
    if not holiday:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Holiday not found")
    await db.delete(holiday)
    await db.flush()
    logger.info("holiday_deleted", holiday_id=holiday_id)


# ---- Operating hours ----

async def list_operating_hours(db: AsyncSession) -> list[OperatingHours]:
    result = await db.execute(select(OperatingHours).order_by(OperatingHours.day_of_week))
    return list(result.scalars().all())


async def get_operating_hours_for_day(db: AsyncSession, day_of_week: int) -> OperatingHours:
    result = await db.execute(select(OperatingHours).where(OperatingHours.day_of_week == day_of_week))
    hours = result.scalar_one_or_none()
    if not hours:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No operating hours set for day {day_of_week}",
        )
    return hours


async def set_operating_hours(db: AsyncSession, data: OperatingHoursUpdate) -> list[OperatingHours]:
    """Upsert the listed weekdays; days not listed keep their current hours."""
    existing = {hours.day_of_week: hours for hours in await list_operating_hours(db)}
    for entry in data.days:
        hours = existing.get(entry.day_of_week)
        if hours is None:
            db.add(OperatingHours(**entry.model_dump()))
            continue
        hours.open_time = entry.open_time
        hours.close_time = entry.close_time
        hours.is_open = entry.is_open
    await db.flush()
    logger.info("operating_hours_updated", days=sorted(entry.day_of_week for entry in data.days))

    result = await db.execute(
        select(OperatingHours)
        .order_by(OperatingHours.day_of_week)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---- Add-ons ----

async def list_active_add_ons(db: AsyncSession, package_id: Optional[int] = None) -> list[AddOn]:
    result = await db.execute(
        select(AddOn).where(AddOn.is_active.is_(True)).order_by(AddOn.display_order, AddOn.id)
    )
    add_ons = list(result.scalars().all())
    if package_id is not None:
        add_ons = [add_on for add_on in add_ons if add_on.applies_to(package_id)]
    return add_ons


async def list_all_add_ons(db: AsyncSession) -> list[AddOn]:
    result = await db.execute(select(AddOn).order_by(AddOn.display_order, AddOn.id))
    return list(result.scalars().all())


async def get_add_on(db: AsyncSession, add_on_id: int) -> AddOn:
    add_on = await db.get(AddOn, add_on_id)
    if not add_on:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Add-on not found")
    return add_on


async def create_add_on(db: AsyncSession, data: AddOnCreate) -> AddOn:
    add_on = AddOn(**data.model_dump())
    db.add(add_on)
    await db.flush()
    await db.refresh(add_on)
    logger.info("add_on_created", add_on_id=add_on.id, name=add_on.name, price=str(add_on.price))
    return add_on


async def update_add_on(db: AsyncSession, add_on_id: int, data: AddOnUpdate) -> AddOn:
    add_on = await get_add_on(db, add_on_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(add_on, field, value)
    await db.flush()
    await db.refresh(add_on)
    logger.info("add_on_updated", add_on_id=add_on.id, fields=sorted(changes))
    return add_on


async def deactivate_add_on(db: AsyncSession, add_on_id: int) -> AddOn:
    add_on = await get_add_on(db, add_on_id)
    add_on.is_active = False
    await db.flush()
    await db.refresh(add_on)
    logger.info("add_on_deactivated", add_on_id=add_on.id)
    return add_on


async def resolve_add_ons(db: AsyncSession, package_id: int, add_on_ids: list[int]) -> list[AddOn]:
    """
    The add-ons to charge on a booking of this package.

    Every requested id must be an active add-on offered with the package,
    otherwise 400. Required add-ons are included whether requested or not.
    """
    offered = {add_on.id: add_on for add_on in await list_active_add_ons(db, package_id)}
    unknown = sorted(set(add_on_ids) - offered.keys())
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Add-on {unknown[0]} is not available for this package",
        )

    chosen = set(add_on_ids) | {add_on.id for add_on in offered.values() if add_on.is_required}
    return [add_on for add_on in offered.values() if add_on.id in chosen]
