"""
Public catalog: packages, add-ons, daily time slots, opening hours,
holidays and availability.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.booking import AvailabilityResponse
from app.schemas.catalog import (
    AddOnResponse,
    HolidayResponse,
    OperatingHoursResponse,
    PackageResponse,
    TimeSlotResponse,
)
from app.services.availability_service import SlotAvailability, check_availability, slot_availability_for_date
from app.services.booking_service import get_active_package
from app.services import catalog_service

router = APIRouter(tags=["Catalog"])


@router.get("/packages", response_model=list[PackageResponse])
async def list_packages(db: AsyncSession = Depends(get_db)):
    """Active packages, cheapest first. Served from cache when warm."""
    return await catalog_service.list_active_packages(db)


@router.get("/packages/{package_id}", response_model=PackageResponse)
async def get_package(package_id: int, db: AsyncSession = Depends(get_db)):
    return await get_active_package(db, package_id)


@router.get("/time-slots", response_model=list[TimeSlotResponse])
async def list_time_slots(db: AsyncSession = Depends(get_db)):
    return await catalog_service.list_active_time_slots(db)


@router.get("/time-slots/availability", response_model=list[SlotAvailability])
async def time_slots_for_date(
    on: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Remaining capacity of every active slot on a date."""
    return await slot_availability_for_date(db, on)


@router.get("/availability/{booking_date}/{time_slot_id}", response_model=AvailabilityResponse)
async def get_availability(
    booking_date: date,
    time_slot_id: int,
    children: int = Query(1, gt=0),
    db: AsyncSession = Depends(get_db),
):
    result = await check_availability(db, booking_date, time_slot_id, children)
    return AvailabilityResponse(
        date=booking_date,
        time_slot_id=time_slot_id,
        requested_children=children,
        **result.model_dump(),
    )


@router.get("/holidays", response_model=list[HolidayResponse])
async def upcoming_holidays(
    from_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.list_holidays(db, from_date or date.today())


@router.get("/add-ons", response_model=list[AddOnResponse])
async def list_add_ons(
    package_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Active add-ons, optionally only those offered with one package."""
    return await catalog_service.list_active_add_ons(db, package_id)


@router.get("/operating-hours", response_model=list[OperatingHoursResponse])
async def list_operating_hours(db: AsyncSession = Depends(get_db)):
    return await catalog_service.list_operating_hours(db)


@router.get("/operating-hours/{day_of_week}", response_model=OperatingHoursResponse)
async def operating_hours_for_day(
    day_of_week: int = Path(..., ge=0, le=6),
    db: AsyncSession = Depends(get_db),
):
    """Opening window for a weekday, 0 = Sunday."""
    return await catalog_service.get_operating_hours_for_day(db, day_of_week)
