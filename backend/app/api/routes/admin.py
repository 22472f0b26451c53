"""
Back-office endpoints. Each route declares the capability it needs.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_permission
from app.db.session import get_db
from app.models.booking import BookingStatus
from app.models.user import Permission, User, UserRole
from app.schemas.booking import (
    BirthdayPartyResponse,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
)
from app.schemas.catalog import (
    AddOnCreate,
    AddOnResponse,
    AddOnUpdate,
    BulkCapacityUpdate,
    HolidayCreate,
    HolidayResponse,
    OperatingHoursResponse,
    OperatingHoursUpdate,
    PackageCreate,
    PackageResponse,
    PackageUpdate,
    TimeSlotCreate,
    TimeSlotResponse,
    TimeSlotUpdate,
)
from app.schemas.feedback import AnalyticsSummary, EnquiryResponse, EnquiryStatusUpdate, ReviewResponse
from app.schemas.user import UserPermissionsUpdate, UserResponse, UserRoleUpdate
from app.schemas.voucher import VoucherCreate, VoucherResponse, VoucherUpdate
from app.services import (
    auth_service,
    booking_service,
    catalog_service,
    feedback_service,
    party_service,
    voucher_service,
)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ---- Packages ----

@router.get("/packages", response_model=list[PackageResponse])
async def list_packages(
    _: User = Depends(require_permission(Permission.VIEW_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.list_all_packages(db)


@router.post("/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
async def create_package(
    data: PackageCreate,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.create_package(db, data)


@router.patch("/packages/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: int,
    data: PackageUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.update_package(db, package_id, data)


@router.delete("/packages/{package_id}", response_model=PackageResponse)
async def deactivate_package(
    package_id: int,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.deactivate_package(db, package_id)


# ---- Time slots ----

@router.get("/time-slots", response_model=list[TimeSlotResponse])
async def list_time_slots(
    _: User = Depends(require_permission(Permission.VIEW_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.list_all_time_slots(db)


@router.post("/time-slots", response_model=TimeSlotResponse, status_code=status.HTTP_201_CREATED)
async def create_time_slot(
    data: TimeSlotCreate,
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.create_time_slot(db, data)


@router.patch("/time-slots/{time_slot_id}", response_model=TimeSlotResponse)
async def update_time_slot(
    time_slot_id: int,
    data: TimeSlotUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.update_time_slot(db, time_slot_id, data)


@router.put("/time-slots/capacity")
async def bulk_update_capacity(
    data: BulkCapacityUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    updated = await catalog_service.bulk_update_capacity(db, data)
    return {"updated": updated, "max_capacity": data.max_capacity}


# ---- Holidays ----

@router.get("/holidays", response_model=list[HolidayResponse])
async def list_holidays(
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.list_holidays(db)


@router.post("/holidays", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday(
    data: HolidayCreate,
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.create_holiday(db, data)


@router.delete("/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    holiday_id: int,
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    await catalog_service.delete_holiday(db, holiday_id)


# ---- Operating hours ----

@router.get("/operating-hours", response_model=list[OperatingHoursResponse])
async def list_operating_hours(
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.list_operating_hours(db)


@router.put("/operating-hours", response_model=list[OperatingHoursResponse])
async def set_operating_hours(
    data: OperatingHoursUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_SETTINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.set_operating_hours(db, data)


# ---- Add-ons ----

@router.get("/add-ons", response_model=list[AddOnResponse])
async def list_add_ons(
    _: User = Depends(require_permission(Permission.VIEW_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.list_all_add_ons(db)


@router.post("/add-ons", response_model=AddOnResponse, status_code=status.HTTP_201_CREATED)
async def create_add_on(
    data: AddOnCreate,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.create_add_on(db, data)


@router.patch("/add-ons/{add_on_id}", response_model=AddOnResponse)
async def update_add_on(
    add_on_id: int,
    data: AddOnUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.update_add_on(db, add_on_id, data)


@router.delete("/add-ons/{add_on_id}", response_model=AddOnResponse)
async def deactivate_add_on(
    add_on_id: int,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_service.deactivate_add_on(db, add_on_id)


# ---- Vouchers ----

@router.get("/vouchers", response_model=list[VoucherResponse])
async def list_vouchers(
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await voucher_service.list_vouchers(db)


@router.post("/vouchers", response_model=VoucherResponse, status_code=status.HTTP_201_CREATED)
async def create_voucher(
    data: VoucherCreate,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await voucher_service.create_voucher(db, data)


@router.patch("/vouchers/{voucher_id}", response_model=VoucherResponse)
async def update_voucher(
    voucher_id: int,
    data: VoucherUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await voucher_service.update_voucher(db, voucher_id, data)


@router.delete("/vouchers/{voucher_id}", response_model=VoucherResponse)
async def deactivate_voucher(
    voucher_id: int,
    _: User = Depends(require_permission(Permission.MANAGE_PACKAGES)),
    db: AsyncSession = Depends(get_db),
):
    return await voucher_service.deactivate_voucher(db, voucher_id)


# ---- Bookings ----

@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    _: User = Depends(require_permission(Permission.VIEW_BOOKINGS)),
    db: AsyncSession = Depends(get_db),
):
    """Bookings by session date; defaults to the last 30 days."""
    return await booking_service.list_bookings_by_range(db, start_date, end_date, booking_status)


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    _: User = Depends(require_permission(Permission.MANAGE_BOOKINGS)),
    db: AsyncSession = Depends(get_db),
):
    """Desk booking, confirmed immediately."""
    return await booking_service.create_admin_booking(db, data)


@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_BOOKINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.update_booking_status(db, booking_id, data.status)


# ---- Birthday parties ----

@router.get("/birthday-parties", response_model=list[BirthdayPartyResponse])
async def list_parties(
    party_status: Optional[BookingStatus] = Query(None, alias="status"),
    _: User = Depends(require_permission(Permission.VIEW_BOOKINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await party_service.list_parties(db, party_status)


@router.patch("/birthday-parties/{party_id}/status", response_model=BirthdayPartyResponse)
async def update_party_status(
    party_id: int,
    data: BookingStatusUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_BOOKINGS)),
    db: AsyncSession = Depends(get_db),
):
    return await party_service.update_party_status(db, party_id, data.status)


# ---- Users ----

@router.get("/users", response_model=list[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    _: User = Depends(require_permission(Permission.VIEW_USERS)),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.list_users(db, role)


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: int,
    data: UserRoleUpdate,
    acting_user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.update_user_role(db, user_id, data.role, acting_user)


@router.put("/users/{user_id}/permissions", response_model=UserResponse)
async def update_user_permissions(
    user_id: int,
    data: UserPermissionsUpdate,
    acting_user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.update_user_permissions(db, user_id, data.permissions, acting_user)


# ---- Reviews & enquiries ----

@router.get("/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    _: User = Depends(require_permission(Permission.MODERATE_REVIEWS)),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.list_reviews(db, approved_only=False)


@router.post("/reviews/{review_id}/approve", response_model=ReviewResponse)
async def approve_review(
    review_id: int,
    _: User = Depends(require_permission(Permission.MODERATE_REVIEWS)),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.set_review_approval(db, review_id, True)


@router.get("/enquiries", response_model=list[EnquiryResponse])
async def list_enquiries(
    enquiry_status: Optional[str] = Query(None, alias="status"),
    _: User = Depends(require_permission(Permission.MANAGE_CONTENT)),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.list_enquiries(db, enquiry_status)


@router.patch("/enquiries/{enquiry_id}/status", response_model=EnquiryResponse)
async def update_enquiry_status(
    enquiry_id: int,
    data: EnquiryStatusUpdate,
    _: User = Depends(require_permission(Permission.MANAGE_CONTENT)),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.update_enquiry_status(db, enquiry_id, data.status)


# ---- Analytics ----

@router.get("/analytics/summary", response_model=AnalyticsSummary)
async def analytics_summary(
    _: User = Depends(require_permission(Permission.VIEW_ANALYTICS)),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_analytics_summary(db)
