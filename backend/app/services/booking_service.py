"""
Booking lifecycle: quote, create, status changes and payment confirmation.

Creating a booking is check, price, reserve, insert:

  1. check_availability() turns holidays, inactive slots and full slots
     into a 409 with a human-readable reason
  2. the voucher (if any) is validated and the price computed
  3. capacity_service.reserve_capacity() claims the places atomically;
     losing a race there is also a 409
  4. the booking row is inserted as `pending`

Voucher usage is not counted until the booking is confirmed, so
repeated quotes and abandoned checkouts never consume a voucher.
"""

import time
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.catalog import AddOn, Package, TimeSlot
from app.models.user import User, Permission
from app.models.voucher import DiscountVoucher
from app.schemas.booking import BookingCreate, BookingQuoteRequest, BookingQuoteResponse
from app.schemas.feedback import AnalyticsSummary, PackagePopularity
from app.services.availability_service import check_availability
from app.services.booking_status import InvalidStatusTransition, apply_transition
from app.services.capacity_service import reserve_capacity, release_capacity
from app.services.catalog_service import resolve_add_ons
from app.services.notification_service import BookingNotice
from app.services.pricing import PriceQuote, compute_total
from app.services.voucher_service import resolve_voucher, redeem_voucher_for_booking
from app.core.config import get_settings
from app.core.metrics import booking_latency, record_booking_attempt, record_status_change
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


async def get_active_package(db: AsyncSession, package_id: int) -> Package:
    package = await db.get(Package, package_id)
    if not package or not package.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Package {package_id} not found",
        )
    return package


async def _price(
    db: AsyncSession,
    package: Package,
    children: int,
    voucher_code: Optional[str],
    add_on_ids: list[int],
) -> tuple[PriceQuote, Optional[DiscountVoucher], list[AddOn]]:
    add_ons = await resolve_add_ons(db, package.id, add_on_ids)
    voucher = None
    if voucher_code:
        subtotal = compute_total(package.price, children).subtotal
        voucher, check = await resolve_voucher(db, voucher_code, subtotal=subtotal, package_id=package.id)
        if not check.valid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Voucher {voucher_code}: {check.reason}",
            )
    quote = compute_total(package.price, children, voucher, [add_on.price for add_on in add_ons])
    return quote, voucher, add_ons


async def quote_booking(db: AsyncSession, data: BookingQuoteRequest) -> BookingQuoteResponse:
    """Price a booking without touching capacity or voucher usage."""
    package = await get_active_package(db, data.package_id)
    quote, voucher, add_ons = await _price(
        db, package, data.number_of_children, data.voucher_code, data.add_on_ids
    )
    return BookingQuoteResponse(
        package_id=package.id,
        number_of_children=data.number_of_children,
        unit_price=Decimal(package.price),
        subtotal=quote.subtotal,
        discount_applied=quote.discount_applied,
        add_ons_amount=quote.add_ons_amount,
        total=quote.total,
        voucher_code=voucher.code if voucher else None,
        add_on_ids=[add_on.id for add_on in add_ons],
    )


async def _insert_booking(
    db: AsyncSession,
    user_id: Optional[int],
    data: BookingCreate,
    initial_status: BookingStatus,
) -> Booking:
    start = time.perf_counter()

    if data.booking_date < date.today():
        record_booking_attempt("unavailable")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Booking date cannot be in the past",
        )

    package = await get_active_package(db, data.package_id)

    availability = await check_availability(
        db, data.booking_date, data.time_slot_id, data.number_of_children
    )
    if not availability.available:
        record_booking_attempt("unavailable")
        logger.info(
            "booking_rejected_unavailable",
            time_slot_id=data.time_slot_id,
            date=str(data.booking_date),
            requested=data.number_of_children,
            reason=availability.reason,
        )
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=availability.reason)

    try:
        quote, voucher, add_ons = await _price(
            db, package, data.number_of_children, data.voucher_code, data.add_on_ids
        )
    except HTTPException:
        record_booking_attempt("price_rejected")
        raise

    slot = await db.get(TimeSlot, data.time_slot_id)
    try:
        await reserve_capacity(db, slot, data.booking_date, data.number_of_children)
    except HTTPException:
        record_booking_attempt("conflict")
        raise

    booking = Booking(
        user_id=user_id,
        package_id=package.id,
        time_slot_id=slot.id,
        booking_date=data.booking_date,
        number_of_children=data.number_of_children,
        children_ages=list(data.children_ages),
        status=initial_status.value,
        subtotal_amount=quote.subtotal,
        discount_amount=quote.discount_applied,
        add_ons_amount=quote.add_ons_amount,
        add_on_ids=[add_on.id for add_on in add_ons],
        total_amount=quote.total,
        voucher_id=voucher.id if voucher else None,
        voucher_redeemed=False,
        payment_status=PaymentStatus.PENDING.value,
        parent_name=data.parent_name,
        parent_phone=data.parent_phone,
        parent_email=data.parent_email,
        special_requests=data.special_requests,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)

    record_booking_attempt("success")
    booking_latency.observe(time.perf_counter() - start)
    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        time_slot_id=slot.id,
        date=str(data.booking_date),
        children=data.number_of_children,
        total=str(quote.total),
        status=initial_status.value,
    )
    return booking


async def create_booking(db: AsyncSession, user: Optional[User], data: BookingCreate) -> Booking:
    """Customer booking: inserted as pending, awaiting payment."""
    return await _insert_booking(db, user.id if user else None, data, BookingStatus.PENDING)


async def create_admin_booking(db: AsyncSession, data: BookingCreate) -> Booking:
    """Walk-in booking taken at the desk: confirmed on the spot."""
    booking = await _insert_booking(db, None, data, BookingStatus.CONFIRMED)
    await redeem_voucher_for_booking(db, booking)
    record_status_change(BookingStatus.CONFIRMED.value)
    return booking


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    booking = await db.get(Booking, booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def get_booking_for_user(db: AsyncSession, booking_id: int, user: User) -> Booking:
    """Owners see their own bookings; staff with view_bookings see any."""
    booking = await get_booking(db, booking_id)
    if booking.user_id != user.id and not user.has_permission(Permission.VIEW_BOOKINGS):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc())
    )
    return list(result.scalars().all())


async def list_bookings_by_range(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    booking_status: Optional[BookingStatus] = None,
) -> list[Booking]:
    """Bookings whose session date falls in [start_date, end_date]."""
    end_date = end_date or date.today()
    start_date = start_date or end_date - timedelta(days=settings.ADMIN_BOOKING_LOOKBACK_DAYS)

    query = select(Booking).where(
        Booking.booking_date >= start_date,
        Booking.booking_date <= end_date,
    )
    if booking_status is not None:
        query = query.where(Booking.status == booking_status.value)

    result = await db.execute(query.order_by(Booking.booking_date, Booking.time_slot_id, Booking.id))
    return list(result.scalars().all())


async def _transition(db: AsyncSession, booking: Booking, target: BookingStatus) -> bool:
    try:
        changed = apply_transition(booking, target)
    except InvalidStatusTransition as e:
        logger.warning(
            "booking_transition_rejected",
            booking_id=booking.id,
            current=e.current.value,
            target=e.target.value,
        )
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not changed:
        return False

    if target == BookingStatus.CANCELLED:
        await release_capacity(db, booking.time_slot_id, booking.booking_date, booking.number_of_children)
    elif target == BookingStatus.CONFIRMED:
        await redeem_voucher_for_booking(db, booking)

    record_status_change(target.value)
    logger.info("booking_status_changed", booking_id=booking.id, status=target.value)
    return True


async def update_booking_status(db: AsyncSession, booking_id: int, target: BookingStatus) -> Booking:
    """
    Move a booking through the state machine.

    Cancelling hands the children's places back to the slot; confirming
    counts the voucher. Setting the current status again is a no-op.
    """
    booking = await get_booking(db, booking_id)
    await _transition(db, booking, BookingStatus(target))
    await db.flush()
    await db.refresh(booking)
    return booking


async def confirm_payment(db: AsyncSession, booking: Booking, order_id: str, payment_id: str) -> Booking:
    """Record a verified payment and confirm the booking."""
    booking.payment_order_id = order_id
    booking.payment_id = payment_id
    booking.payment_status = PaymentStatus.COMPLETED.value
    await _transition(db, booking, BookingStatus.CONFIRMED)
    await db.flush()
    await db.refresh(booking)
    logger.info("booking_payment_confirmed", booking_id=booking.id, payment_id=payment_id)
    return booking


def booking_notice(booking: Booking) -> BookingNotice:
    return BookingNotice(
        booking_id=booking.id,
        parent_name=booking.parent_name,
        parent_phone=booking.parent_phone,
        parent_email=booking.parent_email,
        package_name=booking.package.name,
        booking_date=booking.booking_date,
        time_slot=booking.time_slot.label,
        number_of_children=booking.number_of_children,
        total_amount=booking.total_amount,
        status=booking.status,
    )


async def get_analytics_summary(db: AsyncSession, limit: int = 5) -> AnalyticsSummary:
    """Counts by status, collected revenue and the most booked packages."""
    by_status = dict(
        (await db.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status))).all()
    )

    earned = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)
    revenue, children = (
        await db.execute(
            select(
                func.coalesce(func.sum(Booking.total_amount), 0),
                func.coalesce(func.sum(Booking.number_of_children), 0),
            ).where(Booking.status.in_(earned))
        )
    ).one()

    popular = (
        await db.execute(
            select(Package.id, Package.name, func.count(Booking.id).label("bookings"))
            .join(Booking, Booking.package_id == Package.id)
            .where(Booking.status != BookingStatus.CANCELLED.value)
            .group_by(Package.id, Package.name)
            .order_by(func.count(Booking.id).desc(), Package.id)
            .limit(limit)
        )
    ).all()

    return AnalyticsSummary(
        bookings_by_status={s.value: int(by_status.get(s.value, 0)) for s in BookingStatus},
        total_bookings=sum(int(n) for n in by_status.values()),
        revenue=Decimal(str(revenue)).quantize(Decimal("0.01")),
        children_booked=int(children),
        popular_packages=[
            PackagePopularity(package_id=pid, name=name, bookings=count) for pid, name, count in popular
        ],
    )
