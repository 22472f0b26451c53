"""
Voucher lookup, admin CRUD and usage counting.

Usage is counted once per booking, at confirmation. Both counters are
moved with conditional UPDATEs, so concurrent confirmations can neither
double count a booking nor push a voucher past its limit.
"""

from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.voucher import DiscountVoucher
from app.schemas.voucher import VoucherCreate, VoucherUpdate
from app.services.pricing import VoucherCheck, validate_voucher
from app.core.metrics import record_voucher_redemption
from app.core.logging import get_logger

logger = get_logger(__name__)


async def get_voucher_by_code(db: AsyncSession, code: str) -> Optional[DiscountVoucher]:
    result = await db.execute(
        select(DiscountVoucher).where(func.upper(DiscountVoucher.code) == code.strip().upper())
    )
    return result.scalar_one_or_none()


async def resolve_voucher(
    db: AsyncSession,
    code: str,
    subtotal: Optional[Decimal] = None,
    package_id: Optional[int] = None,
) -> tuple[Optional[DiscountVoucher], VoucherCheck]:
    voucher = await get_voucher_by_code(db, code)
    check = validate_voucher(voucher, subtotal=subtotal, package_id=package_id)
    if not check.valid:
        logger.info("voucher_rejected", code=code, reason=check.reason)
    return voucher, check


async def increment_voucher_usage(db: AsyncSession, voucher_id: int) -> bool:
    """Bump used_count unless that would pass usage_limit. False if the limit was hit."""
    result = await db.execute(
        update(DiscountVoucher)
        .where(
            DiscountVoucher.id == voucher_id,
            or_(
                DiscountVoucher.usage_limit.is_(None),
                DiscountVoucher.used_count < DiscountVoucher.usage_limit,
            ),
        )
        .values(used_count=DiscountVoucher.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def redeem_voucher_for_booking(db: AsyncSession, booking: Booking) -> bool:
    """
    Count the booking's voucher exactly once.

    Only the caller that flips `voucher_redeemed` from false to true gets
    to increment the voucher; replays are no-ops.
    """
    if booking.voucher_id is None:
        return False

    claimed = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.voucher_redeemed.is_(False))
        .values(voucher_redeemed=True)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        record_voucher_redemption("duplicate")
        return False
    booking.voucher_redeemed = True

    if not await increment_voucher_usage(db, booking.voucher_id):
        # Discount was granted at quote time; the booking keeps it.
        record_voucher_redemption("limit_reached")
        logger.warning(
            "voucher_limit_reached_on_confirm",
            booking_id=booking.id,
            voucher_id=booking.voucher_id,
        )
        return False

    record_voucher_redemption("success")
    logger.info("voucher_redeemed", booking_id=booking.id, voucher_id=booking.voucher_id)
    return True


async def list_vouchers(db: AsyncSession) -> list[DiscountVoucher]:
    result = await db.execute(select(DiscountVoucher).order_by(DiscountVoucher.created_at.desc()))
    return list(result.scalars().all())


async def get_voucher(db: AsyncSession, voucher_id: int) -> DiscountVoucher:
    voucher = await db.get(DiscountVoucher, voucher_id)
    if not voucher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Voucher not found")
    return voucher


async def create_voucher(db: AsyncSession, data: VoucherCreate) -> DiscountVoucher:
    payload = data.model_dump()
    payload["code"] = payload["code"].strip().upper()
    payload["discount_type"] = data.discount_type.value
    if await get_voucher_by_code(db, payload["code"]):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Voucher code already exists")

    voucher = DiscountVoucher(**payload)
    db.add(voucher)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Voucher code already exists")
    await db.refresh(voucher)

    logger.info("voucher_created", voucher_id=voucher.id, code=voucher.code)
    return voucher


async def update_voucher(db: AsyncSession, voucher_id: int, data: VoucherUpdate) -> DiscountVoucher:
    voucher = await get_voucher(db, voucher_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(voucher, field, value)
    await db.flush()
    await db.refresh(voucher)
    logger.info("voucher_updated", voucher_id=voucher.id)
    return voucher


async def deactivate_voucher(db: AsyncSession, voucher_id: int) -> DiscountVoucher:
    voucher = await get_voucher(db, voucher_id)
    voucher.is_active = False
    await db.flush()
    await db.refresh(voucher)
    logger.info("voucher_deactivated", voucher_id=voucher.id)
    return voucher
