"""
Booking price and voucher arithmetic.

Everything here is pure: no database access and no mutation of the
voucher passed in, so quotes can be recomputed freely (on every UI
re-render, say) without side effects. Usage counting happens in
voucher_service once a booking is confirmed.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Protocol, Sequence

from pydantic import BaseModel

from app.models.voucher import DiscountType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


class VoucherTerms(Protocol):
    discount_type: str
    discount_value: Decimal
    max_discount: Optional[Decimal]


class PriceQuote(BaseModel):
    subtotal: Decimal
    discount_applied: Decimal
    add_ons_amount: Decimal = ZERO
    total: Decimal


class VoucherCheck(BaseModel):
    valid: bool
    reason: Optional[str] = None


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def compute_discount(subtotal: Decimal, voucher: VoucherTerms) -> Decimal:
    value = Decimal(voucher.discount_value)
    if voucher.discount_type == DiscountType.PERCENTAGE.value:
        discount = subtotal * value / HUNDRED
        if voucher.max_discount is not None:
            discount = min(discount, Decimal(voucher.max_discount))
    elif voucher.discount_type == DiscountType.FIXED.value:
        discount = value
    else:
        raise ValueError(f"Unknown discount type: {voucher.discount_type}")
    return min(_money(discount), subtotal)


def compute_total(
    unit_price: Decimal,
    child_count: int,
    voucher: Optional[VoucherTerms] = None,
    add_ons: Sequence[Decimal] = (),
) -> PriceQuote:
    """
    Price N children at the package's per-child rate, less any discount.

    The voucher must already have passed validate_voucher(). The total
    never drops below zero and `discount_applied` is what was actually
    taken off, so a fixed voucher larger than the subtotal reports the
    subtotal. Add-on prices are charged once each on top of the
    discounted amount; vouchers never reduce them.
    """
    if child_count < 1:
        raise ValueError("child_count must be a positive integer")

    subtotal = _money(Decimal(unit_price) * child_count)
    discount = compute_discount(subtotal, voucher) if voucher is not None else ZERO
    extras = _money(sum((Decimal(price) for price in add_ons), ZERO))
    total = max(subtotal - discount, ZERO) + extras
    return PriceQuote(
        subtotal=subtotal, discount_applied=discount, add_ons_amount=extras, total=_money(total)
    )


def validate_voucher(
    voucher,
    now: Optional[datetime] = None,
    subtotal: Optional[Decimal] = None,
    package_id: Optional[int] = None,
) -> VoucherCheck:
    """
    Decide whether a voucher may be applied right now.

    Rejections are returned rather than raised; callers choose whether
    to drop the discount or refuse the booking.
    """
    if voucher is None:
        return VoucherCheck(valid=False, reason="not found")
    if not voucher.is_active:
        return VoucherCheck(valid=False, reason="inactive")

    now = _as_utc(now or datetime.now(timezone.utc))
    if now < _as_utc(voucher.valid_from):
        return VoucherCheck(valid=False, reason="not yet valid")
    if now > _as_utc(voucher.valid_till):
        return VoucherCheck(valid=False, reason="expired")

    if voucher.usage_limit is not None and (voucher.used_count or 0) >= voucher.usage_limit:
        return VoucherCheck(valid=False, reason="usage limit exceeded")

    if subtotal is not None and voucher.min_amount is not None and subtotal < Decimal(voucher.min_amount):
        return VoucherCheck(valid=False, reason="minimum amount not met")

    if package_id is not None and not _applies_to(voucher.applicable_packages, package_id):
        return VoucherCheck(valid=False, reason="not applicable to package")

    return VoucherCheck(valid=True)


def _applies_to(applicable: Optional[Sequence], package_id: int) -> bool:
    if not applicable:
        return True
    return str(package_id) in {str(p) for p in applicable}
