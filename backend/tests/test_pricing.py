"""
Tests for booking price and voucher arithmetic.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.pricing import compute_discount, compute_total, validate_voucher

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_voucher(**overrides):
    terms = dict(
        discount_type="percentage",
        discount_value=Decimal("10"),
        max_discount=None,
        min_amount=None,
        applicable_packages=None,
        valid_from=NOW - timedelta(days=1),
        valid_till=NOW + timedelta(days=1),
        usage_limit=None,
        used_count=0,
        is_active=True,
    )
    terms.update(overrides)
    return SimpleNamespace(**terms)


def test_total_without_voucher():
    quote = compute_total(Decimal("100"), 3)
    assert quote.subtotal == Decimal("300.00")
    assert quote.discount_applied == Decimal("0.00")
    assert quote.total == Decimal("300.00")


def test_percentage_discount_is_capped():
    voucher = make_voucher(max_discount=Decimal("20"))
    quote = compute_total(Decimal("100"), 3, voucher)
    assert quote.discount_applied == Decimal("20.00")
    assert quote.total == Decimal("280.00")


def test_percentage_discount_under_cap():
    quote = compute_total(Decimal("100"), 1, make_voucher(max_discount=Decimal("50")))
    assert quote.discount_applied == Decimal("10.00")
    assert quote.total == Decimal("90.00")


def test_fixed_discount_never_goes_negative():
    voucher = make_voucher(discount_type="fixed", discount_value=Decimal("500"))
    quote = compute_total(Decimal("100"), 3, voucher)
    assert quote.total == Decimal("0.00")
    assert quote.discount_applied == Decimal("300.00")


def test_rounding_half_up_to_cents():
    voucher = make_voucher(discount_value=Decimal("12.5"))
    # 12.5% of 99.99 = 12.49875
    assert compute_discount(Decimal("99.99"), voucher) == Decimal("12.50")


def test_compute_total_is_idempotent():
    voucher = make_voucher(max_discount=Decimal("20"), used_count=2, usage_limit=5)
    first = compute_total(Decimal("100"), 3, voucher)
    second = compute_total(Decimal("100"), 3, voucher)
    assert first == second
    assert voucher.used_count == 2


@pytest.mark.parametrize("count", [0, -2])
def test_non_positive_child_count_rejected(count):
    with pytest.raises(ValueError):
        compute_total(Decimal("100"), count)


def test_unknown_discount_type_rejected():
    with pytest.raises(ValueError):
        compute_total(Decimal("100"), 1, make_voucher(discount_type="bogus"))


def test_validate_missing_voucher():
    check = validate_voucher(None, now=NOW)
    assert not check.valid
    assert check.reason == "not found"


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"is_active": False}, "inactive"),
        ({"valid_from": NOW + timedelta(hours=1)}, "not yet valid"),
        ({"valid_till": NOW - timedelta(hours=1)}, "expired"),
        ({"usage_limit": 3, "used_count": 3}, "usage limit exceeded"),
    ],
)
def test_validate_rejections(overrides, reason):
    check = validate_voucher(make_voucher(**overrides), now=NOW)
    assert not check.valid
    assert check.reason == reason


def test_validate_minimum_amount():
    voucher = make_voucher(min_amount=Decimal("500"))
    assert validate_voucher(voucher, now=NOW, subtotal=Decimal("300")).reason == "minimum amount not met"
    assert validate_voucher(voucher, now=NOW, subtotal=Decimal("500")).valid


def test_validate_package_restriction():
    voucher = make_voucher(applicable_packages=["2", "5"])
    assert validate_voucher(voucher, now=NOW, package_id=5).valid
    assert validate_voucher(voucher, now=NOW, package_id=3).reason == "not applicable to package"


def test_validate_accepts_naive_stored_datetimes():
    voucher = make_voucher(
        valid_from=(NOW - timedelta(days=1)).replace(tzinfo=None),
        valid_till=(NOW + timedelta(days=1)).replace(tzinfo=None),
    )
    assert validate_voucher(voucher, now=NOW).valid


def test_validate_unlimited_voucher():
    assert validate_voucher(make_voucher(usage_limit=None, used_count=1000), now=NOW).valid


def test_add_ons_charged_after_discount():
    voucher = make_voucher(discount_type="percentage", discount_value=Decimal("50"))
    quote = compute_total(Decimal("100"), 2, voucher, [Decimal("49.50"), Decimal("150")])
    assert quote.subtotal == Decimal("200.00")
    assert quote.discount_applied == Decimal("100.00")
    assert quote.add_ons_amount == Decimal("199.50")
    assert quote.total == Decimal("299.50")


def test_add_ons_survive_full_discount():
    voucher = make_voucher(discount_type="fixed", discount_value=Decimal("500"))
    quote = compute_total(Decimal("100"), 1, voucher, [Decimal("30")])
    assert quote.discount_applied == Decimal("100.00")
    assert quote.total == Decimal("30.00")
