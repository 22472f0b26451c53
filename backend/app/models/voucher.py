"""
Discount voucher model.

`used_count` is only ever changed through a conditional UPDATE so it
cannot pass `usage_limit` under concurrent redemptions.
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, JSON, CheckConstraint

from app.db.base import Base, TimestampMixin


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class DiscountVoucher(Base, TimestampMixin):
    __tablename__ = "discount_vouchers"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    max_discount = Column(Numeric(10, 2), nullable=True)  # percentage vouchers only
    min_amount = Column(Numeric(10, 2), nullable=True)
    applicable_packages = Column(JSON, nullable=True)  # package ids; empty means all
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_till = Column(DateTime(timezone=True), nullable=False)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("discount_value >= 0", name="check_voucher_value_non_negative"),
        CheckConstraint("used_count >= 0", name="check_voucher_used_non_negative"),
        CheckConstraint(
            "discount_type IN ('percentage', 'fixed')", name="check_voucher_discount_type"
        ),
    )

    def __repr__(self) -> str:
        return f"<DiscountVoucher(code={self.code}, used={self.used_count}/{self.usage_limit})>"
