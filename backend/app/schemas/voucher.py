"""
Pydantic schemas for discount vouchers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from app.models.voucher import DiscountType


class VoucherCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    max_discount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    applicable_packages: Optional[list[str]] = None
    valid_from: datetime
    valid_till: datetime
    usage_limit: Optional[int] = Field(None, gt=0)
    is_active: bool = True

    @model_validator(mode="after")
    def check_terms(self):
        if self.valid_till <= self.valid_from:
            raise ValueError("valid_till must be after valid_from")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        if self.discount_type == DiscountType.FIXED and self.max_discount is not None:
            raise ValueError("max_discount only applies to percentage vouchers")
        return self


class VoucherUpdate(BaseModel):
    discount_value: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    max_discount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    applicable_packages: Optional[list[str]] = None
    valid_from: Optional[datetime] = None
    valid_till: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class VoucherResponse(BaseModel):
    id: int
    code: str
    discount_type: str
    discount_value: Decimal
    max_discount: Optional[Decimal]
    min_amount: Optional[Decimal]
    applicable_packages: Optional[list[str]]
    valid_from: datetime
    valid_till: datetime
    usage_limit: Optional[int]
    used_count: int
    is_active: bool

    model_config = {"from_attributes": True}


class VoucherPublic(BaseModel):
    """What a customer sees after entering a code."""

    code: str
    discount_type: str
    discount_value: Decimal
    max_discount: Optional[Decimal]
    min_amount: Optional[Decimal]
    valid_till: datetime

    model_config = {"from_attributes": True}
