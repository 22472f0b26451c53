"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

from app.core.config import get_settings
from app.models.booking import BookingStatus

settings = get_settings()


class BookingQuoteRequest(BaseModel):
    package_id: int
    number_of_children: int = Field(..., gt=0, le=settings.MAX_CHILDREN_PER_BOOKING)
    voucher_code: Optional[str] = Field(None, max_length=50)
    add_on_ids: list[int] = Field(default_factory=list)


class BookingQuoteResponse(BaseModel):
    package_id: int
    number_of_children: int
    unit_price: Decimal
    subtotal: Decimal
    discount_applied: Decimal
    add_ons_amount: Decimal
    total: Decimal
    voucher_code: Optional[str] = None
    add_on_ids: list[int] = []


class BookingCreate(BaseModel):
    package_id: int
    time_slot_id: int
    booking_date: date
    number_of_children: int = Field(default=1, gt=0, le=settings.MAX_CHILDREN_PER_BOOKING)
    children_ages: list[int] = Field(default_factory=list)
    voucher_code: Optional[str] = Field(None, max_length=50)
    add_on_ids: list[int] = Field(default_factory=list)
    parent_name: str = Field(..., min_length=1, max_length=255)
    parent_phone: str = Field(..., min_length=7, max_length=30)
    parent_email: EmailStr
    special_requests: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_children_ages(self):
        if len(self.children_ages) != self.number_of_children:
            raise ValueError("children_ages must list one age per child")
        if any(age < 0 or age > 17 for age in self.children_ages):
            raise ValueError("children ages must be between 0 and 17")
        return self


class BookingResponse(BaseModel):
    id: int
    user_id: Optional[int]
    package_id: int
    time_slot_id: int
    booking_date: date
    number_of_children: int
    children_ages: list[int]
    status: str
    subtotal_amount: Decimal
    discount_amount: Decimal
    add_ons_amount: Decimal
    add_on_ids: list[int]
    total_amount: Decimal
    voucher_id: Optional[int]
    payment_status: Optional[str]
    parent_name: str
    parent_phone: str
    parent_email: str
    special_requests: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class AvailabilityResponse(BaseModel):
    date: date
    time_slot_id: int
    requested_children: int
    available: bool
    remaining: int
    capacity: int
    booked: int
    reason: Optional[str] = None


class BirthdayPartyCreate(BaseModel):
    package_id: int
    time_slot_id: Optional[int] = None
    party_date: date
    child_name: str = Field(..., min_length=1, max_length=255)
    child_age: int = Field(..., ge=0, le=17)
    number_of_guests: int = Field(..., gt=0, le=200)
    theme: Optional[str] = Field(None, max_length=100)
    cake_preference: Optional[str] = Field(None, max_length=255)
    decoration_preference: Optional[str] = Field(None, max_length=255)
    parent_name: str = Field(..., min_length=1, max_length=255)
    parent_phone: str = Field(..., min_length=7, max_length=30)
    parent_email: EmailStr
    special_requests: Optional[str] = Field(None, max_length=1000)


class BirthdayPartyResponse(BaseModel):
    id: int
    user_id: Optional[int]
    package_id: int
    time_slot_id: Optional[int]
    party_date: date
    child_name: str
    child_age: int
    number_of_guests: int
    theme: Optional[str]
    total_amount: Decimal
    status: str
    payment_status: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}
