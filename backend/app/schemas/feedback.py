"""
Pydantic schemas for reviews, enquiries and the admin analytics summary.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    booking_id: Optional[int] = None


class ReviewResponse(BaseModel):
    id: int
    user_id: Optional[int]
    booking_id: Optional[int]
    rating: int
    comment: Optional[str]
    is_approved: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EnquiryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=30)
    message: str = Field(..., min_length=1, max_length=5000)
    type: str = Field("general", pattern=r"^(general|birthday|booking|complaint)$")


class EnquiryStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r"^(pending|responded|closed)$")


class EnquiryResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    message: str
    type: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PackagePopularity(BaseModel):
    package_id: int
    name: str
    bookings: int


class AnalyticsSummary(BaseModel):
    bookings_by_status: dict[str, int]
    total_bookings: int
    revenue: Decimal
    children_booked: int
    popular_packages: list[PackagePopularity]
