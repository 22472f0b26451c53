"""
Pydantic schemas for packages, time slots and holidays.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from app.models.catalog import PackageType


class PackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: PackageType
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    duration: int = Field(..., gt=0, le=24)
    description: Optional[str] = None
    features: list[str] = []
    max_children: Optional[int] = Field(1, gt=0)
    is_active: bool = True


class PackageUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[PackageType] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(None, gt=0, le=24)
    description: Optional[str] = None
    features: Optional[list[str]] = None
    max_children: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class PackageResponse(BaseModel):
    id: int
    name: str
    type: str
    price: Decimal
    duration: int
    description: Optional[str]
    features: list[str]
    max_children: Optional[int]
    is_active: bool

    model_config = {"from_attributes": True}


class TimeSlotCreate(BaseModel):
    start_time: time
    end_time: time
    max_capacity: int = Field(15, ge=0, le=1000)
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class TimeSlotUpdate(BaseModel):
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    max_capacity: Optional[int] = Field(None, ge=0, le=1000)
    is_active: Optional[bool] = None


class BulkCapacityUpdate(BaseModel):
    max_capacity: int = Field(..., ge=0, le=1000)


class TimeSlotResponse(BaseModel):
    id: int
    start_time: time
    end_time: time
    max_capacity: int
    is_active: bool

    model_config = {"from_attributes": True}


class HolidayCreate(BaseModel):
    date: date
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("holiday", pattern=r"^(holiday|private|maintenance)$")
    description: Optional[str] = None
    is_active: bool = True


class HolidayResponse(BaseModel):
    id: int
    date: date
    name: str
    type: str
    description: Optional[str]
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class OperatingHoursEntry(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6)
    open_time: time
    close_time: time
    is_open: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.close_time <= self.open_time:
            raise ValueError("close_time must be after open_time")
        return self


class OperatingHoursUpdate(BaseModel):
    days: list[OperatingHoursEntry] = Field(..., min_length=1, max_length=7)

    @model_validator(mode="after")
    def check_unique_days(self):
        days = [entry.day_of_week for entry in self.days]
        if len(days) != len(set(days)):
            raise ValueError("each day_of_week may appear only once")
        return self


class OperatingHoursResponse(BaseModel):
    day_of_week: int
    open_time: time
    close_time: time
    is_open: bool

    model_config = {"from_attributes": True}


class AddOnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: str = Field("general", max_length=50)
    is_required: bool = False
    is_active: bool = True
    display_order: int = 0
    applicable_packages: list[int] = []


class AddOnUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(None, max_length=50)
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
    applicable_packages: Optional[list[int]] = None


class AddOnResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    price: Decimal
    category: str
    is_required: bool
    is_active: bool
    display_order: int
    applicable_packages: list[int]

    model_config = {"from_attributes": True}
