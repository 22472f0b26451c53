"""
Catalog models: packages, daily time slots and the holiday calendar.

A time slot is a recurring daily window; `max_capacity` is the ceiling
for children on any single (date, slot) pair.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, Date, Time, Text, JSON, CheckConstraint,
)
from sqlalchemy.orm import relationship

from app.core.config import get_settings
from app.db.base import Base, TimestampMixin

settings = get_settings()


class PackageType(str, enum.Enum):
    WALK_IN = "walk_in"
    WEEKEND = "weekend"
    MONTHLY = "monthly"
    BIRTHDAY = "birthday"


class Package(Base, TimestampMixin):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # per child
    duration = Column(Integer, nullable=False)  # hours
    description = Column(Text, nullable=True)
    features = Column(JSON, nullable=False, default=list)
    max_children = Column(Integer, nullable=True, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    bookings = relationship("Booking", back_populates="package")

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_package_price_non_negative"),
        CheckConstraint("duration > 0", name="check_package_duration_positive"),
        CheckConstraint(
            "type IN ('walk_in', 'weekend', 'monthly', 'birthday')", name="check_package_type"
        ),
    )

    def __repr__(self) -> str:
        return f"<Package(id={self.id}, name={self.name}, price={self.price})>"


class TimeSlot(Base, TimestampMixin):
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    max_capacity = Column(Integer, nullable=False, default=settings.DEFAULT_SLOT_CAPACITY)
    is_active = Column(Boolean, nullable=False, default=True)

    bookings = relationship("Booking", back_populates="time_slot")

    __table_args__ = (
        CheckConstraint("max_capacity >= 0", name="check_slot_capacity_non_negative"),
    )

    @property
    def label(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def __repr__(self) -> str:
        return f"<TimeSlot(id={self.id}, {self.label}, capacity={self.max_capacity})>"


class Holiday(Base, TimestampMixin):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default="holiday")  # holiday, private, maintenance
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Holiday(date={self.date}, name={self.name})>"


class OperatingHours(Base, TimestampMixin):
    """Opening window for one weekday. Days without a row are treated as open."""

    __tablename__ = "operating_hours"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, nullable=False, unique=True)  # 0 = Sunday ... 6 = Saturday
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_operating_day_of_week"),
    )

    def __repr__(self) -> str:
        return f"<OperatingHours(day={self.day_of_week}, {self.open_time}-{self.close_time}, open={self.is_open})>"


class AddOn(Base, TimestampMixin):
    """
    Extra charged once per booking (grip socks, photo pack, meal combo).

    `applicable_packages` limits the add-on to the listed package ids;
    empty means every package. Required add-ons are always charged.
    """

    __tablename__ = "add_ons"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(50), nullable=False, default="general")
    is_required = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    applicable_packages = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_add_on_price_non_negative"),
    )

    def applies_to(self, package_id: int) -> bool:
        if not self.applicable_packages:
            return True
        return package_id in {int(p) for p in self.applicable_packages}

    def __repr__(self) -> str:
        return f"<AddOn(id={self.id}, name={self.name}, price={self.price})>"
