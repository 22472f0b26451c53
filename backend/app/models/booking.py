"""
Booking model representing a play-session reservation for N children.

Key design decisions:
- Status lives on the row; cancelled bookings stay for history and stop
  counting toward slot capacity
- Subtotal, discount and total are stored so the charged price is auditable
- `voucher_redeemed` makes voucher usage count at most once per booking
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, Date, Text, JSON,
    ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


_STATUS_CHECK = "status IN ('pending', 'confirmed', 'completed', 'cancelled')"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False, index=True)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    number_of_children = Column(Integer, nullable=False, default=1)
    children_ages = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)

    subtotal_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    add_ons_amount = Column(Numeric(10, 2), nullable=False, default=0)
    add_on_ids = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(10, 2), nullable=False)
    voucher_id = Column(Integer, ForeignKey("discount_vouchers.id"), nullable=True)
    voucher_redeemed = Column(Boolean, nullable=False, default=False)

    payment_order_id = Column(String(100), nullable=True, index=True)
    payment_id = Column(String(100), nullable=True)
    payment_status = Column(String(20), nullable=True)

    parent_name = Column(String(255), nullable=False)
    parent_phone = Column(String(30), nullable=False)
    parent_email = Column(String(255), nullable=False)
    special_requests = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="bookings")
    package = relationship("Package", back_populates="bookings", lazy="selectin")
    time_slot = relationship("TimeSlot", back_populates="bookings", lazy="selectin")
    voucher = relationship("DiscountVoucher")

    __table_args__ = (
        CheckConstraint("number_of_children > 0", name="check_booking_children_positive"),
        CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        CheckConstraint(_STATUS_CHECK, name="check_booking_status"),
        # Capacity aggregation filters on exactly this pair
        Index("ix_bookings_slot_date", "time_slot_id", "booking_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, slot={self.time_slot_id}, date={self.booking_date}, "
            f"children={self.number_of_children}, status={self.status})>"
        )


class SlotOccupancy(Base, TimestampMixin):
    """
    Running count of children booked on one (slot, date) pair.

    Bookings reserve capacity here with a conditional UPDATE guarded by
    `version` and the slot ceiling; the row is seeded from the booking
    aggregate the first time the pair is booked.
    """

    __tablename__ = "slot_occupancy"

    id = Column(Integer, primary_key=True)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    booked_children = Column(Integer, nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("uq_slot_occupancy_slot_date", "time_slot_id", "booking_date", unique=True),
        CheckConstraint("booked_children >= 0", name="check_occupancy_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<SlotOccupancy(slot={self.time_slot_id}, date={self.booking_date}, booked={self.booked_children})>"


class BirthdayParty(Base, TimestampMixin):
    """Themed party reservation. Tracked apart from play-session capacity."""

    __tablename__ = "birthday_parties"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=True)
    party_date = Column(Date, nullable=False, index=True)
    child_name = Column(String(255), nullable=False)
    child_age = Column(Integer, nullable=False)
    number_of_guests = Column(Integer, nullable=False)
    theme = Column(String(100), nullable=True)
    cake_preference = Column(String(255), nullable=True)
    decoration_preference = Column(String(255), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    payment_id = Column(String(100), nullable=True)
    payment_status = Column(String(20), nullable=True)
    special_requests = Column(Text, nullable=True)
    parent_name = Column(String(255), nullable=False)
    parent_phone = Column(String(30), nullable=False)
    parent_email = Column(String(255), nullable=False)

    user = relationship("User", back_populates="birthday_parties")
    package = relationship("Package", lazy="selectin")
    time_slot = relationship("TimeSlot", lazy="selectin")

    __table_args__ = (
        CheckConstraint("number_of_guests > 0", name="check_party_guests_positive"),
        CheckConstraint(_STATUS_CHECK, name="check_party_status"),
    )

    def __repr__(self) -> str:
        return f"<BirthdayParty(id={self.id}, child={self.child_name}, date={self.party_date})>"
