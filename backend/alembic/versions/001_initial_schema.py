"""Initial schema: users, catalog, vouchers, bookings, occupancy, parties, feedback.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_STATUS_CHECK = "status IN ('pending', 'confirmed', 'completed', 'cancelled')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'customer'")),
        sa.Column("permissions", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('customer', 'staff', 'manager', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "packages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("features", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("max_children", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="check_package_price_non_negative"),
        sa.CheckConstraint("duration > 0", name="check_package_duration_positive"),
        sa.CheckConstraint("type IN ('walk_in', 'weekend', 'monthly', 'birthday')", name="check_package_type"),
    )
    op.create_index("ix_packages_id", "packages", ["id"])

    op.create_table(
        "time_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("max_capacity", sa.Integer(), nullable=False, server_default=sa.text("15")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("max_capacity >= 0", name="check_slot_capacity_non_negative"),
    )
    op.create_index("ix_time_slots_id", "time_slots", ["id"])

    op.create_table(
        "holidays",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'holiday'")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_holidays_id", "holidays", ["id"])
    op.create_index("ix_holidays_date", "holidays", ["date"], unique=True)

    op.create_table(
        "discount_vouchers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("discount_type", sa.String(20), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_discount", sa.Numeric(10, 2), nullable=True),
        sa.Column("min_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("applicable_packages", sa.JSON(), nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_till", sa.DateTime(timezone=True), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("discount_value >= 0", name="check_voucher_value_non_negative"),
        sa.CheckConstraint("used_count >= 0", name="check_voucher_used_non_negative"),
        sa.CheckConstraint("discount_type IN ('percentage', 'fixed')", name="check_voucher_discount_type"),
    )
    op.create_index("ix_discount_vouchers_id", "discount_vouchers", ["id"])
    op.create_index("ix_discount_vouchers_code", "discount_vouchers", ["code"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("package_id", sa.Integer(), sa.ForeignKey("packages.id"), nullable=False),
        sa.Column("time_slot_id", sa.Integer(), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("number_of_children", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("children_ages", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("subtotal_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("voucher_id", sa.Integer(), sa.ForeignKey("discount_vouchers.id"), nullable=True),
        sa.Column("voucher_redeemed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("payment_order_id", sa.String(100), nullable=True),
        sa.Column("payment_id", sa.String(100), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=True),
        sa.Column("parent_name", sa.String(255), nullable=False),
        sa.Column("parent_phone", sa.String(30), nullable=False),
        sa.Column("parent_email", sa.String(255), nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("number_of_children > 0", name="check_booking_children_positive"),
        sa.CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        sa.CheckConstraint(_STATUS_CHECK, name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_package_id", "bookings", ["package_id"])
    op.create_index("ix_bookings_payment_order_id", "bookings", ["payment_order_id"])
    # Availability sums children over exactly this pair on every check
    op.create_index("ix_bookings_slot_date", "bookings", ["time_slot_id", "booking_date"])

    op.create_table(
        "slot_occupancy",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("time_slot_id", sa.Integer(), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booked_children", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("booked_children >= 0", name="check_occupancy_non_negative"),
    )
    # One counter row per (slot, date); concurrent first bookings race on this
    op.create_index(
        "uq_slot_occupancy_slot_date", "slot_occupancy", ["time_slot_id", "booking_date"], unique=True
    )

    op.create_table(
        "birthday_parties",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("package_id", sa.Integer(), sa.ForeignKey("packages.id"), nullable=False),
        sa.Column("time_slot_id", sa.Integer(), sa.ForeignKey("time_slots.id"), nullable=True),
        sa.Column("party_date", sa.Date(), nullable=False),
        sa.Column("child_name", sa.String(255), nullable=False),
        sa.Column("child_age", sa.Integer(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False),
        sa.Column("theme", sa.String(100), nullable=True),
        sa.Column("cake_preference", sa.String(255), nullable=True),
        sa.Column("decoration_preference", sa.String(255), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_id", sa.String(100), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("parent_name", sa.String(255), nullable=False),
        sa.Column("parent_phone", sa.String(30), nullable=False),
        sa.Column("parent_email", sa.String(255), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("number_of_guests > 0", name="check_party_guests_positive"),
        sa.CheckConstraint(_STATUS_CHECK, name="check_party_status"),
    )
    op.create_index("ix_birthday_parties_id", "birthday_parties", ["id"])
    op.create_index("ix_birthday_parties_user_id", "birthday_parties", ["user_id"])
    op.create_index("ix_birthday_parties_party_date", "birthday_parties", ["party_date"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="check_review_rating_range"),
    )
    op.create_index("ix_reviews_id", "reviews", ["id"])

    op.create_table(
        "enquiries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'general'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
    )
    op.create_index("ix_enquiries_id", "enquiries", ["id"])


def downgrade() -> None:
    op.drop_table("enquiries")
    op.drop_table("reviews")
    op.drop_table("birthday_parties")
    op.drop_table("slot_occupancy")
    op.drop_table("bookings")
    op.drop_table("discount_vouchers")
    op.drop_table("holidays")
    op.drop_table("time_slots")
    op.drop_table("packages")
    op.drop_table("users")
