"""Operating hours per weekday, priced add-ons, add-on charges on bookings.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "operating_hours",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("open_time", sa.Time(), nullable=False),
        sa.Column("close_time", sa.Time(), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.UniqueConstraint("day_of_week", name="uq_operating_hours_day_of_week"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_operating_day_of_week"),
    )
    op.create_index("ix_operating_hours_id", "operating_hours", ["id"])

    op.create_table(
        "add_ons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default=sa.text("'general'")),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("applicable_packages", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="check_add_on_price_non_negative"),
    )
    op.create_index("ix_add_ons_id", "add_ons", ["id"])

    op.add_column(
        "bookings",
        sa.Column("add_ons_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
    )
    op.add_column(
        "bookings",
        sa.Column("add_on_ids", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
    )


def downgrade() -> None:
    op.drop_column("bookings", "add_on_ids")
    op.drop_column("bookings", "add_ons_amount")
    op.drop_table("add_ons")
    op.drop_table("operating_hours")
