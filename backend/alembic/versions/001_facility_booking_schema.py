# backend/alembic/versions/001_facility_booking_schema.py
"""Facility catalog, day availability and bookings

Revision ID: 001_facility_booking_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_facility_booking_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create facility, availability and booking tables."""
    print("Creating facility booking tables...")

    op.create_table(
        "facilities",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("community_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("opening_hours", sa.String(length=64), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="20"),
        sa.Column("fee", sa.String(length=64), nullable=True),
        sa.Column("rules", sa.JSON(), nullable=False),
        sa.Column(
            "min_booking_duration_minutes", sa.Integer(), nullable=False, server_default="30"
        ),
        sa.Column(
            "max_booking_duration_minutes", sa.Integer(), nullable=False, server_default="120"
        ),
        sa.Column("advance_booking_limit_days", sa.Integer(), nullable=True),
        sa.Column(
            "requires_staff_approval", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("capacity >= 1", name="ck_facilities_capacity_positive"),
        sa.CheckConstraint(
            "min_booking_duration_minutes <= max_booking_duration_minutes",
            name="ck_facilities_duration_bounds",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_facilities_id", "facilities", ["id"])
    op.create_index("ix_facilities_community", "facilities", ["community_id"])

    print("Creating facility_availability table...")
    op.create_table(
        "facility_availability",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("community_id", sa.String(length=64), nullable=False),
        sa.Column("facility_id", sa.String(length=26), nullable=False),
        sa.Column("day_date", sa.Date(), nullable=False),
        sa.Column("slots", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "community_id", "facility_id", "day_date", name="uq_facility_availability_day"
        ),
    )

    print("Creating bookings table...")
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("community_id", sa.String(length=64), nullable=False),
        sa.Column("facility_id", sa.String(length=26), nullable=False),
        sa.Column("facility_name", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("user_unit", sa.String(length=64), nullable=True),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("participants", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("recurring", sa.JSON(), nullable=True),
        sa.Column(
            "is_recurring_instance", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("original_booking_id", sa.String(length=26), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.CheckConstraint("participants >= 1", name="ck_bookings_participants_positive"),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"]),
        sa.ForeignKeyConstraint(["original_booking_id"], ["bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "ix_bookings_facility_date", "bookings", ["community_id", "facility_id", "booking_date"]
    )
    op.create_index("ix_bookings_original", "bookings", ["original_booking_id"])

    print("Creating user_booking_references table...")
    op.create_table(
        "user_booking_references",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("community_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("booking_id", sa.String(length=26), nullable=False),
        sa.Column("facility_id", sa.String(length=26), nullable=False),
        sa.Column("facility_name", sa.String(length=255), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("booking_id"),
    )
    op.create_index(
        "ix_user_booking_refs_user", "user_booking_references", ["community_id", "user_id"]
    )

    print("Facility booking tables created")


def downgrade() -> None:
    """Drop facility booking tables."""
    print("Dropping facility booking tables...")

    op.drop_index("ix_user_booking_refs_user", table_name="user_booking_references")
    op.drop_table("user_booking_references")

    op.drop_index("ix_bookings_original", table_name="bookings")
    op.drop_index("ix_bookings_facility_date", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_booking_date", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_table("facility_availability")

    op.drop_index("ix_facilities_community", table_name="facilities")
    op.drop_index("ix_facilities_id", table_name="facilities")
    op.drop_table("facilities")
