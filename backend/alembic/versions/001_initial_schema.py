"""Initial schema: resorts, users, services, bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Resorts table
    op.create_table(
        "resorts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_resorts_name"),
    )
    op.create_index("ix_resorts_id", "resorts", ["id"])

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("resort_id", sa.Integer(), sa.ForeignKey("resorts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_validated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("confirmation_code_hash", sa.String(255), nullable=True),
        sa.Column("wallet", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("wallet >= 0", name="check_wallet_non_negative"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_resort_id", "users", ["resort_id"])

    # Services table (hotels and tracks, single-table inheritance on `kind`)
    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("resort_id", sa.Integer(), sa.ForeignKey("resorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("num_of_guests", sa.Integer(), nullable=False),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("auto_accept", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("num_of_stars", sa.Integer(), nullable=True),
        sa.Column("length", sa.Integer(), nullable=True),
        sa.Column("rating", sa.String(20), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="check_service_price_non_negative"),
        sa.CheckConstraint("num_of_guests > 0", name="check_service_guests_positive"),
    )
    op.create_index("ix_services_id", "services", ["id"])
    op.create_index("ix_services_resort_id", "services", ["resort_id"])
    # Listings filter by kind and then by price or sort by name
    op.create_index("ix_services_kind_price", "services", ["kind", "price"])
    op.create_index("ix_services_kind_name", "services", ["kind", "name"])

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id", ondelete="SET NULL"), nullable=True),
        sa.Column("resort_id", sa.Integer(), sa.ForeignKey("resorts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("service_type", sa.String(20), nullable=False),
        sa.Column("num_of_guests", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cancelled_by", sa.String(20), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("num_of_guests >= 1", name="check_booking_guests_positive"),
        sa.CheckConstraint("date_from < date_to", name="check_booking_date_order"),
        sa.CheckConstraint(
            "(is_cancelled AND cancelled_by IS NOT NULL) OR (NOT is_cancelled AND cancelled_by IS NULL)",
            name="check_booking_cancelled_by",
        ),
        sa.CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('user', 'admin', 'overBooking', 'expiration')",
            name="check_booking_cancel_reason",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_resort_id", "bookings", ["resort_id"])
    # Overlap lookups scan one service's bookings by date range; this runs on
    # every reservation and every approval
    op.create_index("ix_bookings_service_dates", "bookings", ["service_id", "date_from", "date_to"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("services")
    op.drop_table("users")
    op.drop_table("resorts")
