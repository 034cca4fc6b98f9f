"""rooms, bookings and booking room selections

Revision ID: 20250301_01
Revises:
Create Date: 2025-03-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20250301_01"
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    "room_type": ("AC", "NON_AC", "GENERAL"),
    "room_category": ("SUITE", "STANDARD"),
    "booking_status": ("CONFIRMED", "CANCELLED", "COMPLETED"),
    "payment_status": ("PENDING", "COMPLETED"),
    "payment_method": ("ONLINE", "CASH"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    for enum_name, values in ENUMS.items():
        value_list = ", ".join(f"'{value}'" for value in values)
        statement = (
            "DO $$ BEGIN "
            f"IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{enum_name}') THEN "
            f"CREATE TYPE \"{enum_name}\" AS ENUM ({value_list}); "
            "END IF; END $$;"
        )
        op.execute(sa.text(statement))

    op.create_table(
        "rooms",
        sa.Column("room_number", sa.String(length=32), primary_key=True),
        sa.Column("room_type", _enum("room_type"), nullable=False),
        sa.Column("category", _enum("room_category"), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("amenities", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("price > 0", name="ck_rooms_price_positive"),
        sa.CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_rooms_capacity_positive"),
    )
    op.create_index("ix_rooms_room_type", "rooms", ["room_type"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("customer_address", sa.Text(), nullable=True),
        sa.Column("room_type", _enum("room_type"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("arrival_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_status", _enum("payment_status"), nullable=False, server_default="PENDING"),
        sa.Column("payment_method", _enum("payment_method"), nullable=False, server_default="ONLINE"),
        sa.Column("payment_proof", sa.String(length=512), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("booking_status", _enum("booking_status"), nullable=False, server_default="CONFIRMED"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("check_in_date < check_out_date", name="ck_bookings_date_order"),
    )
    op.create_index("ix_bookings_check_in_date", "bookings", ["check_in_date"])
    op.create_index("ix_bookings_check_out_date", "bookings", ["check_out_date"])
    op.create_index("ix_bookings_booking_status", "bookings", ["booking_status"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])

    op.create_table(
        "booking_rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.String(length=32), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_number", sa.String(length=32), sa.ForeignKey("rooms.room_number"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("room_type", _enum("room_type"), nullable=False),
        sa.Column("category", _enum("room_category"), nullable=True),
        sa.UniqueConstraint("booking_id", "room_number", name="uq_booking_rooms_booking_room"),
    )
    op.create_index("ix_booking_rooms_booking_id", "booking_rooms", ["booking_id"])
    op.create_index("ix_booking_rooms_room_number", "booking_rooms", ["room_number"])


def downgrade() -> None:
    op.drop_index("ix_booking_rooms_room_number", table_name="booking_rooms")
    op.drop_index("ix_booking_rooms_booking_id", table_name="booking_rooms")
    op.drop_table("booking_rooms")

    op.drop_index("ix_bookings_created_at", table_name="bookings")
    op.drop_index("ix_bookings_booking_status", table_name="bookings")
    op.drop_index("ix_bookings_check_out_date", table_name="bookings")
    op.drop_index("ix_bookings_check_in_date", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_rooms_room_type", table_name="rooms")
    op.drop_table("rooms")

    for enum_name in reversed(list(ENUMS)):
        statement = (
            "DO $$ BEGIN "
            f"IF EXISTS (SELECT 1 FROM pg_type WHERE typname = '{enum_name}') THEN "
            f"DROP TYPE \"{enum_name}\"; "
            "END IF; END $$;"
        )
        op.execute(sa.text(statement))
