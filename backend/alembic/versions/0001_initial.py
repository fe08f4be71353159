"""initial schema

Revision ID: 0001
Revises:
Create Date: 2025-11-01 10:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "barbers",
        sa.Column("barber_id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "services",
        sa.Column("service_id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("40")),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("price", sa.Numeric()),
        sa.Column("description", sa.Text()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Text(), nullable=False, unique=True),
        sa.Column("ticket_number", sa.Text(), nullable=False, unique=True),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("appointment_date", sa.Text(), nullable=False),
        sa.Column("appointment_time", sa.Text(), nullable=False),
        sa.Column("slot_duration", sa.Integer(), nullable=False, server_default=sa.text("40")),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("customer_email", sa.Text(), nullable=False),
        sa.Column("customer_phone", sa.Text(), nullable=False),
        sa.Column("service_id", sa.Text(), sa.ForeignKey("services.service_id", ondelete="SET NULL")),
        sa.Column("barber_id", sa.Text(), sa.ForeignKey("barbers.barber_id", ondelete="SET NULL")),
        sa.Column("special_request", sa.Text()),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.Column("confirmed_at", sa.Text()),
        sa.Column("completed_at", sa.Text()),
        sa.Column("cancelled_at", sa.Text()),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("cancelled_by", sa.Text()),
        sa.Column("original_booking_id", sa.Text()),
    )
    op.create_index("idx_bookings_slot", "bookings", ["appointment_date", "appointment_time"])
    op.create_index("idx_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_customer_phone", "bookings", ["customer_phone"])

    op.create_table(
        "walk_in_queue",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("queue_id", sa.Text(), nullable=False, unique=True),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("customer_phone", sa.Text(), nullable=False),
        sa.Column("barber_id", sa.Text(), sa.ForeignKey("barbers.barber_id", ondelete="SET NULL")),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'waiting'")),
        sa.Column("position", sa.Integer()),
        sa.Column("estimated_wait_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.Column("served_at", sa.Text()),
    )
    op.create_index("idx_walk_in_queue_status", "walk_in_queue", ["status"])
    op.create_index("idx_walk_in_queue_barber_id", "walk_in_queue", ["barber_id"])

    op.create_table(
        "capacity_overrides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("override_date", sa.Text(), nullable=False),
        sa.Column("time_slot", sa.Text()),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("reason", sa.Text()),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("idx_capacity_overrides_date", "capacity_overrides", ["override_date"])


def downgrade():
    op.drop_index("idx_capacity_overrides_date", table_name="capacity_overrides")
    op.drop_table("capacity_overrides")
    op.drop_index("idx_walk_in_queue_barber_id", table_name="walk_in_queue")
    op.drop_index("idx_walk_in_queue_status", table_name="walk_in_queue")
    op.drop_table("walk_in_queue")
    op.drop_index("idx_bookings_customer_phone", table_name="bookings")
    op.drop_index("idx_bookings_status", table_name="bookings")
    op.drop_index("idx_bookings_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("services")
    op.drop_table("barbers")
