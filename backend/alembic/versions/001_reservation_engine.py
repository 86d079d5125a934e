# backend/alembic/versions/001_reservation_engine.py
"""Reservation engine - schedules, booked slots, loyalty, reconciliation

Revision ID: 001_reservation_engine
Revises:
Create Date: 2024-03-01 00:00:00.000000

Creates the recurring schedule tables (schedule, weekday, time window), the
committed reservation table, loyalty balances, and the reconciliation queue
for payments whose seat commit failed.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_reservation_engine"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reservation engine tables."""
    op.create_table(
        "schedules",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("subject", sa.String(120), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=False),
        sa.Column("slot_type", sa.String(20), nullable=False, server_default="one_to_one"),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        # Bumped by every seat commit; the UPDATE is the commit serialization point
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("from_date <= to_date", name="ck_schedules_date_range"),
        sa.CheckConstraint("capacity >= 1", name="ck_schedules_capacity_positive"),
        sa.CheckConstraint("price >= 0", name="ck_schedules_price_non_negative"),
    )
    op.create_index("ix_schedules_id", "schedules", ["id"])
    op.create_index("ix_schedules_teacher_id", "schedules", ["teacher_id"])

    op.create_table(
        "schedule_days",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("schedule_id", sa.String(26), nullable=False),
        sa.Column("weekday", sa.String(10), nullable=False),
        sa.Column("weekday_index", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("schedule_id", "weekday", name="uq_schedule_days_schedule_weekday"),
    )
    op.create_index("ix_schedule_days_schedule_id", "schedule_days", ["schedule_id"])

    op.create_table(
        "schedule_time_windows",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("day_id", sa.String(26), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("meeting_link", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["day_id"], ["schedule_days.id"], ondelete="CASCADE"),
        sa.CheckConstraint("start_time < end_time", name="ck_schedule_time_windows_order"),
    )
    op.create_index("ix_schedule_time_windows_day_id", "schedule_time_windows", ["day_id"])

    op.create_table(
        "booked_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("schedule_id", sa.String(26), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("session_id", sa.String(26), nullable=False),
        sa.Column("payment_reference", sa.String(255), nullable=False),
        sa.Column("points_redeemed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="committed"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("payment_reference"),
    )
    op.create_index("ix_booked_slots_id", "booked_slots", ["id"])
    op.create_index("ix_booked_slots_student_id", "booked_slots", ["student_id"])
    op.create_index("ix_booked_slots_status", "booked_slots", ["status"])
    op.create_index(
        "ix_booked_slots_schedule_date_status",
        "booked_slots",
        ["schedule_id", "scheduled_date", "status"],
    )

    op.create_table(
        "loyalty_accounts",
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("points_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("student_id"),
        sa.CheckConstraint(
            "points_balance >= 0", name="ck_loyalty_accounts_balance_non_negative"
        ),
    )

    op.create_table(
        "booking_reconciliations",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("schedule_id", sa.String(26), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("payment_reference", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("points_applied", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("error_type", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_booking_reconciliations_schedule_id", "booking_reconciliations", ["schedule_id"]
    )
    op.create_index(
        "ix_booking_reconciliations_payment_reference",
        "booking_reconciliations",
        ["payment_reference"],
    )


def downgrade() -> None:
    """Drop reservation engine tables."""
    op.drop_table("booking_reconciliations")
    op.drop_table("loyalty_accounts")
    op.drop_table("booked_slots")
    op.drop_table("schedule_time_windows")
    op.drop_table("schedule_days")
    op.drop_table("schedules")
