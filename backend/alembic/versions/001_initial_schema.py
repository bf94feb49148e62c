"""Initial schema: villas, calendar events, pricing rules, bookings, payments.

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
    # Needed for "villa_id WITH =" inside a GiST exclusion constraint
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    # Villas (read-only to the booking core)
    op.create_table(
        "villas",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("host_user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("base_price_usd_per_night", sa.Numeric(12, 2), nullable=False),
        sa.Column("cleaning_fee_usd", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("service_fee_ratio", sa.Numeric(5, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("damage_waiver_ratio", sa.Numeric(5, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("max_guests", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("base_price_usd_per_night >= 0", name="check_villa_base_price_non_negative"),
        sa.CheckConstraint("max_guests > 0", name="check_villa_max_guests_positive"),
    )
    op.create_index("ix_villas_host_user_id", "villas", ["host_user_id"])

    # Calendar events
    op.create_table(
        "calendar_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("villa_id", sa.String(36), nullable=False),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("booking_id", sa.String(36), nullable=True),
        sa.Column("note", sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_date > start_date", name="check_calendar_event_range"),
        sa.CheckConstraint(
            "event_type IN ('blocked', 'booking', 'manual_hold')",
            name="check_calendar_event_type",
        ),
    )
    op.create_index("ix_calendar_events_villa_range", "calendar_events", ["villa_id", "start_date", "end_date"])
    op.create_index("ix_calendar_events_booking_id", "calendar_events", ["booking_id"])
    # NO-OVERLAP BACKSTOP: the per-villa lock serializes reservations in the
    # application; this constraint rejects any overlap that slips past it
    # (e.g. a writer that bypassed the lock). daterange() is half-open by default.
    op.execute(
        """
        ALTER TABLE calendar_events
        ADD CONSTRAINT excl_calendar_events_no_overlap
        EXCLUDE USING gist (villa_id WITH =, daterange(start_date, end_date) WITH &&)
        """
    )

    # Pricing rules
    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("villa_id", sa.String(36), sa.ForeignKey("villas.id"), nullable=False),
        sa.Column("rule_type", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("adjustment_fixed_usd", sa.Numeric(12, 2), nullable=True),
        sa.Column("adjustment_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("min_nights", sa.Integer(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("10")),
        *_timestamps(),
        sa.CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date >= start_date",
            name="check_pricing_rule_range",
        ),
        sa.CheckConstraint(
            "adjustment_percent IS NULL OR (adjustment_percent >= -100 AND adjustment_percent <= 100)",
            name="check_pricing_rule_percent",
        ),
        sa.CheckConstraint("priority > 0", name="check_pricing_rule_priority_positive"),
    )
    op.create_index("ix_pricing_rules_villa_id", "pricing_rules", ["villa_id"])

    # Bookings
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("guest_user_id", sa.String(64), nullable=False),
        sa.Column("villa_id", sa.String(36), sa.ForeignKey("villas.id"), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("adults", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("children", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("infants", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_base_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_fees_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_taxes_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("balance_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_plan", sa.String(10), nullable=False, server_default="full"),
        sa.Column("status", sa.String(20), nullable=False, server_default="in_progress"),
        sa.Column("contract_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_intent_id", sa.String(255), nullable=True),
        sa.Column("calendar_event_id", sa.String(36), nullable=True),
        sa.Column("hold_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(255), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("check_out > check_in", name="check_booking_dates"),
        sa.CheckConstraint("adults >= 1", name="check_booking_adults"),
        sa.CheckConstraint("children >= 0 AND infants >= 0", name="check_booking_minors"),
        sa.CheckConstraint(
            "total_usd = total_base_usd + total_fees_usd + total_taxes_usd",
            name="check_booking_total",
        ),
        sa.CheckConstraint("balance_usd <= total_usd", name="check_booking_balance"),
        sa.CheckConstraint(
            "status IN ('inquiry', 'in_progress', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
    )
    op.create_index("ix_bookings_guest_user_id", "bookings", ["guest_user_id"])
    op.create_index("ix_bookings_villa_id", "bookings", ["villa_id"])
    # Sweeper query: WHERE status = 'in_progress' AND hold_expires_at <= now()
    op.create_index("ix_bookings_status_hold_expires", "bookings", ["status", "hold_expires_at"])

    # Payments
    op.create_table(
        "payments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("booking_id", sa.String(36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("payment_intent_id", sa.String(255), nullable=False),
        sa.Column("charge_id", sa.String(255), nullable=False),
        sa.Column("charged_amount_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("refunded_amount_usd", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(20), nullable=False, server_default="succeeded"),
        sa.Column("refund_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("refunded_amount_usd <= charged_amount_usd", name="check_payment_refund_lte_charge"),
        sa.CheckConstraint(
            "status IN ('pending', 'succeeded', 'failed', 'refunded')",
            name="check_payment_status",
        ),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("bookings")
    op.drop_table("pricing_rules")
    op.drop_table("calendar_events")
    op.drop_table("villas")
