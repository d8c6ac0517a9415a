"""Initial schema - admins, account number pool, applications, consumers and billing.

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "admins",
        *_timestamps(),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admins_username"), "admins", ["username"], unique=True)

    op.create_table(
        "account_numbers",
        *_timestamps(),
        sa.Column("account_number", sa.String(length=20), nullable=False),
        sa.Column("is_assigned", sa.Boolean(), nullable=False),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_number"),
    )
    op.create_index(
        op.f("ix_account_numbers_is_assigned"), "account_numbers", ["is_assigned"], unique=False
    )

    op.create_table(
        "applications",
        *_timestamps(),
        sa.Column("application_id", sa.String(length=20), nullable=True),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("contact_number", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("service_type", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("account_number", sa.String(length=20), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("valid_id_url", sa.Text(), nullable=True),
        sa.Column("proof_of_residency_url", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_id"),
    )
    op.create_index(op.f("ix_applications_email"), "applications", ["email"], unique=False)
    op.create_index(op.f("ix_applications_status"), "applications", ["status"], unique=False)
    op.create_index(
        "idx_applications_account_number", "applications", ["account_number"], unique=False
    )
    # One approved application per account number
    op.create_index(
        "uq_applications_approved_account_number",
        "applications",
        ["account_number"],
        unique=True,
        sqlite_where=sa.text("status = 'approved'"),
        postgresql_where=sa.text("status = 'approved'"),
    )

    op.create_table(
        "consumers",
        *_timestamps(),
        sa.Column("account_number", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("contact_number", sa.String(length=20), nullable=True),
        sa.Column("meter_number", sa.String(length=20), nullable=False),
        sa.Column("connection_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("service_type", sa.String(length=20), nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["account_number"], ["account_numbers.account_number"]),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("account_number"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("meter_number"),
    )
    op.create_index(op.f("ix_consumers_status"), "consumers", ["status"], unique=False)

    op.create_table(
        "meter_readings",
        *_timestamps(),
        sa.Column("consumer_id", sa.Integer(), nullable=False),
        sa.Column("reading_date", sa.Date(), nullable=False),
        sa.Column("meter_reading", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["consumer_id"], ["consumers.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("consumer_id", "reading_date", name="uq_meter_readings_consumer_date"),
    )
    op.create_index(
        op.f("ix_meter_readings_consumer_id"), "meter_readings", ["consumer_id"], unique=False
    )
    op.create_index(
        op.f("ix_meter_readings_reading_date"), "meter_readings", ["reading_date"], unique=False
    )
    op.create_index(
        "idx_meter_readings_consumer_date",
        "meter_readings",
        ["consumer_id", "reading_date"],
        unique=False,
    )

    op.create_table(
        "bills",
        *_timestamps(),
        sa.Column("bill_number", sa.String(length=30), nullable=False),
        sa.Column("consumer_id", sa.Integer(), nullable=False),
        sa.Column("billing_period_start", sa.Date(), nullable=False),
        sa.Column("billing_period_end", sa.Date(), nullable=False),
        sa.Column("previous_reading", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("current_reading", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("kwh_used", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("rate_per_kwh", sa.Numeric(precision=10, scale=4), nullable=False),
        sa.Column("amount_due", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["consumer_id"], ["consumers.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("bill_number"),
    )
    op.create_index(op.f("ix_bills_consumer_id"), "bills", ["consumer_id"], unique=False)
    op.create_index(op.f("ix_bills_due_date"), "bills", ["due_date"], unique=False)
    op.create_index(op.f("ix_bills_status"), "bills", ["status"], unique=False)
    op.create_index("idx_bills_consumer_status", "bills", ["consumer_id", "status"], unique=False)

    op.create_table(
        "payments",
        *_timestamps(),
        sa.Column("bill_id", sa.Integer(), nullable=False),
        sa.Column("consumer_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("payment_method", sa.String(length=50), nullable=False),
        sa.Column("payment_reference", sa.String(length=100), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["consumer_id"], ["consumers.id"], ondelete="CASCADE"),
    )
    op.create_index(op.f("ix_payments_bill_id"), "payments", ["bill_id"], unique=True)
    op.create_index(op.f("ix_payments_consumer_id"), "payments", ["consumer_id"], unique=False)

    op.create_table(
        "audit_logs",
        *_timestamps(),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("actor", sa.String(length=50), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("audit_logs")
    op.drop_index(op.f("ix_payments_consumer_id"), table_name="payments")
    op.drop_index(op.f("ix_payments_bill_id"), table_name="payments")
    op.drop_table("payments")
    op.drop_index("idx_bills_consumer_status", table_name="bills")
    op.drop_index(op.f("ix_bills_status"), table_name="bills")
    op.drop_index(op.f("ix_bills_due_date"), table_name="bills")
    op.drop_index(op.f("ix_bills_consumer_id"), table_name="bills")
    op.drop_table("bills")
    op.drop_index("idx_meter_readings_consumer_date", table_name="meter_readings")
    op.drop_index(op.f("ix_meter_readings_reading_date"), table_name="meter_readings")
    op.drop_index(op.f("ix_meter_readings_consumer_id"), table_name="meter_readings")
    op.drop_table("meter_readings")
    op.drop_index(op.f("ix_consumers_status"), table_name="consumers")
    op.drop_table("consumers")
    op.drop_index("uq_applications_approved_account_number", table_name="applications")
    op.drop_index("idx_applications_account_number", table_name="applications")
    op.drop_index(op.f("ix_applications_status"), table_name="applications")
    op.drop_index(op.f("ix_applications_email"), table_name="applications")
    op.drop_table("applications")
    op.drop_index(op.f("ix_account_numbers_is_assigned"), table_name="account_numbers")
    op.drop_table("account_numbers")
    op.drop_index(op.f("ix_admins_username"), table_name="admins")
    op.drop_table("admins")
