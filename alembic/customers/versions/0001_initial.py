"""initial customers schema

Revision ID: 0001_customers
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_customers"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("id_card", sa.String(), nullable=True),
        sa.Column("certificate_type", sa.String(), nullable=True),
        sa.Column("certificate_issuer", sa.String(), nullable=True),
        sa.Column("customer_type", sa.String(), nullable=False, server_default="NEW_CUSTOMER"),
        sa.Column("customer_agent", sa.String(), nullable=True),
        sa.Column("sales_phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("business_requirements", sa.Text(), nullable=True),
        sa.Column("current_status", sa.String(length=32), nullable=False),
        sa.Column("certified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("customer_id"),
        sa.UniqueConstraint("id_card", "certificate_type", name="uq_customers_id_card_certificate_type"),
    )
    op.create_index("ix_customers_phone", "customers", ["phone"])
    op.create_index("ix_customers_customer_agent", "customers", ["customer_agent"])
    op.create_index("ix_customers_current_status", "customers", ["current_status"])
    op.create_index("ix_customers_deleted_at", "customers", ["deleted_at"])

    op.create_table(
        "status_history",
        sa.Column("history_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("from_status", sa.String(length=32), nullable=True),
        sa.Column("to_status", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("changed_by", sa.String(), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.customer_id"]),
        sa.PrimaryKeyConstraint("history_id"),
    )
    op.create_index(
        "ix_status_history_customer_id_changed_at",
        "status_history",
        ["customer_id", "changed_at"],
    )
    op.create_index("ix_status_history_changed_by", "status_history", ["changed_by"])


def downgrade() -> None:
    op.drop_index("ix_status_history_changed_by", table_name="status_history")
    op.drop_index("ix_status_history_customer_id_changed_at", table_name="status_history")
    op.drop_table("status_history")
    op.drop_index("ix_customers_deleted_at", table_name="customers")
    op.drop_index("ix_customers_current_status", table_name="customers")
    op.drop_index("ix_customers_customer_agent", table_name="customers")
    op.drop_index("ix_customers_phone", table_name="customers")
    op.drop_table("customers")
