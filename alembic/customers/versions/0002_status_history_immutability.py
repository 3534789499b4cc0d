"""enforce append-only status history

Revision ID: 0002_status_history_immutability
Revises: 0001_customers
Create Date: 2026-10-19
"""

from alembic import op


revision = "0002_status_history_immutability"
down_revision = "0001_customers"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        CREATE OR REPLACE FUNCTION prevent_status_history_mutation()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'status_history is append-only; % is not allowed', TG_OP;
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_status_history_immutable
        BEFORE UPDATE OR DELETE ON status_history
        FOR EACH ROW
        EXECUTE FUNCTION prevent_status_history_mutation();
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_status_history_immutable ON status_history;")
    op.execute("DROP FUNCTION IF EXISTS prevent_status_history_mutation();")
