"""fold legacy customer status codes into the current status set

Revision ID: 0003_legacy_status_codes
Revises: 0002_status_history_immutability
Create Date: 2026-10-19

Only `customers.current_status` is rewritten and then constrained to the
current set. `status_history` is append-only and keeps the codes its rows were
written with.
"""

from alembic import op
import sqlalchemy as sa


revision = "0003_legacy_status_codes"
down_revision = "0002_status_history_immutability"
branch_labels = None
depends_on = None

LEGACY_TO_CURRENT = {
    "CUSTOMER_CALLED": "NEW",
    "REPLIED_TO_CUSTOMER": "NOTIFIED",
    "ORDER_PLACED": "SUBMITTED",
    "PRODUCT_DELIVERED": "SUBMITTED",
    "BUSINESS_DONE": "CERTIFIED",
    "ORDER_CANCELLED": "ABORTED",
    "LOST": "ABORTED",
}
STATUSES = ("NEW", "NOTIFIED", "ABORTED", "SUBMITTED", "CERTIFIED", "CERTIFIED_ELSEWHERE")


def upgrade() -> None:
    customers = sa.table("customers", sa.column("current_status", sa.String))
    for legacy, current in LEGACY_TO_CURRENT.items():
        op.execute(
            customers.update()
            .where(customers.c.current_status == legacy)
            .values(current_status=current)
        )
    status_list = ", ".join(f"'{status}'" for status in STATUSES)
    op.create_check_constraint(
        "customers_current_status_check",
        "customers",
        f"current_status IN ({status_list})",
    )


def downgrade() -> None:
    # Several legacy codes fold into one status, so only the constraint is undone.
    op.drop_constraint("customers_current_status_check", "customers", type_="check")
