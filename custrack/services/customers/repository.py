"""Storage access for customers and their status history.

Every method runs inside the caller's session; nothing here commits. Lookups
return `None` rather than raising so the service decides what a miss means.
"""

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from custrack.common.status import CustomerStatus
from custrack.services.customers.models import Customer, StatusHistory


def escape_like(text: str) -> str:
    """Make `%`, `_` and the escape character match literally in LIKE patterns."""

    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CustomerRepository:
    """Session-scoped customer and history queries."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def load_customer(
        self, customer_id: str, include_deleted: bool = False, for_update: bool = False
    ) -> Customer | None:
        stmt = select(Customer).where(Customer.customer_id == customer_id)
        if not include_deleted:
            stmt = stmt.where(Customer.deleted_at.is_(None))
        if for_update:
            # Row lock so concurrent transitions see the committed status.
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def customer_exists(self, customer_id: str) -> bool:
        return self.db.get(Customer, customer_id) is not None

    def save_customer(self, customer: Customer) -> Customer:
        self.db.add(customer)
        self.db.flush()
        return customer

    def append_history(self, record: StatusHistory) -> StatusHistory:
        self.db.add(record)
        self.db.flush()
        return record

    def list_history(
        self,
        customer_id: str,
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[StatusHistory]:
        if newest_first:
            ordering = (StatusHistory.changed_at.desc(), StatusHistory.history_id.desc())
        else:
            ordering = (StatusHistory.changed_at.asc(), StatusHistory.history_id.asc())
        stmt = (
            select(StatusHistory)
            .where(StatusHistory.customer_id == customer_id)
            .order_by(*ordering)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def count_history(self, customer_id: str) -> int:
        return self.db.execute(
            select(func.count()).select_from(StatusHistory).where(StatusHistory.customer_id == customer_id)
        ).scalar_one()

    def find_by_id_card_and_certificate_type(
        self, id_card: str, certificate_type: str
    ) -> Customer | None:
        return self.db.execute(
            select(Customer).where(
                Customer.id_card == id_card,
                Customer.certificate_type == certificate_type,
            )
        ).scalar_one_or_none()

    def search(
        self,
        query: str | None = None,
        statuses: list[CustomerStatus] | None = None,
        customer_agent: str | None = None,
        include_deleted: bool = False,
        updated_since: datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Customer], int]:
        """Return one page of matching customers plus the total match count."""

        filters = []
        if not include_deleted:
            filters.append(Customer.deleted_at.is_(None))
        if query:
            pattern = f"%{escape_like(query)}%"
            filters.append(
                or_(
                    Customer.name.ilike(pattern, escape="\\"),
                    Customer.phone.ilike(pattern, escape="\\"),
                    Customer.id_card.ilike(pattern, escape="\\"),
                )
            )
        if statuses:
            filters.append(Customer.current_status.in_(statuses))
        if customer_agent:
            filters.append(Customer.customer_agent == customer_agent)
        if updated_since is not None:
            filters.append(Customer.updated_at >= updated_since)

        total = self.db.execute(select(func.count()).select_from(Customer).where(*filters)).scalar_one()
        rows = self.db.execute(
            select(Customer)
            .where(*filters)
            .order_by(Customer.updated_at.desc(), Customer.customer_id)
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        return list(rows), int(total)

    def count_by_status(self, include_deleted: bool = False) -> dict[CustomerStatus, int]:
        stmt = select(Customer.current_status, func.count(Customer.customer_id)).group_by(
            Customer.current_status
        )
        if not include_deleted:
            stmt = stmt.where(Customer.deleted_at.is_(None))
        counts = {status: 0 for status in CustomerStatus}
        for status, count in self.db.execute(stmt).all():
            counts[CustomerStatus(status)] = int(count)
        return counts

    def count_updated_since(self, since: datetime, include_deleted: bool = False) -> int:
        stmt = select(func.count()).select_from(Customer).where(Customer.updated_at >= since)
        if not include_deleted:
            stmt = stmt.where(Customer.deleted_at.is_(None))
        return int(self.db.execute(stmt).scalar_one())
