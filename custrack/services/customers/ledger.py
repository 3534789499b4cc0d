"""Append-only status history ledger."""

from custrack.common.errors import CustomerNotFoundError
from custrack.common.status import CustomerStatus
from custrack.services.customers.models import StatusHistory
from custrack.services.customers.repository import CustomerRepository


def _code(status: CustomerStatus | str | None) -> str | None:
    if status is None:
        return None
    return status.value if isinstance(status, CustomerStatus) else str(status)


class StatusHistoryLedger:
    """Writes and reads the per-customer status trail.

    Rows are only ever inserted. Ordering is `(changed_at, history_id)`, so
    rows sharing a timestamp keep their insertion order.
    """

    def __init__(self, repo: CustomerRepository) -> None:
        self.repo = repo

    def record(
        self,
        customer_id: str,
        from_status: CustomerStatus | None,
        to_status: CustomerStatus,
        reason: str | None,
        actor: str,
    ) -> int:
        """Append one history row and return its id."""

        if not self.repo.customer_exists(customer_id):
            raise CustomerNotFoundError(customer_id)
        row = self.repo.append_history(
            StatusHistory(
                customer_id=customer_id,
                from_status=_code(from_status),
                to_status=_code(to_status),
                reason=reason,
                changed_by=actor,
            )
        )
        return row.history_id

    def history_for(
        self,
        customer_id: str,
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[StatusHistory]:
        return self.repo.list_history(customer_id, newest_first=newest_first, limit=limit, offset=offset)

    def count(self, customer_id: str) -> int:
        return self.repo.count_history(customer_id)
