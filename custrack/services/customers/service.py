"""Customer aggregate logic.

Owns customer lifecycle operations. Every status change validates against the
transition table, updates the customer and appends a history row inside one
transaction, so a status never changes without its audit record.
"""

import math
from datetime import timedelta

from custrack.common.config import settings
from custrack.common.errors import (
    CustomerNotDeletedError,
    CustomerNotFoundError,
    DuplicateCustomerError,
    InvalidTransitionError,
)
from custrack.common.logging import bind_log_context, logger
from custrack.common.metrics import (
    customers_created_total,
    status_transition_rejections_total,
    status_transitions_total,
)
from custrack.common.state_machine import (
    is_valid_transition,
    ordered_transitions,
    transition_error_message,
    validate_transition,
)
from custrack.common.status import CustomerStatus, parse_status
from custrack.common.tracing import annotate_transition, tracer
from custrack.services.customers.ledger import StatusHistoryLedger
from custrack.services.customers.models import Customer, StatusHistory, utcnow
from custrack.services.customers.repository import CustomerRepository

INITIAL_REASON = "Initial customer creation"
NON_NULL_FIELDS = ("name", "phone", "customer_type")
MAX_PAGE = 100_000
MAX_ACTIVITY_DAYS = 3650


def page_window(page: int, limit: int | None) -> tuple[int, int, int]:
    """Clamp 1-based paging input and return `(page, limit, offset)`."""

    page = max(1, min(MAX_PAGE, page))
    if limit is None:
        limit = settings.default_page_size
    limit = max(1, min(settings.max_page_size, limit))
    return page, limit, (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


class CustomerService:
    """Owns customer state and its status history."""

    def __init__(self, session_factory, service_name: str = "customers") -> None:
        self.session_factory = session_factory
        self.service_name = service_name

    def _require_customer(
        self, repo: CustomerRepository, customer_id: str, for_update: bool = False
    ) -> Customer:
        customer = repo.load_customer(customer_id, for_update=for_update)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def _check_unique_certificate(
        self,
        repo: CustomerRepository,
        id_card: str | None,
        certificate_type: str | None,
        customer_id: str | None = None,
    ) -> None:
        if id_card is None or certificate_type is None:
            return
        existing = repo.find_by_id_card_and_certificate_type(id_card, certificate_type)
        if existing is not None and existing.customer_id != customer_id:
            raise DuplicateCustomerError(
                f"A customer with ID card '{id_card}' already has a '{certificate_type}' certificate. "
                "Each combination of ID card and certificate type must be unique."
            )

    def create_customer(self, req, actor: str) -> Customer:
        """Insert a customer and its first history row `(None -> initial)`."""

        with self.session_factory() as db:
            repo = CustomerRepository(db)
            self._check_unique_certificate(repo, req.id_card, req.certificate_type)

            data = req.model_dump(exclude={"initial_status"})
            initial_status = parse_status(req.initial_status)
            customer = Customer(**data, current_status=initial_status)
            if initial_status == CustomerStatus.CERTIFIED:
                customer.certified_at = utcnow()
            repo.save_customer(customer)
            StatusHistoryLedger(repo).record(
                customer.customer_id, None, initial_status, INITIAL_REASON, actor
            )
            db.commit()

        customers_created_total.labels(service=self.service_name).inc()
        with bind_log_context(customer_id=customer.customer_id):
            logger.info(
                "customer_created customer_id=%s status=%s actor=%s",
                customer.customer_id,
                initial_status.value,
                actor,
            )
        return customer

    def get_customer(self, customer_id: str, include_deleted: bool = False) -> Customer:
        with self.session_factory() as db:
            customer = CustomerRepository(db).load_customer(customer_id, include_deleted=include_deleted)
            if customer is None:
                raise CustomerNotFoundError(customer_id)
            return customer

    def update_customer(self, customer_id: str, req) -> Customer:
        """Update business attributes. Status is never touched here."""

        changes = req.model_dump(exclude_unset=True)
        for field in NON_NULL_FIELDS:
            if field in changes and changes[field] is None:
                del changes[field]

        with self.session_factory() as db:
            repo = CustomerRepository(db)
            customer = self._require_customer(repo, customer_id, for_update=True)
            id_card = changes.get("id_card", customer.id_card)
            certificate_type = changes.get("certificate_type", customer.certificate_type)
            if id_card != customer.id_card or certificate_type != customer.certificate_type:
                self._check_unique_certificate(repo, id_card, certificate_type, customer_id)
            for field, value in changes.items():
                setattr(customer, field, value)
            repo.save_customer(customer)
            db.commit()
            return customer

    def transition_status(
        self,
        customer_id: str,
        to_status: CustomerStatus,
        reason: str | None,
        actor: str,
    ) -> Customer:
        """Validate, apply and record one status change atomically.

        Nothing is written when validation fails. A failure in either write
        rolls back both, because the session closes without commit.
        """

        to_status = parse_status(to_status)
        with tracer.start_as_current_span("customer.status_transition") as span, self.session_factory() as db:
            repo = CustomerRepository(db)
            customer = self._require_customer(repo, customer_id, for_update=True)
            from_status = parse_status(customer.current_status)

            try:
                validate_transition(from_status, to_status)
            except InvalidTransitionError:
                annotate_transition(span, customer_id, from_status.value, to_status.value, "rejected")
                status_transition_rejections_total.labels(
                    service=self.service_name,
                    from_status=from_status.value,
                    to_status=to_status.value,
                ).inc()
                logger.info(
                    "status_transition_rejected customer_id=%s from=%s to=%s",
                    customer_id,
                    from_status.value,
                    to_status.value,
                )
                raise

            customer.current_status = to_status
            if to_status == CustomerStatus.CERTIFIED:
                customer.certified_at = utcnow()
            repo.save_customer(customer)
            StatusHistoryLedger(repo).record(customer_id, from_status, to_status, reason, actor)
            db.commit()
            annotate_transition(span, customer_id, from_status.value, to_status.value, "applied")

        status_transitions_total.labels(
            service=self.service_name,
            from_status=from_status.value,
            to_status=to_status.value,
        ).inc()
        logger.info(
            "status_transition_applied customer_id=%s from=%s to=%s actor=%s",
            customer_id,
            from_status.value,
            to_status.value,
            actor,
        )
        return customer

    def delete_customer(self, customer_id: str) -> None:
        """Soft delete: stamp `deleted_at`, keep status and history as they are."""

        with self.session_factory() as db:
            repo = CustomerRepository(db)
            customer = self._require_customer(repo, customer_id, for_update=True)
            customer.deleted_at = utcnow()
            repo.save_customer(customer)
            db.commit()
        logger.info("customer_soft_deleted customer_id=%s", customer_id)

    def restore_customer(self, customer_id: str) -> Customer:
        with self.session_factory() as db:
            repo = CustomerRepository(db)
            customer = repo.load_customer(customer_id, include_deleted=True, for_update=True)
            if customer is None:
                raise CustomerNotFoundError(customer_id)
            if not customer.is_deleted:
                raise CustomerNotDeletedError(customer_id)
            customer.deleted_at = None
            repo.save_customer(customer)
            db.commit()
        logger.info("customer_restored customer_id=%s", customer_id)
        return customer

    def status_history(
        self,
        customer_id: str,
        newest_first: bool = True,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[StatusHistory], int]:
        """Return one page of the customer's history plus the total row count."""

        page, limit, offset = page_window(page, limit)
        with self.session_factory() as db:
            repo = CustomerRepository(db)
            self._require_customer(repo, customer_id)
            ledger = StatusHistoryLedger(repo)
            rows = ledger.history_for(customer_id, newest_first=newest_first, limit=limit, offset=offset)
            return rows, ledger.count(customer_id)

    def valid_transitions(self, customer_id: str) -> list[CustomerStatus]:
        customer = self.get_customer(customer_id)
        return ordered_transitions(parse_status(customer.current_status))

    def can_transition_to(self, customer_id: str, to_status: CustomerStatus) -> tuple[bool, str | None]:
        customer = self.get_customer(customer_id)
        current = parse_status(customer.current_status)
        to_status = parse_status(to_status)
        return is_valid_transition(current, to_status), transition_error_message(current, to_status)

    def search_customers(
        self,
        query: str | None = None,
        statuses: list[CustomerStatus] | None = None,
        customer_agent: str | None = None,
        include_deleted: bool = False,
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        page, limit, offset = page_window(page, limit)
        with self.session_factory() as db:
            items, total = CustomerRepository(db).search(
                query=query,
                statuses=statuses,
                customer_agent=customer_agent,
                include_deleted=include_deleted,
                limit=limit,
                offset=offset,
            )
        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": total_pages(total, limit),
        }

    def recently_updated(self, days: int, page: int = 1, limit: int | None = None) -> dict:
        page, limit, offset = page_window(page, limit)
        since = utcnow() - timedelta(days=max(0, min(MAX_ACTIVITY_DAYS, days)))
        with self.session_factory() as db:
            items, total = CustomerRepository(db).search(updated_since=since, limit=limit, offset=offset)
        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": total_pages(total, limit),
        }

    def statistics(self, include_deleted: bool = False) -> dict:
        """Per-status counts plus recent activity over `recent_activity_days`."""

        since = utcnow() - timedelta(days=settings.recent_activity_days)
        with self.session_factory() as db:
            repo = CustomerRepository(db)
            status_counts = repo.count_by_status(include_deleted=include_deleted)
            recent = repo.count_updated_since(since, include_deleted=include_deleted)
        return {
            "total_customers": sum(status_counts.values()),
            "recently_updated_count": recent,
            "status_counts": status_counts,
        }
