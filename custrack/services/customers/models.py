"""Customer database models.

This DB is the source of truth for the current customer status and for the
append-only history of every status change.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from custrack.common.db import Base
from custrack.common.status import CustomerStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Customer(Base):
    """Current state of a customer aggregate."""

    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("id_card", "certificate_type", name="uq_customers_id_card_certificate_type"),
    )

    customer_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String)
    phone: Mapped[str] = mapped_column(String, index=True)
    id_card: Mapped[str | None] = mapped_column(String, nullable=True)
    certificate_type: Mapped[str | None] = mapped_column(String, nullable=True)
    certificate_issuer: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_type: Mapped[str] = mapped_column(String, default="NEW_CUSTOMER")
    customer_agent: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    sales_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    business_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_status: Mapped[CustomerStatus] = mapped_column(
        Enum(
            CustomerStatus,
            native_enum=False,
            length=32,
            create_constraint=True,
            validate_strings=True,
            name="customers_current_status_check",
        ),
        index=True,
        default=CustomerStatus.NEW,
    )
    certified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class StatusHistory(Base):
    """Immutable audit trail of every status transition.

    Status columns are plain strings: rows written before a status remap keep
    their original codes.
    """

    __tablename__ = "status_history"
    __table_args__ = (Index("ix_status_history_customer_id_changed_at", "customer_id", "changed_at"),)

    history_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.customer_id"))
    from_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    to_status: Mapped[str] = mapped_column(String(32))
    reason: Mapped[str | None] = mapped_column(String, nullable=True)
    changed_by: Mapped[str] = mapped_column(String, index=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
