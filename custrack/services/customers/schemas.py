"""API request/response schemas for customer endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from custrack.common.status import CustomerStatus, display_name


class CustomerCreateRequest(BaseModel):
    """Customer creation payload."""

    name: str = Field(min_length=1)
    phone: str = Field(min_length=5, max_length=32)
    id_card: str | None = None
    certificate_type: str | None = None
    certificate_issuer: str | None = None
    customer_type: str = "NEW_CUSTOMER"
    customer_agent: str | None = None
    sales_phone: str | None = None
    address: str | None = None
    business_requirements: str | None = None
    initial_status: CustomerStatus = CustomerStatus.NEW


class CustomerUpdateRequest(BaseModel):
    """Partial update of business attributes; status is changed only by transitions."""

    name: str | None = Field(default=None, min_length=1)
    phone: str | None = Field(default=None, min_length=5, max_length=32)
    id_card: str | None = None
    certificate_type: str | None = None
    certificate_issuer: str | None = None
    customer_type: str | None = None
    customer_agent: str | None = None
    sales_phone: str | None = None
    address: str | None = None
    business_requirements: str | None = None


class StatusTransitionRequest(BaseModel):
    to_status: CustomerStatus
    reason: str | None = Field(default=None, max_length=1000)


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: str
    name: str
    phone: str
    id_card: str | None
    certificate_type: str | None
    certificate_issuer: str | None
    customer_type: str
    customer_agent: str | None
    sales_phone: str | None
    address: str | None
    business_requirements: str | None
    current_status: CustomerStatus
    certified_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    deleted_at: datetime | None


class CustomerPageResponse(BaseModel):
    items: list[CustomerResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class StatusHistoryResponse(BaseModel):
    """One ledger row; display names resolve legacy codes too."""

    history_id: int
    customer_id: str
    from_status: str | None
    from_status_display: str | None
    to_status: str
    to_status_display: str
    reason: str | None
    changed_by: str
    changed_at: datetime

    @classmethod
    def from_row(cls, row) -> "StatusHistoryResponse":
        return cls(
            history_id=row.history_id,
            customer_id=row.customer_id,
            from_status=row.from_status,
            from_status_display=display_name(row.from_status),
            to_status=row.to_status,
            to_status_display=display_name(row.to_status),
            reason=row.reason,
            changed_by=row.changed_by,
            changed_at=row.changed_at,
        )


class StatusOption(BaseModel):
    code: CustomerStatus
    display_name: str

    @classmethod
    def of(cls, status: CustomerStatus) -> "StatusOption":
        return cls(code=status, display_name=status.display_name)


class StatusRegistryEntry(StatusOption):
    allowed_targets: list[StatusOption]


class TransitionCheckResponse(BaseModel):
    valid: bool
    message: str | None = None


class CustomerStatisticsResponse(BaseModel):
    total_customers: int
    recently_updated_count: int
    status_counts: dict[CustomerStatus, int]
