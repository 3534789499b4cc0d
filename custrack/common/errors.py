"""Domain errors raised by the customer service.

Each error carries a stable `code` so HTTP clients can map failures to their
own messages without parsing text.
"""


class CustomerServiceError(Exception):
    """Base class for business-rule failures."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class CustomerNotFoundError(CustomerServiceError):
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, customer_id: str) -> None:
        super().__init__(f"Customer not found with id: {customer_id}")
        self.customer_id = customer_id


class InvalidTransitionError(CustomerServiceError):
    """Requested status is not reachable from the current one."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, from_status, to_status, message: str) -> None:
        super().__init__(message)
        self.from_status = from_status
        self.to_status = to_status


class InvalidStateError(CustomerServiceError):
    """A value outside the closed status set reached the transition table."""

    code = "VALIDATION_ERROR"


class DuplicateCustomerError(CustomerServiceError):
    code = "DUPLICATE_CUSTOMER_CERTIFICATE"


class CustomerNotDeletedError(CustomerServiceError):
    code = "VALIDATION_ERROR"

    def __init__(self, customer_id: str) -> None:
        super().__init__(f"Customer is not deleted: {customer_id}")
        self.customer_id = customer_id
