"""Customer status set and the table of allowed transitions.

Once a customer leaves NEW it can never return to it. CERTIFIED,
CERTIFIED_ELSEWHERE and ABORTED are terminal.
"""

from enum import Enum

from custrack.common.errors import InvalidStateError


class CustomerStatus(str, Enum):
    NEW = "NEW"
    NOTIFIED = "NOTIFIED"
    ABORTED = "ABORTED"
    SUBMITTED = "SUBMITTED"
    CERTIFIED = "CERTIFIED"
    CERTIFIED_ELSEWHERE = "CERTIFIED_ELSEWHERE"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]


DISPLAY_NAMES: dict[CustomerStatus, str] = {
    CustomerStatus.NEW: "New",
    CustomerStatus.NOTIFIED: "Notified",
    CustomerStatus.ABORTED: "Aborted",
    CustomerStatus.SUBMITTED: "Submitted",
    CustomerStatus.CERTIFIED: "Certified",
    CustomerStatus.CERTIFIED_ELSEWHERE: "Certified Elsewhere",
}

ALLOWED_TRANSITIONS: dict[CustomerStatus, frozenset[CustomerStatus]] = {
    CustomerStatus.NEW: frozenset(
        {CustomerStatus.NOTIFIED, CustomerStatus.ABORTED, CustomerStatus.CERTIFIED_ELSEWHERE}
    ),
    CustomerStatus.NOTIFIED: frozenset(
        {CustomerStatus.SUBMITTED, CustomerStatus.ABORTED, CustomerStatus.CERTIFIED_ELSEWHERE}
    ),
    CustomerStatus.SUBMITTED: frozenset(
        {CustomerStatus.CERTIFIED, CustomerStatus.ABORTED, CustomerStatus.NOTIFIED}
    ),
    CustomerStatus.CERTIFIED: frozenset(),
    CustomerStatus.CERTIFIED_ELSEWHERE: frozenset(),
    CustomerStatus.ABORTED: frozenset(),
}

# Retired status codes and the status each was folded into. History rows
# written before the remap still carry these codes.
LEGACY_STATUS_MAP: dict[str, CustomerStatus] = {
    "CUSTOMER_CALLED": CustomerStatus.NEW,
    "REPLIED_TO_CUSTOMER": CustomerStatus.NOTIFIED,
    "ORDER_PLACED": CustomerStatus.SUBMITTED,
    "PRODUCT_DELIVERED": CustomerStatus.SUBMITTED,
    "BUSINESS_DONE": CustomerStatus.CERTIFIED,
    "ORDER_CANCELLED": CustomerStatus.ABORTED,
    "LOST": CustomerStatus.ABORTED,
}

LEGACY_DISPLAY_NAMES: dict[str, str] = {
    "CUSTOMER_CALLED": "Customer called",
    "REPLIED_TO_CUSTOMER": "Replied to customer",
    "ORDER_PLACED": "Order placed",
    "ORDER_CANCELLED": "Order cancelled",
    "PRODUCT_DELIVERED": "Product delivered",
    "BUSINESS_DONE": "Business done",
    "LOST": "Lost",
}


def parse_status(value) -> CustomerStatus:
    """Resolve a status code or display name into a `CustomerStatus`."""

    if isinstance(value, CustomerStatus):
        return value
    if isinstance(value, str):
        try:
            return CustomerStatus(value)
        except ValueError:
            for status, name in DISPLAY_NAMES.items():
                if name == value:
                    return status
    raise InvalidStateError(f"Unknown customer status: {value!r}")


def allowed_targets(status) -> frozenset[CustomerStatus]:
    """Return statuses reachable from `status` in one step."""

    try:
        return ALLOWED_TRANSITIONS[status]
    except (KeyError, TypeError):
        raise InvalidStateError(f"Unknown customer status: {status!r}") from None


def display_name(code: str | None) -> str | None:
    """Human label for a stored status code, legacy codes included."""

    if code is None:
        return None
    try:
        return CustomerStatus(code).display_name
    except ValueError:
        return LEGACY_DISPLAY_NAMES.get(code, code)
