"""Customer status transitions enforced by the customer service."""

from custrack.common.errors import InvalidTransitionError
from custrack.common.status import CustomerStatus, allowed_targets, parse_status


def is_valid_transition(current: CustomerStatus | None, new: CustomerStatus | None) -> bool:
    """True when `new` is one direct step away from `current`."""

    if current is None or new is None:
        return False
    return new in allowed_targets(current)


def valid_transitions(current: CustomerStatus | None) -> frozenset[CustomerStatus]:
    if current is None:
        return frozenset()
    return allowed_targets(current)


def ordered_transitions(current: CustomerStatus | None) -> list[CustomerStatus]:
    """Valid targets in declaration order, for stable UI listings."""

    targets = valid_transitions(current)
    return [status for status in CustomerStatus if status in targets]


def transition_error_message(current: CustomerStatus | None, new: CustomerStatus | None) -> str | None:
    """Explain why `current -> new` is rejected; None when it is allowed."""

    if current is None or new is None:
        return "Both current and target status must be specified"
    if is_valid_transition(current, new):
        return None
    current = parse_status(current)
    new = parse_status(new)
    if current == new:
        return f"Customer is already in status: {new.display_name}"
    if new == CustomerStatus.NEW:
        return (
            f"Cannot transition from {current.display_name} to {new.display_name}. "
            f"Once a customer leaves {new.display_name} status, they cannot return to it."
        )
    targets = ordered_transitions(current)
    if not targets:
        return f"No status transitions are allowed from {current.display_name}"
    options = ", ".join(status.display_name for status in targets)
    return (
        f"Invalid transition from {current.display_name} to {new.display_name}. "
        f"Valid transitions are: {options}"
    )


def validate_transition(current: CustomerStatus, new: CustomerStatus) -> None:
    """Raise when a transition is not allowed by the state machine."""

    message = transition_error_message(current, new)
    if message is not None:
        raise InvalidTransitionError(current, new, message)
