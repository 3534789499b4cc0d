"""Unit tests for customer status transition guardrails."""

import itertools

import pytest

from custrack.common.errors import InvalidStateError, InvalidTransitionError
from custrack.common.state_machine import (
    is_valid_transition,
    ordered_transitions,
    transition_error_message,
    valid_transitions,
    validate_transition,
)
from custrack.common.status import CustomerStatus

ALL_PAIRS = list(itertools.product(CustomerStatus, CustomerStatus))


def test_valid_transition():
    """Sanity check: a legal transition should pass."""

    validate_transition(CustomerStatus.NEW, CustomerStatus.NOTIFIED)


def test_invalid_transition():
    """Skipping ahead in the lifecycle must raise."""

    with pytest.raises(InvalidTransitionError) as exc_info:
        validate_transition(CustomerStatus.NEW, CustomerStatus.CERTIFIED)
    assert exc_info.value.from_status == CustomerStatus.NEW
    assert exc_info.value.to_status == CustomerStatus.CERTIFIED
    assert exc_info.value.code == "INVALID_STATUS_TRANSITION"


@pytest.mark.parametrize("status", list(CustomerStatus))
def test_no_implicit_self_transitions(status):
    assert not is_valid_transition(status, status)


@pytest.mark.parametrize("current,new", ALL_PAIRS)
def test_is_valid_agrees_with_valid_transitions(current, new):
    assert is_valid_transition(current, new) == (new in valid_transitions(current))


@pytest.mark.parametrize("current,new", ALL_PAIRS)
def test_message_is_none_exactly_when_valid(current, new):
    message = transition_error_message(current, new)
    assert (message is None) == is_valid_transition(current, new)
    assert transition_error_message(current, new) == message


@pytest.mark.parametrize("status", list(CustomerStatus))
def test_new_is_never_a_target(status):
    assert CustomerStatus.NEW not in valid_transitions(status)


def test_lifecycle_path_is_valid():
    path = [
        CustomerStatus.NEW,
        CustomerStatus.NOTIFIED,
        CustomerStatus.SUBMITTED,
        CustomerStatus.CERTIFIED,
    ]
    for current, new in zip(path, path[1:]):
        assert is_valid_transition(current, new)


@pytest.mark.parametrize(
    "status",
    [CustomerStatus.CERTIFIED, CustomerStatus.CERTIFIED_ELSEWHERE, CustomerStatus.ABORTED],
)
def test_terminal_statuses_have_no_targets(status):
    assert valid_transitions(status) == frozenset()
    assert transition_error_message(status, CustomerStatus.SUBMITTED) == (
        f"No status transitions are allowed from {status.display_name}"
    )


def test_none_statuses_are_rejected():
    assert not is_valid_transition(None, CustomerStatus.NEW)
    assert not is_valid_transition(CustomerStatus.NEW, None)
    assert not is_valid_transition(None, None)
    assert valid_transitions(None) == frozenset()
    assert "must be specified" in transition_error_message(None, CustomerStatus.NEW)
    assert "must be specified" in transition_error_message(CustomerStatus.NEW, None)


def test_same_status_message():
    message = transition_error_message(CustomerStatus.SUBMITTED, CustomerStatus.SUBMITTED)
    assert message == "Customer is already in status: Submitted"


def test_return_to_new_message():
    message = transition_error_message(CustomerStatus.NOTIFIED, CustomerStatus.NEW)
    assert message.startswith("Cannot transition from Notified to New.")
    assert "cannot return to it" in message


def test_skip_ahead_message_lists_valid_targets_in_order():
    message = transition_error_message(CustomerStatus.NEW, CustomerStatus.CERTIFIED)
    assert message == (
        "Invalid transition from New to Certified. "
        "Valid transitions are: Notified, Aborted, Certified Elsewhere"
    )


def test_ordered_transitions_follow_declaration_order():
    assert ordered_transitions(CustomerStatus.SUBMITTED) == [
        CustomerStatus.NOTIFIED,
        CustomerStatus.ABORTED,
        CustomerStatus.CERTIFIED,
    ]


def test_unknown_current_status_fails_fast():
    with pytest.raises(InvalidStateError):
        is_valid_transition("ORDER_PLACED", CustomerStatus.NOTIFIED)


def test_string_codes_are_accepted():
    assert is_valid_transition("NEW", "NOTIFIED")
    assert not is_valid_transition("NEW", "CERTIFIED")
