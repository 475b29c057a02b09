from dataclasses import replace
from decimal import Decimal

import pytest

from fakes import make_record
from src.payroll_system.payroll_system.core.enums import PayrollEvent, PayrollStatus
from src.payroll_system.payroll_system.core.exceptions import IllegalTransitionError, ValidationError
from src.payroll_system.payroll_system.payroll.state_machine import (
    TRANSITIONS,
    check_approvable,
    next_status,
)


@pytest.mark.parametrize(
    "current,event,expected",
    [
        (PayrollStatus.PENDING, PayrollEvent.APPROVE, PayrollStatus.APPROVED),
        (PayrollStatus.APPROVED, PayrollEvent.REVOKE, PayrollStatus.PENDING),
        (PayrollStatus.APPROVED, PayrollEvent.PAY, PayrollStatus.PAID),
        (PayrollStatus.APPROVED, PayrollEvent.PAY_FAILED, PayrollStatus.FAILED),
        (PayrollStatus.PENDING, PayrollEvent.CANCEL, PayrollStatus.CANCELLED),
        (PayrollStatus.APPROVED, PayrollEvent.CANCEL, PayrollStatus.CANCELLED),
    ],
)
def test_allowed_transitions(current, event, expected):
    assert next_status(current, event) == expected


def test_every_other_pair_is_illegal():
    for status in PayrollStatus:
        for event in PayrollEvent:
            if (status, event) in TRANSITIONS:
                continue
            with pytest.raises(IllegalTransitionError):
                next_status(status, event)


def test_error_message_names_the_current_status():
    with pytest.raises(IllegalTransitionError, match="Cannot approve payroll with status: PAID"):
        next_status(PayrollStatus.PAID, PayrollEvent.APPROVE)


@pytest.mark.parametrize("status", [PayrollStatus.PAID, PayrollStatus.FAILED, PayrollStatus.CANCELLED])
def test_terminal_states_accept_no_event(status):
    for event in PayrollEvent:
        with pytest.raises(IllegalTransitionError):
            next_status(status, event)


def test_approve_guard_rejects_negative_net():
    check_approvable(make_record())
    with pytest.raises(ValidationError):
        check_approvable(replace(make_record(), net_salary=Decimal("-1.00")))


def test_approve_guard_rejects_missing_net():
    with pytest.raises(ValidationError):
        check_approvable(replace(make_record(), net_salary=None))
