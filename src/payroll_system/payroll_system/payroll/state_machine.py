"""Payroll record lifecycle.

PENDING -> APPROVED -> PAID is the normal path. REVOKE (APPROVED -> PENDING)
is the only backward edge and is allowed until payment. PAID, FAILED and
CANCELLED are terminal.
"""
from __future__ import annotations

from ..core.enums import PayrollEvent, PayrollStatus
from ..core.exceptions import IllegalTransitionError, ValidationError
from .model import PayrollRecord

TRANSITIONS: dict[tuple[PayrollStatus, PayrollEvent], PayrollStatus] = {
    (PayrollStatus.PENDING, PayrollEvent.APPROVE): PayrollStatus.APPROVED,
    (PayrollStatus.APPROVED, PayrollEvent.REVOKE): PayrollStatus.PENDING,
    (PayrollStatus.APPROVED, PayrollEvent.PAY): PayrollStatus.PAID,
    (PayrollStatus.APPROVED, PayrollEvent.PAY_FAILED): PayrollStatus.FAILED,
    (PayrollStatus.PENDING, PayrollEvent.CANCEL): PayrollStatus.CANCELLED,
    (PayrollStatus.APPROVED, PayrollEvent.CANCEL): PayrollStatus.CANCELLED,
}

_VERBS = {
    PayrollEvent.APPROVE: "approve",
    PayrollEvent.REVOKE: "revoke",
    PayrollEvent.PAY: "pay",
    PayrollEvent.PAY_FAILED: "fail",
    PayrollEvent.CANCEL: "cancel",
}


def next_status(current: PayrollStatus, event: PayrollEvent) -> PayrollStatus:
    target = TRANSITIONS.get((current, event))
    if target is None:
        raise IllegalTransitionError(f"Cannot {_VERBS[event]} payroll with status: {current.value}")
    return target


def check_approvable(record: PayrollRecord) -> None:
    """Guard for APPROVE: the record must be complete and its net computed."""

    if not record.employee_id or not record.month:
        raise ValidationError("Payroll record is missing employee or month")
    if record.earnings is None or record.deductions is None:
        raise ValidationError("Payroll record is missing earnings or deductions")
    if record.net_salary is None:
        raise ValidationError("Net salary has not been computed")
    if record.net_salary < 0:
        raise ValidationError("Net salary cannot be negative")
