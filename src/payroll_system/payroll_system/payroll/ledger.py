"""Adjustment ledger for pending payroll records.

Adjustments are append-only: a wrong entry is corrected by adding a
compensating one. Earning-type adjustments (Bonus, Allowance, Reimbursement)
raise gross; the others (Penalty, Deduction, Recovery) raise total deductions.
Gross, deductions and net are recomputed from the salary components and the
full ledger every time, so stored totals never drift.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from ..common.money import round_money, sum_money
from ..common.validators import require_amount, require_max_length, require_non_empty
from ..core.constants import ADJUSTMENT_DESCRIPTION_MAX
from ..core.enums import AdjustmentType, PayrollStatus
from ..core.exceptions import InvalidStateError, ValidationError
from .model import Adjustment, PayrollRecord


def build_adjustment(
    *,
    adjustment_type: Any,
    amount: Any,
    description: str,
    added_by: Optional[int] = None,
    added_at: Optional[datetime] = None,
) -> Adjustment:
    try:
        kind = AdjustmentType(adjustment_type)
    except ValueError:
        allowed = ", ".join(t.value for t in AdjustmentType)
        raise ValidationError(f"Adjustment type must be one of: {allowed}")

    value = require_amount(amount, "Adjustment amount", allow_zero=False)
    text = require_non_empty(description, "Description")
    require_max_length(text, "Description", ADJUSTMENT_DESCRIPTION_MAX)

    return Adjustment(
        type=kind,
        description=text,
        amount=round_money(value),
        added_by=added_by,
        added_at=added_at,
    )


def recompute_totals(record: PayrollRecord) -> PayrollRecord:
    positive = sum_money(a.amount for a in record.adjustments if a.type.is_earning)
    negative = sum_money(a.amount for a in record.adjustments if not a.type.is_earning)

    gross = round_money(record.earnings.component_total + positive)
    total = round_money(record.deductions.statutory_total + negative)

    return replace(
        record,
        earnings=replace(record.earnings, gross=gross),
        deductions=replace(record.deductions, total=total),
        total_adjustment=round_money(positive - negative),
        net_salary=round_money(gross - total),
    )


def apply_adjustment(record: PayrollRecord, adjustment: Adjustment) -> PayrollRecord:
    """Return a copy of ``record`` with ``adjustment`` appended and totals recomputed."""

    if record.status != PayrollStatus.PENDING:
        raise InvalidStateError(f"Cannot adjust payroll with status: {record.status.value}")
    if adjustment.amount <= 0:
        raise ValidationError("Adjustment amount must be a positive number")

    updated = recompute_totals(replace(record, adjustments=record.adjustments + (adjustment,)))
    if updated.net_salary < 0:
        raise ValidationError("Net salary cannot be negative after adjustments")
    return updated
