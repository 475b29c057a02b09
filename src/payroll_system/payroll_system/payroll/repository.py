from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import Adjustment, NewPayrollRecord, PayrollRecord

# Columns a status transition may set alongside the new status.
TRANSITION_FIELDS = frozenset(
    {
        "approved_at",
        "approved_by",
        "paid_at",
        "payment_claimed_at",
        "transaction_id",
        "payment_method",
        "failure_reason",
        "remarks",
    }
)


class PayrollRepository(Protocol):
    def create(self, record: NewPayrollRecord) -> Optional[int]:
        """Insert a PENDING record; return None when (employee, month) already exists."""

        raise NotImplementedError

    def get(self, record_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def get_for_employee_and_month(self, *, employee_id: int, month: str) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def list_by_month(self, *, month: str, status: Optional[PayrollStatus] = None) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        month: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
        payslip_only: bool = False,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def count_records(
        self,
        *,
        month: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
        payslip_only: bool = False,
    ) -> int:
        raise NotImplementedError

    def transition(
        self,
        *,
        record_id: int,
        expected: PayrollStatus,
        new_status: PayrollStatus,
        claimed: bool = False,
        **fields: Any,
    ) -> bool:
        """Compare-and-set on status and on the payment claim.

        Only a record whose claim state matches ``claimed`` is updated, so an
        APPROVED record with a payment in flight cannot be revoked or
        cancelled. Return False when nothing matched.
        """

        raise NotImplementedError

    def claim_payment(self, *, record_id: int, expected_version: int, claimed_at: datetime) -> bool:
        """Reserve an unclaimed APPROVED record at ``expected_version`` for one payment attempt."""

        raise NotImplementedError

    def save_adjustment(self, *, record: PayrollRecord, adjustment: Adjustment, expected_version: int) -> bool:
        """Persist the recomputed totals plus the new ledger entry if still PENDING at ``expected_version``."""

        raise NotImplementedError

    def mark_payslip_generated(self, *, record_id: int, payslip_url: str, generated_at: datetime) -> bool:
        raise NotImplementedError

    def mark_notification_sent(self, *, record_id: int, sent_at: datetime) -> bool:
        raise NotImplementedError

    def summarize_by_status(self, *, month: Optional[str] = None) -> Sequence[dict]:
        """Rows of ``{status, count, total_amount}``."""

        raise NotImplementedError

    def summarize_by_month(self, *, limit: int = 6) -> Sequence[dict]:
        """Latest months first: ``{month, total_employees, total_gross, total_deductions, total_net}``."""

        raise NotImplementedError
