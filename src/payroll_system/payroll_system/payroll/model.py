from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..common.money import ZERO, sum_money
from ..core.enums import AdjustmentType, PaymentMethod, PayrollStatus


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None


@dataclass(frozen=True)
class MonthFacts:
    """Attendance/leave facts that feed the salary calculation for one month."""

    lop_days: Decimal = ZERO


@dataclass(frozen=True)
class Earnings:
    basic: Decimal
    hra: Decimal
    da: Decimal
    special_allowance: Decimal
    other_allowances: Decimal
    gross: Decimal

    @property
    def component_total(self) -> Decimal:
        return sum_money([self.basic, self.hra, self.da, self.special_allowance, self.other_allowances])

    def to_dict(self) -> dict:
        return {
            "basic": _money(self.basic),
            "hra": _money(self.hra),
            "da": _money(self.da),
            "special_allowance": _money(self.special_allowance),
            "other_allowances": _money(self.other_allowances),
            "gross": _money(self.gross),
        }


@dataclass(frozen=True)
class Deductions:
    pf: Decimal
    professional_tax: Decimal
    esi: Decimal
    lop: Decimal
    total: Decimal

    @property
    def statutory_total(self) -> Decimal:
        return sum_money([self.pf, self.professional_tax, self.esi, self.lop])

    def to_dict(self) -> dict:
        return {
            "pf": _money(self.pf),
            "professional_tax": _money(self.professional_tax),
            "esi": _money(self.esi),
            "lop": _money(self.lop),
            "total": _money(self.total),
        }


@dataclass(frozen=True)
class SalaryBreakdown:
    earnings: Earnings
    deductions: Deductions
    net_salary: Decimal


@dataclass(frozen=True)
class Adjustment:
    type: AdjustmentType
    description: str
    amount: Decimal
    added_by: Optional[int] = None
    added_at: Optional[datetime] = None

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type.is_earning else -self.amount

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "description": self.description,
            "amount": _money(self.amount),
            "added_by": self.added_by,
            "added_at": _ts(self.added_at),
        }


@dataclass(frozen=True)
class PayrollRecord:
    """Domain entity: one employee's payroll for one month."""

    record_id: int
    employee_id: int
    month: str
    year: int
    earnings: Earnings
    deductions: Deductions
    net_salary: Decimal
    status: PayrollStatus = PayrollStatus.PENDING
    adjustments: tuple[Adjustment, ...] = ()
    total_adjustment: Decimal = ZERO
    transaction_id: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    processed_at: Optional[datetime] = None
    processed_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    paid_at: Optional[datetime] = None
    payment_claimed_at: Optional[datetime] = None
    payslip_generated: bool = False
    payslip_url: Optional[str] = None
    payslip_generated_at: Optional[datetime] = None
    notification_sent: bool = False
    notification_sent_at: Optional[datetime] = None
    remarks: Optional[str] = None
    failure_reason: Optional[str] = None
    version: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "employee_id": self.employee_id,
            "month": self.month,
            "year": self.year,
            "earnings": self.earnings.to_dict(),
            "deductions": self.deductions.to_dict(),
            "adjustments": [a.to_dict() for a in self.adjustments],
            "total_adjustment": _money(self.total_adjustment),
            "net_salary": _money(self.net_salary),
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "payment_method": self.payment_method.value,
            "processed_at": _ts(self.processed_at),
            "approved_at": _ts(self.approved_at),
            "approved_by": self.approved_by,
            "paid_at": _ts(self.paid_at),
            "payment_claimed_at": _ts(self.payment_claimed_at),
            "payslip_generated": self.payslip_generated,
            "payslip_url": self.payslip_url,
            "notification_sent": self.notification_sent,
            "remarks": self.remarks,
            "failure_reason": self.failure_reason,
        }


@dataclass(frozen=True)
class NewPayrollRecord:
    """Input for ``PayrollRepository.create``; the repository assigns the id."""

    employee_id: int
    month: str
    year: int
    breakdown: SalaryBreakdown
    processed_at: datetime
    processed_by: Optional[int] = None


@dataclass(frozen=True)
class BatchError:
    employee_id: int
    employee_code: str
    name: str
    reason: str

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_code": self.employee_code,
            "name": self.name,
            "reason": self.reason,
        }


@dataclass
class BatchResult:
    month: str
    record_ids: list[int] = field(default_factory=list)
    skipped_employee_ids: list[int] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.record_ids)

    @property
    def total_skipped(self) -> int:
        return len(self.skipped_employee_ids)

    @property
    def total_errors(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "total_processed": self.total_processed,
            "total_skipped": self.total_skipped,
            "total_errors": self.total_errors,
            "record_ids": list(self.record_ids),
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class BulkFailure:
    record_id: int
    employee_id: Optional[int]
    reason: str
    error: str

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "employee_id": self.employee_id,
            "reason": self.reason,
            "error": self.error,
        }


@dataclass
class BulkResult:
    month: str
    operation: str
    succeeded: list[int] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)
    payslips_generated: int = 0
    notifications_sent: int = 0

    @property
    def total_succeeded(self) -> int:
        return len(self.succeeded)

    @property
    def total_errors(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict:
        data = {
            "month": self.month,
            "operation": self.operation,
            "succeeded": list(self.succeeded),
            "total_succeeded": self.total_succeeded,
            "total_errors": self.total_errors,
            "errors": [f.to_dict() for f in self.failed],
        }
        if self.operation == "pay":
            data["payslips_generated"] = self.payslips_generated
            data["notifications_sent"] = self.notifications_sent
        return data
