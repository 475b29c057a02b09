from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles written into the session by the auth service."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class EmploymentStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    TERMINATED = "Terminated"
    RESIGNED = "Resigned"


class PayrollStatus(str, Enum):
    """Lifecycle of a monthly payroll record."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PayrollEvent(str, Enum):
    APPROVE = "APPROVE"
    REVOKE = "REVOKE"
    PAY = "PAY"
    PAY_FAILED = "PAY_FAILED"
    CANCEL = "CANCEL"


class AdjustmentType(str, Enum):
    BONUS = "Bonus"
    PENALTY = "Penalty"
    ALLOWANCE = "Allowance"
    DEDUCTION = "Deduction"
    REIMBURSEMENT = "Reimbursement"
    RECOVERY = "Recovery"

    @property
    def is_earning(self) -> bool:
        return self in _EARNING_ADJUSTMENTS


_EARNING_ADJUSTMENTS = frozenset(
    {AdjustmentType.BONUS, AdjustmentType.ALLOWANCE, AdjustmentType.REIMBURSEMENT}
)


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    CASH = "Cash"
    UPI = "UPI"


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class NotificationType(str, Enum):
    PAYSLIP_READY = "PAYSLIP_READY"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    SYSTEM_ALERT = "SYSTEM_ALERT"


class AuditAction(str, Enum):
    PROCESS = "PROCESS"
    ADJUST = "ADJUST"
    APPROVE = "APPROVE"
    REVOKE = "REVOKE"
    CANCEL = "CANCEL"
    PAY = "PAY"

    @property
    def severity(self) -> "AuditSeverity":
        if self in (AuditAction.APPROVE, AuditAction.PAY):
            return AuditSeverity.CRITICAL
        if self in (AuditAction.PROCESS, AuditAction.ADJUST):
            return AuditSeverity.HIGH
        return AuditSeverity.MEDIUM


class AuditSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AuditOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
