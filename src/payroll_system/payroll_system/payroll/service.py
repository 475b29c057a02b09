from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..audit.service import AuditTrail
from ..common.datetime_utils import format_month, now_local, parse_month
from ..common.money import sum_money
from ..common.pagination import Page, clamp_limit
from ..common.validators import require_max_length
from ..core.constants import DEFAULT_PAGE_SIZE, REMARKS_MAX, STATS_MONTHS
from ..core.enums import AuditAction, AuditOutcome, PayrollEvent, PayrollStatus
from ..core.exceptions import (
    ConcurrencyConflictError,
    DomainError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from ..employees.repository import EmployeeRepository
from ..leaves.repository import LeaveRepository
from ..notifications.service import NotificationService
from ..payslips.dispatcher import DispatchOutcome, PayslipDispatcher
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .export import build_rows, to_xlsx
from .gateway import PaymentGateway
from .ledger import apply_adjustment, build_adjustment
from .model import BatchError, BatchResult, MonthFacts, NewPayrollRecord, PayrollRecord
from .repository import PayrollRepository
from .state_machine import check_approvable, next_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    record: PayrollRecord
    dispatch: Optional[DispatchOutcome] = None


def parse_status(value: Optional[str]) -> Optional[PayrollStatus]:
    if value is None or value == "":
        return None
    try:
        return PayrollStatus(str(value).upper())
    except ValueError:
        allowed = ", ".join(s.value for s in PayrollStatus)
        raise ValidationError(f"Status must be one of: {allowed}")


class PayrollService:
    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        leaves: LeaveRepository,
        gateway: PaymentGateway,
        *,
        calculator: Optional[PayrollCalculator] = None,
        dispatcher: Optional[PayslipDispatcher] = None,
        notifications: Optional[NotificationService] = None,
        audit: Optional[AuditTrail] = None,
    ):
        self._payroll = payroll
        self._employees = employees
        self._leaves = leaves
        self._gateway = gateway
        self._calculator = calculator or StandardPayrollCalculator()
        self._dispatcher = dispatcher
        self._notifications = notifications
        self._audit = audit

    # -------- helpers --------
    def _require(self, record_id: int) -> PayrollRecord:
        record = self._payroll.get(int(record_id))
        if not record:
            raise NotFoundError("Payroll record not found")
        return record

    def _transition(self, record: PayrollRecord, event: PayrollEvent, **fields: Any) -> PayrollRecord:
        target = next_status(record.status, event)
        ok = self._payroll.transition(
            record_id=record.record_id,
            expected=record.status,
            new_status=target,
            **fields,
        )
        if not ok:
            raise ConcurrencyConflictError(
                f"Payroll record {record.record_id} is no longer {record.status.value}; it was modified concurrently"
            )
        logger.info("Payroll %s: %s -> %s", record.record_id, record.status.value, target.value)
        return self._require(record.record_id)

    def _audit_event(self, action: AuditAction, record_id: int, **kwargs: Any) -> None:
        if self._audit is not None:
            self._audit.record(action, record_id, **kwargs)

    @staticmethod
    def _resolve_month(month: Any, year: Any = None) -> Optional[str]:
        if year not in (None, ""):
            return format_month(month, year)
        if month in (None, ""):
            return None
        m, y = parse_month(str(month))
        return format_month(m, y)

    # -------- batch --------
    def process_month(self, month: int, year: int, actor_id: Optional[int] = None) -> BatchResult:
        month_key = format_month(month, year)

        employees = self._employees.list_active()
        if not employees:
            raise NotFoundError("No active employees found")

        result = BatchResult(month=month_key)
        for emp in employees:
            try:
                if self._payroll.get_for_employee_and_month(employee_id=emp.employee_id, month=month_key):
                    result.skipped_employee_ids.append(emp.employee_id)
                    continue

                lop_days = self._leaves.count_lop_days(employee_id=emp.employee_id, month=month_key)
                breakdown = self._calculator.calculate(emp.salary, MonthFacts(lop_days=lop_days))
                record_id = self._payroll.create(
                    NewPayrollRecord(
                        employee_id=emp.employee_id,
                        month=month_key,
                        year=int(year),
                        breakdown=breakdown,
                        processed_at=now_local(),
                        processed_by=actor_id,
                    )
                )
                if record_id is None:
                    # Lost the insert to a concurrent run for the same month.
                    result.skipped_employee_ids.append(emp.employee_id)
                    continue
                result.record_ids.append(record_id)
                self._audit_event(
                    AuditAction.PROCESS,
                    record_id,
                    actor_id=actor_id,
                    after=self._payroll.get(record_id),
                    description=f"Processed {month_key} for {emp.employee_code}",
                )
            except DomainError as e:
                logger.warning("Payroll for %s (%s) failed: %s", emp.employee_code, month_key, e)
                result.errors.append(
                    BatchError(
                        employee_id=emp.employee_id,
                        employee_code=emp.employee_code,
                        name=emp.full_name,
                        reason=str(e),
                    )
                )
            except Exception as e:
                logger.exception("Unexpected error processing payroll for %s (%s)", emp.employee_code, month_key)
                result.errors.append(
                    BatchError(
                        employee_id=emp.employee_id,
                        employee_code=emp.employee_code,
                        name=emp.full_name,
                        reason=f"{type(e).__name__}: {e}",
                    )
                )

        logger.info(
            "Processed payroll for %s: %d created, %d skipped, %d errors",
            month_key,
            result.total_processed,
            result.total_skipped,
            result.total_errors,
        )
        return result

    # -------- single record --------
    def get(self, record_id: int) -> PayrollRecord:
        return self._require(record_id)

    def details(self, record_id: int) -> dict:
        record = self._require(record_id)
        data = record.to_dict()
        emp = self._employees.get_by_id(record.employee_id)
        if emp:
            data["employee"] = {
                "employee_id": emp.employee_id,
                "employee_code": emp.employee_code,
                "name": emp.full_name,
                "email": emp.email,
                "department": emp.department,
                "designation": emp.designation,
                "bank_name": emp.bank.bank_name,
                "account_number": emp.bank.masked_account,
            }
        return data

    def add_adjustment(
        self,
        record_id: int,
        *,
        adjustment_type: Any,
        amount: Any,
        description: str,
        actor_id: Optional[int] = None,
    ) -> PayrollRecord:
        record = self._require(record_id)
        adjustment = build_adjustment(
            adjustment_type=adjustment_type,
            amount=amount,
            description=description,
            added_by=actor_id,
            added_at=now_local(),
        )
        updated = apply_adjustment(record, adjustment)

        if not self._payroll.save_adjustment(record=updated, adjustment=adjustment, expected_version=record.version):
            raise ConcurrencyConflictError(
                f"Payroll record {record.record_id} was modified concurrently; reload and retry the adjustment"
            )
        logger.info(
            "Adjustment %s %s added to payroll %s; net %s -> %s",
            adjustment.type.value,
            adjustment.amount,
            record.record_id,
            record.net_salary,
            updated.net_salary,
        )
        saved = self._require(record.record_id)
        self._audit_event(
            AuditAction.ADJUST,
            record.record_id,
            actor_id=actor_id,
            before=record,
            after=saved,
            description=f"{adjustment.type.value} {adjustment.amount}: {adjustment.description}",
        )
        return saved

    def approve(self, record_id: int, actor_id: Optional[int] = None) -> PayrollRecord:
        record = self._require(record_id)
        next_status(record.status, PayrollEvent.APPROVE)
        check_approvable(record)
        approved = self._transition(record, PayrollEvent.APPROVE, approved_at=now_local(), approved_by=actor_id)
        self._audit_event(AuditAction.APPROVE, record.record_id, actor_id=actor_id, before=record, after=approved)
        return approved

    def revoke(self, record_id: int, actor_id: Optional[int] = None) -> PayrollRecord:
        record = self._require(record_id)
        logger.info("Revoking approval of payroll %s (by %s)", record.record_id, actor_id)
        revoked = self._transition(record, PayrollEvent.REVOKE, approved_at=None, approved_by=None)
        self._audit_event(AuditAction.REVOKE, record.record_id, actor_id=actor_id, before=record, after=revoked)
        return revoked

    def cancel(self, record_id: int, remarks: Any = None, actor_id: Optional[int] = None) -> PayrollRecord:
        record = self._require(record_id)
        if remarks is not None and not isinstance(remarks, str):
            raise ValidationError("Remarks must be a string")
        text = (remarks or "").strip() or None
        require_max_length(text, "Remarks", REMARKS_MAX)
        logger.info("Cancelling payroll %s (by %s)", record.record_id, actor_id)
        cancelled = self._transition(record, PayrollEvent.CANCEL, remarks=text)
        self._audit_event(
            AuditAction.CANCEL,
            record.record_id,
            actor_id=actor_id,
            before=record,
            after=cancelled,
            description=text,
        )
        return cancelled

    def pay(self, record_id: int, *, dispatch: bool = True, actor_id: Optional[int] = None) -> PaymentResult:
        """Disburse an APPROVED record, then run payslip side effects.

        The record is claimed (version-guarded) before the gateway is called,
        so only one caller can disburse it; revoke and cancel are refused while
        the claim is held. A gateway failure moves the record to FAILED and
        re-raises. Any other gateway error keeps the claim for reconciliation.
        Losing the PAID write after a successful transfer is logged and raised
        as a conflict.
        """

        record = self._require(record_id)
        next_status(record.status, PayrollEvent.PAY)

        employee = self._employees.get_by_id(record.employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        claimed = self._payroll.claim_payment(
            record_id=record.record_id,
            expected_version=record.version,
            claimed_at=now_local(),
        )
        if not claimed:
            raise ConcurrencyConflictError(
                f"Payroll record {record.record_id} is already being paid or was modified concurrently"
            )

        try:
            receipt = self._gateway.pay(record, employee)
        except ExternalServiceError as e:
            logger.warning("Payment for payroll %s failed: %s", record.record_id, e)
            failed = self._payroll.transition(
                record_id=record.record_id,
                expected=record.status,
                new_status=next_status(record.status, PayrollEvent.PAY_FAILED),
                claimed=True,
                failure_reason=str(e),
                payment_claimed_at=None,
            )
            if not failed:
                logger.warning("Payroll %s changed before it could be marked FAILED", record.record_id)
            self._audit_event(
                AuditAction.PAY,
                record.record_id,
                actor_id=actor_id,
                before=record,
                after=self._payroll.get(record.record_id),
                outcome=AuditOutcome.FAILURE,
                description=str(e),
            )
            raise
        except Exception:
            logger.exception("Gateway error for payroll %s; payment claim kept for reconciliation", record.record_id)
            raise

        paid = self._payroll.transition(
            record_id=record.record_id,
            expected=record.status,
            new_status=next_status(record.status, PayrollEvent.PAY),
            claimed=True,
            paid_at=receipt.paid_at,
            transaction_id=receipt.transaction_id,
            payment_method=receipt.payment_method,
            failure_reason=None,
            payment_claimed_at=None,
        )
        if not paid:
            logger.error(
                "Payment %s succeeded but payroll %s was modified concurrently; reconcile manually",
                receipt.transaction_id,
                record.record_id,
            )
            raise ConcurrencyConflictError(
                f"Payroll record {record.record_id} changed during payment (transaction {receipt.transaction_id})"
            )

        logger.info("Payroll %s paid: %s", record.record_id, receipt.transaction_id)
        updated = self._require(record.record_id)
        self._audit_event(
            AuditAction.PAY,
            record.record_id,
            actor_id=actor_id,
            before=record,
            after=updated,
            description=f"Transaction {receipt.transaction_id}",
        )

        if self._notifications is not None:
            try:
                self._notifications.notify_payment(employee, updated)
            except Exception:
                logger.exception("Payment notification for payroll %s failed", record.record_id)

        outcome = None
        if dispatch and self._dispatcher is not None:
            outcome = self._dispatcher.dispatch(record.record_id)
            updated = self._require(record.record_id)
        return PaymentResult(record=updated, dispatch=outcome)

    # -------- queries --------
    def list_records(
        self,
        *,
        month: Any = None,
        year: Any = None,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        month_key = self._resolve_month(month, year)
        status_value = parse_status(status)
        limit = clamp_limit(limit)
        page = max(1, int(page))

        total = self._payroll.count_records(month=month_key, status=status_value, employee_id=employee_id)
        items = self._payroll.list_records(
            month=month_key,
            status=status_value,
            employee_id=employee_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def month_summary(self, month: str) -> dict:
        month_key = self._resolve_month(month)
        records = self._payroll.list_by_month(month=month_key)
        if not records:
            raise NotFoundError(f"No payroll records found for {month_key}")

        by_status = {s.value: 0 for s in PayrollStatus}
        for r in records:
            by_status[r.status.value] += 1

        return {
            "month": month_key,
            "total_employees": len(records),
            "total_gross": float(sum_money(r.earnings.gross for r in records)),
            "total_deductions": float(sum_money(r.deductions.total for r in records)),
            "total_adjustments": float(sum_money(r.total_adjustment for r in records)),
            "total_net": float(sum_money(r.net_salary for r in records)),
            "by_status": by_status,
            "records": [r.to_dict() for r in records],
        }

    def stats(self, month: Optional[str] = None) -> dict:
        month_key = self._resolve_month(month)
        by_status = self._payroll.summarize_by_status(month=month_key)
        monthly = self._payroll.summarize_by_month(limit=STATS_MONTHS)
        return {
            "month": month_key,
            "by_status": [
                {"status": row["status"], "count": row["count"], "total_amount": float(row["total_amount"])}
                for row in by_status
            ],
            "total_amount": float(sum_money(row["total_amount"] for row in by_status)),
            "monthly": [
                {
                    "month": row["month"],
                    "total_employees": row["total_employees"],
                    "total_gross": float(row["total_gross"]),
                    "total_deductions": float(row["total_deductions"]),
                    "total_net": float(row["total_net"]),
                }
                for row in monthly
            ],
        }

    def export_month(self, month: str, status: Optional[str] = None) -> bytes:
        month_key = self._resolve_month(month)
        records = self._payroll.list_by_month(month=month_key, status=parse_status(status))
        employees = {}
        for r in records:
            if r.employee_id not in employees:
                emp = self._employees.get_by_id(r.employee_id)
                if emp:
                    employees[r.employee_id] = emp
        logger.info("Exporting %d payroll records for %s", len(records), month_key)
        return to_xlsx(build_rows(records, employees), sheet_name=month_key)
