from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.datetime_utils import format_month, parse_month
from ..core.exceptions import ConcurrencyConflictError, DomainError
from .model import BulkFailure, BulkResult, PayrollRecord
from .repository import PayrollRepository
from .service import PayrollService

logger = logging.getLogger(__name__)

BulkAction = Callable[[int, BulkResult], object]


class BulkPayrollService:
    """Month-wide transitions built on the single-record operations.

    The record set is read once when the run starts. Every record is tried
    independently; one failure never stops the run and already committed
    records stay in their new state.
    """

    def __init__(self, payroll: PayrollRepository, service: PayrollService):
        self._payroll = payroll
        self._service = service

    def bulk_approve(self, month: str, actor_id: Optional[int] = None) -> BulkResult:
        return self._run(month, "approve", lambda rid, _: self._service.approve(rid, actor_id))

    def bulk_revoke(self, month: str, actor_id: Optional[int] = None) -> BulkResult:
        return self._run(month, "revoke", lambda rid, _: self._service.revoke(rid, actor_id))

    def bulk_pay_and_generate_payslips(self, month: str, actor_id: Optional[int] = None) -> BulkResult:
        # A conflict after the gateway call means money already moved; never retry it.
        result = self._run(
            month, "pay", lambda rid, res: self._pay_one(rid, res, actor_id), retry_conflicts=False
        )
        logger.info(
            "Bulk pay for %s: %d payslips generated, %d notifications sent",
            result.month,
            result.payslips_generated,
            result.notifications_sent,
        )
        return result

    def _pay_one(self, record_id: int, result: BulkResult, actor_id: Optional[int] = None) -> None:
        payment = self._service.pay(record_id, actor_id=actor_id)
        if payment.dispatch is None:
            return
        if payment.dispatch.payslip_generated:
            result.payslips_generated += 1
        if payment.dispatch.notification_sent:
            result.notifications_sent += 1

    def _run(self, month: str, operation: str, action: BulkAction, *, retry_conflicts: bool = True) -> BulkResult:
        m, y = parse_month(month)
        month_key = format_month(m, y)
        records = list(self._payroll.list_by_month(month=month_key))

        result = BulkResult(month=month_key, operation=operation)
        for record in records:
            self._apply(record, action, result, retry_conflicts=retry_conflicts)

        logger.info(
            "Bulk %s for %s: %d succeeded, %d failed (of %d)",
            operation,
            month_key,
            result.total_succeeded,
            result.total_errors,
            len(records),
        )
        return result

    def _apply(self, record: PayrollRecord, action: BulkAction, result: BulkResult, *, retry_conflicts: bool) -> None:
        attempts = 2 if retry_conflicts else 1
        for attempt in range(1, attempts + 1):
            try:
                action(record.record_id, result)
                result.succeeded.append(record.record_id)
                return
            except ConcurrencyConflictError as e:
                if attempt < attempts:
                    logger.info("Retrying %s on payroll %s after conflict", result.operation, record.record_id)
                    continue
                self._fail(result, record, e)
            except DomainError as e:
                self._fail(result, record, e)
            except Exception as e:
                logger.exception("Bulk %s on payroll %s failed unexpectedly", result.operation, record.record_id)
                self._fail(result, record, e)
            return

    @staticmethod
    def _fail(result: BulkResult, record: PayrollRecord, error: Exception) -> None:
        logger.warning("Bulk %s skipped payroll %s: %s", result.operation, record.record_id, error)
        result.failed.append(
            BulkFailure(
                record_id=record.record_id,
                employee_id=record.employee_id,
                reason=type(error).__name__,
                error=str(error),
            )
        )
