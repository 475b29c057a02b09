"""Post-payment side effects for a PAID payroll record.

Generating the payslip and notifying the employee are independent steps,
each guarded by its own flag on the record. A failed step is logged and
reported in the outcome; it never touches status or money fields. Running
``dispatch`` again only retries the steps whose flag is still unset.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import PayrollStatus
from ..core.exceptions import DomainError, ExternalServiceError, InvalidStateError, NotFoundError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..payroll.model import PayrollRecord
from ..payroll.repository import PayrollRepository
from .document import PayslipDocumentGenerator

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    record_id: int
    payslip_generated: bool = False
    notification_sent: bool = False
    payslip_url: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "payslip_generated": self.payslip_generated,
            "notification_sent": self.notification_sent,
            "payslip_url": self.payslip_url,
            "errors": list(self.errors),
        }


class PayslipDispatcher:
    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        documents: PayslipDocumentGenerator,
        notifications: NotificationService,
    ):
        self._payroll = payroll
        self._employees = employees
        self._documents = documents
        self._notifications = notifications

    def _require_paid(self, record_id: int) -> PayrollRecord:
        record = self._payroll.get(int(record_id))
        if not record:
            raise NotFoundError("Payroll record not found")
        if record.status != PayrollStatus.PAID:
            raise InvalidStateError(f"Payslip requires a PAID payroll, current status: {record.status.value}")
        return record

    def dispatch(self, record_id: int) -> DispatchOutcome:
        record = self._require_paid(record_id)
        outcome = DispatchOutcome(
            record_id=record.record_id,
            payslip_generated=record.payslip_generated,
            notification_sent=record.notification_sent,
            payslip_url=record.payslip_url,
        )

        employee = self._employees.get_by_id(record.employee_id)
        if not employee:
            outcome.errors.append("Employee not found")
            logger.warning("Payslip dispatch for payroll %s skipped: employee missing", record.record_id)
            return outcome

        content: Optional[bytes] = None
        if not record.payslip_generated:
            try:
                document = self._documents.generate(record, employee)
                self._payroll.mark_payslip_generated(
                    record_id=record.record_id,
                    payslip_url=document.url,
                    generated_at=now_local(),
                )
                outcome.payslip_generated = True
                outcome.payslip_url = document.url
                content = document.content
            except DomainError as e:
                logger.warning("Payslip generation for payroll %s failed: %s", record.record_id, e)
                outcome.errors.append(f"Payslip generation failed: {e}")
            except Exception as e:
                logger.exception("Payslip generation for payroll %s failed", record.record_id)
                outcome.errors.append(f"Payslip generation failed: {e}")

        if outcome.payslip_generated and not record.notification_sent:
            if self._deliver(record, employee, outcome.payslip_url, content, notice=True, outcome=outcome):
                outcome.notification_sent = True

        return outcome

    def resend_payslip_email(self, record_id: int) -> DispatchOutcome:
        record = self._require_paid(record_id)
        if not record.payslip_generated or not record.payslip_url:
            raise InvalidStateError("Payslip not yet generated for this employee")

        employee = self._employees.get_by_id(record.employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        outcome = DispatchOutcome(
            record_id=record.record_id,
            payslip_generated=True,
            notification_sent=record.notification_sent,
            payslip_url=record.payslip_url,
        )
        if not self._deliver(record, employee, record.payslip_url, None, notice=False, outcome=outcome):
            raise ExternalServiceError(f"Email sending failed: {'; '.join(outcome.errors)}")
        outcome.notification_sent = True
        return outcome

    def _deliver(
        self,
        record: PayrollRecord,
        employee: Employee,
        url: str,
        content: Optional[bytes],
        *,
        notice: bool,
        outcome: DispatchOutcome,
    ) -> bool:
        try:
            if content is None:
                content = self._documents.read(url)
        except DomainError as e:
            logger.warning("Payslip for payroll %s could not be attached: %s", record.record_id, e)

        try:
            if notice:
                delivered = self._notifications.send_payslip(employee, record, url, pdf_bytes=content)
            else:
                delivered = self._notifications.email_payslip(employee, record, url, pdf_bytes=content)
            if delivered:
                self._payroll.mark_notification_sent(record_id=record.record_id, sent_at=now_local())
        except Exception as e:
            logger.exception("Payslip notification for payroll %s failed", record.record_id)
            outcome.errors.append(f"Notification failed: {e}")
            return False

        if not delivered:
            outcome.errors.append("Payslip email was not delivered")
            return False

        logger.info("Payslip for payroll %s delivered to %s", record.record_id, employee.email)
        return True
