from __future__ import annotations

from dataclasses import dataclass

from ..common.datetime_utils import format_month, parse_month
from ..common.pagination import Page, clamp_limit
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import PayrollStatus
from ..core.exceptions import NotFoundError
from ..employees.repository import EmployeeRepository
from ..payroll.model import PayrollRecord
from ..payroll.repository import PayrollRepository
from .dispatcher import DispatchOutcome, PayslipDispatcher
from .document import PayslipDocumentGenerator


@dataclass(frozen=True)
class PayslipFile:
    filename: str
    url: str
    content: bytes


class PayslipService:
    """Employee-facing payslip access plus the admin status/resend views."""

    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        documents: PayslipDocumentGenerator,
        dispatcher: PayslipDispatcher,
    ):
        self._payroll = payroll
        self._employees = employees
        self._documents = documents
        self._dispatcher = dispatcher

    def list_for_employee(self, employee_id: int, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Page:
        limit = clamp_limit(limit)
        page = max(1, int(page))
        total = self._payroll.count_records(employee_id=int(employee_id), payslip_only=True)
        items = self._payroll.list_records(
            employee_id=int(employee_id),
            payslip_only=True,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def get_for_employee(self, employee_id: int, record_id: int) -> PayrollRecord:
        record = self._payroll.get(int(record_id))
        # Someone else's record is reported as missing, not forbidden.
        if not record or record.employee_id != int(employee_id):
            raise NotFoundError("Payslip not found")
        if record.status != PayrollStatus.PAID or not record.payslip_generated:
            raise NotFoundError("Payslip not found")
        return record

    def download_link(self, employee_id: int, record_id: int) -> dict:
        record = self.get_for_employee(employee_id, record_id)
        if not record.payslip_url:
            raise NotFoundError("Payslip document not available")
        return {"payslip_url": record.payslip_url, "month": record.month}

    def download(self, employee_id: int, record_id: int) -> PayslipFile:
        record = self.get_for_employee(employee_id, record_id)
        if not record.payslip_url:
            raise NotFoundError("Payslip document not available")
        content = self._documents.read(record.payslip_url)
        return PayslipFile(
            filename=record.payslip_url.rsplit("/", 1)[-1],
            url=record.payslip_url,
            content=content,
        )

    def status_for_month(self, month: str) -> dict:
        m, y = parse_month(month)
        month_key = format_month(m, y)
        records = self._payroll.list_by_month(month=month_key)
        if not records:
            raise NotFoundError("No payroll records found for this month")

        details = []
        for r in records:
            emp = self._employees.get_by_id(r.employee_id)
            details.append(
                {
                    "record_id": r.record_id,
                    "employee_id": r.employee_id,
                    "employee_code": emp.employee_code if emp else None,
                    "name": emp.full_name if emp else None,
                    "status": r.status.value,
                    "payslip_generated": r.payslip_generated,
                    "notification_sent": r.notification_sent,
                    "payslip_url": r.payslip_url,
                }
            )

        return {
            "month": month_key,
            "total": len(records),
            "payslips_generated": sum(1 for r in records if r.payslip_generated),
            "emails_sent": sum(1 for r in records if r.notification_sent),
            "pending": sum(1 for r in records if not r.payslip_generated),
            "details": details,
        }

    def resend_payslip_email(self, record_id: int) -> DispatchOutcome:
        return self._dispatcher.resend_payslip_email(record_id)

