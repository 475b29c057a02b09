from __future__ import annotations

import html
import logging
import re
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.money import format_currency
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import NotificationType
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..payroll.model import PayrollRecord
from .email_sender import EmailMessage, EmailSender
from .model import NewNotification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def payslip_email(employee: Employee, record: PayrollRecord, payslip_url: str) -> EmailMessage:
    amount = format_currency(record.net_salary)
    name = html.escape(employee.full_name)
    month = html.escape(record.month)
    link = html.escape(payslip_url, quote=True)
    body_text = (
        f"Dear {employee.full_name},\n\n"
        f"Your salary for {record.month} has been processed successfully.\n"
        f"Net salary credited: {amount}\n\n"
        f"Download your payslip: {payslip_url}\n\n"
        "Please keep this payslip for your records. Contact HR if you notice any discrepancies."
    )
    body_html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Your Payslip is Ready</h2>
        <p>Dear {name},</p>
        <p>Your salary for <strong>{month}</strong> has been processed successfully.</p>
        <p style="font-size: 20px; font-weight: bold;">{html.escape(amount)}</p>
        <p><a href="{link}">Download Payslip</a></p>
    </div>
    """
    return EmailMessage(
        to=[employee.email],
        subject=f"Payslip for {record.month}",
        body_text=body_text,
        body_html=body_html,
    )


class NotificationService:
    def __init__(self, notifications: NotificationRepository, email_sender: EmailSender):
        self._notifications = notifications
        self._email = email_sender

    def send_payslip(
        self,
        employee: Employee,
        record: PayrollRecord,
        payslip_url: str,
        *,
        pdf_bytes: Optional[bytes] = None,
    ) -> bool:
        """Post a PAYSLIP_READY notice and email the payslip.

        Returns True only when the email was delivered; the in-app notice is
        best effort.
        """

        if not payslip_url:
            raise ValidationError("Payslip URL is required")

        try:
            self._notifications.create(
                NewNotification(
                    employee_id=employee.employee_id,
                    type=NotificationType.PAYSLIP_READY,
                    title=f"Payslip Ready for {record.month}",
                    message=(
                        f"Your salary of {format_currency(record.net_salary)} has been credited. "
                        "Download your payslip now."
                    ),
                    link=payslip_url,
                )
            )
        except Exception:
            logger.exception("In-app payslip notice for employee %s failed", employee.employee_id)

        return self.email_payslip(employee, record, payslip_url, pdf_bytes=pdf_bytes)

    def email_payslip(
        self,
        employee: Employee,
        record: PayrollRecord,
        payslip_url: str,
        *,
        pdf_bytes: Optional[bytes] = None,
    ) -> bool:
        if not employee.email or not _EMAIL_RE.match(employee.email):
            logger.warning("Employee %s has no valid email; payslip not mailed", employee.employee_code)
            return False

        message = payslip_email(employee, record, payslip_url)
        if pdf_bytes:
            message.attachments.append(
                {
                    "filename": f"payslip-{employee.employee_code}-{record.month}.pdf",
                    "content": pdf_bytes,
                    "mimetype": "pdf",
                }
            )
        delivered = self._email.send(message)
        if not delivered:
            logger.warning("Payslip email for %s (%s) was not delivered", employee.employee_code, record.month)
        return delivered

    def notify_payment(self, employee: Employee, record: PayrollRecord) -> int:
        return self._notifications.create(
            NewNotification(
                employee_id=employee.employee_id,
                type=NotificationType.PAYMENT_SUCCESS,
                title="Salary Credited",
                message=(
                    f"Your salary of {format_currency(record.net_salary)} for {record.month} "
                    "has been successfully credited to your account."
                ),
            )
        )

    def list_for_employee(self, employee_id: int, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> dict:
        items = self._notifications.list_for_employee(employee_id=int(employee_id), limit=int(limit))
        return {
            "notifications": [n.to_dict() for n in items],
            "unread_count": self._notifications.count_unread(employee_id=int(employee_id)),
        }

    def mark_read(self, employee_id: int, notification_id: int) -> None:
        ok = self._notifications.mark_read(
            employee_id=int(employee_id),
            notification_id=int(notification_id),
            read_at=now_local(),
        )
        if not ok:
            raise NotFoundError("Notification not found")

    def mark_all_read(self, employee_id: int) -> int:
        return self._notifications.mark_all_read(employee_id=int(employee_id), read_at=now_local())
