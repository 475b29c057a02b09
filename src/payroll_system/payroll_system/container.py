from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditTrail
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .notifications.email_sender import EmailSender, SmtpConfig, build_sender
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .payroll.bulk import BulkPayrollService
from .payroll.gateway import ManualPaymentGateway, PaymentGateway
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .payslips.dispatcher import PayslipDispatcher
from .payslips.document import PayslipDocumentGenerator, ReportLabPayslipGenerator
from .payslips.service import PayslipService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    leaves_repo: LeaveRepository
    payroll_repo: PayrollRepository
    notifications_repo: NotificationRepository
    audit_repo: AuditRepository

    payment_gateway: PaymentGateway
    payslip_documents: PayslipDocumentGenerator
    email_sender: EmailSender

    notification_service: NotificationService
    audit_trail: AuditTrail
    payslip_dispatcher: PayslipDispatcher
    payroll_service: PayrollService
    bulk_payroll_service: BulkPayrollService
    payslip_service: PayslipService


def assemble(
    *,
    employees_repo: EmployeeRepository,
    leaves_repo: LeaveRepository,
    payroll_repo: PayrollRepository,
    notifications_repo: NotificationRepository,
    audit_repo: AuditRepository,
    payment_gateway: PaymentGateway,
    payslip_documents: PayslipDocumentGenerator,
    email_sender: EmailSender,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of already-built repositories and collaborators."""

    notification_service = NotificationService(notifications_repo, email_sender)
    audit_trail = AuditTrail(audit_repo)
    payslip_dispatcher = PayslipDispatcher(payroll_repo, employees_repo, payslip_documents, notification_service)
    payroll_service = PayrollService(
        payroll_repo,
        employees_repo,
        leaves_repo,
        payment_gateway,
        dispatcher=payslip_dispatcher,
        notifications=notification_service,
        audit=audit_trail,
    )
    bulk_payroll_service = BulkPayrollService(payroll_repo, payroll_service)
    payslip_service = PayslipService(payroll_repo, employees_repo, payslip_documents, payslip_dispatcher)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        leaves_repo=leaves_repo,
        payroll_repo=payroll_repo,
        notifications_repo=notifications_repo,
        audit_repo=audit_repo,
        payment_gateway=payment_gateway,
        payslip_documents=payslip_documents,
        email_sender=email_sender,
        notification_service=notification_service,
        audit_trail=audit_trail,
        payslip_dispatcher=payslip_dispatcher,
        payroll_service=payroll_service,
        bulk_payroll_service=bulk_payroll_service,
        payslip_service=payslip_service,
    )


def build_container(
    *,
    db_config: dict,
    payslip_dir: str,
    smtp_config: Optional[dict] = None,
    email_backend: str = "smtp",
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return assemble(
        conn=conn,
        employees_repo=MySQLEmployeeRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        payment_gateway=ManualPaymentGateway(),
        payslip_documents=ReportLabPayslipGenerator(payslip_dir),
        email_sender=build_sender(SmtpConfig.from_dict(smtp_config), email_backend),
    )
