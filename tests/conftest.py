from __future__ import annotations

import pytest

from fakes import (
    FakeAuditRepo,
    FakeDocuments,
    FakeEmailSender,
    FakeEmployeesRepo,
    FakeGateway,
    FakeLeavesRepo,
    FakeNotificationsRepo,
    FakePayrollRepo,
    make_employee,
)
from src.payroll_system.payroll_system.container import assemble
from src.payroll_system.payroll_system.core.enums import EmploymentStatus


@pytest.fixture
def employees_repo():
    return FakeEmployeesRepo(
        [
            make_employee(1),
            make_employee(2, basic="20000", hra="8000", special="2000"),
            make_employee(3, basic="15000", hra="5000", special="0", status=EmploymentStatus.RESIGNED),
        ]
    )


@pytest.fixture
def leaves_repo():
    return FakeLeavesRepo()


@pytest.fixture
def payroll_repo():
    return FakePayrollRepo()


@pytest.fixture
def notifications_repo():
    return FakeNotificationsRepo()


@pytest.fixture
def audit_repo():
    return FakeAuditRepo()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def documents():
    return FakeDocuments()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def container(
    employees_repo, leaves_repo, payroll_repo, notifications_repo, audit_repo, gateway, documents, email_sender
):
    return assemble(
        employees_repo=employees_repo,
        leaves_repo=leaves_repo,
        payroll_repo=payroll_repo,
        notifications_repo=notifications_repo,
        audit_repo=audit_repo,
        payment_gateway=gateway,
        payslip_documents=documents,
        email_sender=email_sender,
    )
