import pytest

from fakes import make_record
from src.payroll_system.payroll_system.core.enums import PayrollStatus
from src.payroll_system.payroll_system.core.exceptions import NotFoundError, ValidationError


@pytest.fixture
def history(payroll_repo, documents):
    payroll_repo.put(make_record(record_id=1, employee_id=1, month="2025-12", status=PayrollStatus.PAID))
    payroll_repo.put(make_record(record_id=2, employee_id=1, month="2026-01", status=PayrollStatus.PAID))
    payroll_repo.put(make_record(record_id=3, employee_id=1, month="2026-02", status=PayrollStatus.APPROVED))
    payroll_repo.put(make_record(record_id=4, employee_id=2, month="2026-01", status=PayrollStatus.PAID))
    return payroll_repo


def test_listing_only_shows_own_generated_payslips(container, history):
    for record_id in (1, 2, 4):
        container.payslip_dispatcher.dispatch(record_id)

    page = container.payslip_service.list_for_employee(1)

    assert [r.record_id for r in page.items] == [2, 1]
    assert page.total == 2


def test_paid_without_document_is_hidden(container, history):
    container.payslip_dispatcher.dispatch(2)

    page = container.payslip_service.list_for_employee(1)

    assert [r.record_id for r in page.items] == [2]
    with pytest.raises(NotFoundError):
        container.payslip_service.get_for_employee(1, 1)


def test_other_employees_payslip_is_not_found(container, history):
    container.payslip_dispatcher.dispatch(4)

    with pytest.raises(NotFoundError):
        container.payslip_service.get_for_employee(1, 4)
    assert container.payslip_service.get_for_employee(2, 4).record_id == 4


def test_download(container, history):
    container.payslip_dispatcher.dispatch(2)

    link = container.payslip_service.download_link(1, 2)
    payslip = container.payslip_service.download(1, 2)

    assert link == {"payslip_url": "/files/payslips/payslip-EMP0001-2026-01.pdf", "month": "2026-01"}
    assert payslip.filename == "payslip-EMP0001-2026-01.pdf"
    assert payslip.content.startswith(b"%PDF")


def test_status_for_month(container, history, email_sender):
    container.payslip_dispatcher.dispatch(2)
    email_sender.deliver = False
    container.payslip_dispatcher.dispatch(4)

    status = container.payslip_service.status_for_month("2026-01")

    assert status["total"] == 2
    assert status["payslips_generated"] == 2
    assert status["emails_sent"] == 1
    assert status["pending"] == 0
    assert {d["employee_code"] for d in status["details"]} == {"EMP0001", "EMP0002"}


def test_status_for_unknown_month(container, history):
    with pytest.raises(NotFoundError):
        container.payslip_service.status_for_month("2030-01")
    with pytest.raises(ValidationError):
        container.payslip_service.status_for_month("01-2026")
