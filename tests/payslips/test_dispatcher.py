from __future__ import annotations

import pytest

from fakes import make_record
from src.payroll_system.payroll_system.core.enums import NotificationType, PayrollStatus
from src.payroll_system.payroll_system.core.exceptions import ExternalServiceError, InvalidStateError, NotFoundError


@pytest.fixture
def paid(payroll_repo):
    return payroll_repo.put(make_record(status=PayrollStatus.PAID, transaction_id="TXN-1-EMP0001"))


def test_dispatch_generates_and_notifies(container, paid, payroll_repo, email_sender, notifications_repo):
    outcome = container.payslip_dispatcher.dispatch(1)

    assert outcome.payslip_generated is True
    assert outcome.notification_sent is True
    assert outcome.errors == []
    record = payroll_repo.get(1)
    assert record.payslip_url == "/files/payslips/payslip-EMP0001-2026-01.pdf"
    assert record.payslip_generated_at is not None
    assert record.notification_sent_at is not None

    message = email_sender.sent[0]
    assert message.to == ["emp1@example.com"]
    assert message.subject == "Payslip for 2026-01"
    assert message.attachments[0]["content"].startswith(b"%PDF")
    (notice,) = notifications_repo.items.values()
    assert notice.type == NotificationType.PAYSLIP_READY
    assert notice.link == record.payslip_url


def test_dispatch_is_idempotent(container, paid, documents, email_sender):
    container.payslip_dispatcher.dispatch(1)
    second = container.payslip_dispatcher.dispatch(1)

    assert second.payslip_generated is True
    assert second.notification_sent is True
    assert documents.generated == [1]
    assert len(email_sender.sent) == 1


def test_failed_email_is_retried_on_next_dispatch(container, paid, documents, email_sender, payroll_repo):
    email_sender.deliver = False
    first = container.payslip_dispatcher.dispatch(1)
    assert first.payslip_generated is True
    assert first.notification_sent is False
    assert first.errors == ["Payslip email was not delivered"]

    email_sender.deliver = True
    second = container.payslip_dispatcher.dispatch(1)

    assert second.notification_sent is True
    assert documents.generated == [1]
    assert payroll_repo.get(1).notification_sent is True


def test_document_failure_is_recorded_without_touching_status(container, paid, documents, payroll_repo):
    documents.fail = True

    outcome = container.payslip_dispatcher.dispatch(1)

    assert outcome.payslip_generated is False
    assert outcome.notification_sent is False
    assert "PDF renderer unavailable" in outcome.errors[0]
    record = payroll_repo.get(1)
    assert record.status == PayrollStatus.PAID
    assert record.net_salary == paid.net_salary


def test_notification_store_failure_still_emails(container, paid, notifications_repo, email_sender):
    notifications_repo.fail = True

    outcome = container.payslip_dispatcher.dispatch(1)

    assert outcome.notification_sent is True
    assert len(email_sender.sent) == 1


def test_dispatch_requires_paid_record(container, payroll_repo):
    payroll_repo.put(make_record(status=PayrollStatus.APPROVED))

    with pytest.raises(InvalidStateError):
        container.payslip_dispatcher.dispatch(1)
    with pytest.raises(NotFoundError):
        container.payslip_dispatcher.dispatch(99)


def test_resend_always_reattempts_delivery(container, paid, email_sender, notifications_repo):
    container.payslip_dispatcher.dispatch(1)

    outcome = container.payslip_dispatcher.resend_payslip_email(1)

    assert outcome.notification_sent is True
    assert len(email_sender.sent) == 2
    # Resend is email only; no second in-app notice.
    assert len(notifications_repo.items) == 1


def test_resend_before_generation_is_rejected(container, paid):
    with pytest.raises(InvalidStateError, match="not yet generated"):
        container.payslip_dispatcher.resend_payslip_email(1)


def test_resend_delivery_failure_surfaces(container, paid, email_sender):
    container.payslip_dispatcher.dispatch(1)
    email_sender.deliver = False

    with pytest.raises(ExternalServiceError):
        container.payslip_dispatcher.resend_payslip_email(1)
