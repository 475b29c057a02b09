from __future__ import annotations

import logging

import pytest

from fakes import make_record
from src.payroll_system.payroll_system.audit.service import AuditTrail
from src.payroll_system.payroll_system.core.enums import AuditAction, AuditOutcome, AuditSeverity, PayrollStatus
from src.payroll_system.payroll_system.core.exceptions import ExternalServiceError, IllegalTransitionError, ValidationError


def test_process_month_writes_one_entry_per_created_record(container, audit_repo):
    result = container.payroll_service.process_month(1, 2026, actor_id=9)

    entries = sorted(audit_repo.entries.values(), key=lambda e: e.audit_id)
    assert [e.entity_id for e in entries] == result.record_ids
    assert {e.action for e in entries} == {AuditAction.PROCESS}
    assert entries[0].performed_by == 9
    assert entries[0].before is None
    assert entries[0].after["status"] == "PENDING"
    assert entries[0].after["net_salary"] == "42975.00"


def test_reprocessing_writes_nothing(container, audit_repo):
    container.payroll_service.process_month(1, 2026)
    count = len(audit_repo.entries)

    container.payroll_service.process_month(1, 2026)

    assert len(audit_repo.entries) == count


def test_lifecycle_actions_record_before_and_after(container, payroll_repo, audit_repo):
    payroll_repo.put(make_record())
    service = container.payroll_service

    service.add_adjustment(1, adjustment_type="Bonus", amount=2000, description="Festival", actor_id=5)
    service.approve(1, actor_id=5)
    service.revoke(1, actor_id=6)
    service.approve(1, actor_id=5)
    service.pay(1, actor_id=7)

    assert audit_repo.actions(entity_id=1) == ["ADJUST", "APPROVE", "REVOKE", "APPROVE", "PAY"]
    adjust, approve, revoke, _, pay = sorted(audit_repo.entries.values(), key=lambda e: e.audit_id)
    assert adjust.before["net_salary"] == "42975.00"
    assert adjust.after["net_salary"] == "44975.00"
    assert adjust.description == "Bonus 2000.00: Festival"
    assert approve.changed_fields == ["approved_by", "status", "version"]
    assert revoke.performed_by == 6
    assert revoke.after["status"] == "PENDING"
    assert pay.performed_by == 7
    assert pay.after["transaction_id"] == "TXN-1767225600000-EMP0001"
    assert pay.action.severity == AuditSeverity.CRITICAL


def test_cancel_keeps_the_remarks(container, payroll_repo, audit_repo):
    payroll_repo.put(make_record())

    container.payroll_service.cancel(1, " Duplicate ", actor_id=3)

    (entry,) = audit_repo.entries.values()
    assert entry.action == AuditAction.CANCEL
    assert entry.description == "Duplicate"
    assert entry.after["status"] == "CANCELLED"


def test_failed_payment_is_audited_as_failure(container, payroll_repo, gateway, audit_repo):
    payroll_repo.put(make_record(status=PayrollStatus.APPROVED))
    gateway.fail_for.add(1)

    with pytest.raises(ExternalServiceError):
        container.payroll_service.pay(1, actor_id=7)

    (entry,) = audit_repo.entries.values()
    assert entry.action == AuditAction.PAY
    assert entry.outcome == AuditOutcome.FAILURE
    assert entry.after["status"] == "FAILED"
    assert entry.description == "Bank rejected the transfer"


def test_rejected_operations_are_not_audited(container, payroll_repo, audit_repo):
    payroll_repo.put(make_record(status=PayrollStatus.PAID))

    with pytest.raises(IllegalTransitionError):
        container.payroll_service.approve(1)

    assert audit_repo.entries == {}


def test_audit_store_outage_does_not_fail_the_operation(container, payroll_repo, audit_repo, caplog):
    payroll_repo.put(make_record())
    audit_repo.fail = True

    with caplog.at_level(logging.ERROR):
        approved = container.payroll_service.approve(1, actor_id=5)

    assert approved.status == PayrollStatus.APPROVED
    assert "could not be written" in caplog.text


def test_history_and_recent_filters(container, payroll_repo, audit_repo):
    payroll_repo.put(make_record())
    payroll_repo.put(make_record(2, employee_id=2))
    service = container.payroll_service
    service.approve(1, actor_id=5)
    service.approve(2, actor_id=6)
    service.revoke(1, actor_id=5)
    trail = container.audit_trail

    assert [e.action for e in trail.history(1)] == [AuditAction.REVOKE, AuditAction.APPROVE]
    assert [e.entity_id for e in trail.recent(action="approve")] == [2, 1]
    assert [e.entity_id for e in trail.recent(actor_id=6)] == [2]
    assert len(trail.recent(limit=1)) == 1


def test_recent_rejects_unknown_action(audit_repo):
    with pytest.raises(ValidationError, match="Action must be one of"):
        AuditTrail(audit_repo).recent(action="DELETE")
