from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.constants import DEFAULT_AUDIT_LIMIT, MAX_PAGE_SIZE
from ..core.enums import AuditAction, AuditOutcome
from ..core.exceptions import ValidationError
from ..payroll.model import PayrollRecord
from .model import PAYROLL_ENTITY, AuditEntry, NewAuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


def payroll_state(record: Optional[PayrollRecord]) -> Optional[dict[str, Any]]:
    """The audited slice of a payroll record."""
    if record is None:
        return None
    return {
        "status": record.status.value,
        "net_salary": str(record.net_salary),
        "total_adjustment": str(record.total_adjustment),
        "approved_by": record.approved_by,
        "transaction_id": record.transaction_id,
        "version": record.version,
    }


def parse_action(value: Optional[str]) -> Optional[AuditAction]:
    if value is None or value == "":
        return None
    try:
        return AuditAction(str(value).upper())
    except ValueError:
        allowed = ", ".join(a.value for a in AuditAction)
        raise ValidationError(f"Action must be one of: {allowed}")


class AuditTrail:
    """Append-only trail of payroll actions.

    Writes are best effort: a failing audit store is logged and never fails
    the payroll operation that triggered it.
    """

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        action: AuditAction,
        record_id: int,
        *,
        actor_id: Optional[int] = None,
        before: Optional[PayrollRecord] = None,
        after: Optional[PayrollRecord] = None,
        outcome: AuditOutcome = AuditOutcome.SUCCESS,
        description: Optional[str] = None,
    ) -> Optional[int]:
        try:
            return self._audit.create(
                NewAuditEntry(
                    action=action,
                    entity=PAYROLL_ENTITY,
                    entity_id=int(record_id),
                    performed_by=actor_id,
                    before=payroll_state(before),
                    after=payroll_state(after),
                    outcome=outcome,
                    description=description,
                )
            )
        except Exception:
            logger.exception("Audit %s for payroll %s could not be written", action.value, record_id)
            return None

    def history(self, record_id: int, limit: int = DEFAULT_AUDIT_LIMIT) -> list[AuditEntry]:
        return list(
            self._audit.list_for_entity(
                entity=PAYROLL_ENTITY,
                entity_id=int(record_id),
                limit=min(int(limit), MAX_PAGE_SIZE),
            )
        )

    def recent(
        self,
        *,
        action: Optional[str] = None,
        actor_id: Optional[int] = None,
        limit: int = DEFAULT_AUDIT_LIMIT,
    ) -> list[AuditEntry]:
        return list(
            self._audit.list_recent(
                action=parse_action(action),
                performed_by=actor_id,
                limit=min(int(limit), MAX_PAGE_SIZE),
            )
        )
