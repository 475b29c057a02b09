from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditAction, AuditOutcome

PAYROLL_ENTITY = "Payroll"


@dataclass(frozen=True)
class NewAuditEntry:
    action: AuditAction
    entity: str
    entity_id: int
    performed_by: Optional[int] = None
    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
    outcome: AuditOutcome = AuditOutcome.SUCCESS
    description: Optional[str] = None


@dataclass(frozen=True)
class AuditEntry:
    audit_id: int
    action: AuditAction
    entity: str
    entity_id: int
    performed_by: Optional[int]
    before: Optional[dict[str, Any]]
    after: Optional[dict[str, Any]]
    outcome: AuditOutcome
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def changed_fields(self) -> list[str]:
        before = self.before or {}
        after = self.after or {}
        return sorted(k for k in set(before) | set(after) if before.get(k) != after.get(k))

    def to_dict(self) -> dict:
        return {
            "id": self.audit_id,
            "action": self.action.value,
            "severity": self.action.severity.value,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "performed_by": self.performed_by,
            "before": self.before,
            "after": self.after,
            "changed_fields": self.changed_fields,
            "outcome": self.outcome.value,
            "description": self.description,
            "created_at": self.created_at.isoformat(timespec="seconds") if self.created_at else None,
        }
