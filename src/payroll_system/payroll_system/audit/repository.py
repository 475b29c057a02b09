from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import AuditAction
from .model import AuditEntry, NewAuditEntry


class AuditRepository(Protocol):
    def create(self, entry: NewAuditEntry) -> int:
        raise NotImplementedError

    def list_for_entity(self, *, entity: str, entity_id: int, limit: int) -> Sequence[AuditEntry]:
        """Newest first."""

        raise NotImplementedError

    def list_recent(
        self,
        *,
        action: Optional[AuditAction] = None,
        performed_by: Optional[int] = None,
        limit: int,
    ) -> Sequence[AuditEntry]:
        raise NotImplementedError
