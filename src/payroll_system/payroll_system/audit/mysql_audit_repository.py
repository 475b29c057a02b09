from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from ..core.enums import AuditAction, AuditOutcome
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditEntry, NewAuditEntry
from .repository import AuditRepository

_SELECT = """
    SELECT audit_id, action, entity, entity_id, performed_by,
           before_state, after_state, outcome, description, created_at
    FROM audit_log
"""


def _dump(state: Optional[dict]) -> Optional[str]:
    return json.dumps(state, default=str) if state is not None else None


def _load(value: Any) -> Optional[dict]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value) if isinstance(value, str) else value


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> AuditEntry:
        return AuditEntry(
            audit_id=int(r["audit_id"]),
            action=AuditAction(r["action"]),
            entity=r["entity"],
            entity_id=int(r["entity_id"]),
            performed_by=r.get("performed_by"),
            before=_load(r.get("before_state")),
            after=_load(r.get("after_state")),
            outcome=AuditOutcome(r["outcome"]),
            description=r.get("description"),
            created_at=r.get("created_at"),
        )

    def create(self, entry: NewAuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_log(
                    action, severity, entity, entity_id, performed_by,
                    before_state, after_state, outcome, description
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.action.value,
                    entry.action.severity.value,
                    entry.entity,
                    int(entry.entity_id),
                    entry.performed_by,
                    _dump(entry.before),
                    _dump(entry.after),
                    entry.outcome.value,
                    entry.description,
                ),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity: str, entity_id: int, limit: int) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE entity=%s AND entity_id=%s ORDER BY audit_id DESC LIMIT %s",
                (entity, int(entity_id), int(limit)),
            )
            return [self._map(r) for r in fetchall(cur)]

    def list_recent(
        self,
        *,
        action: Optional[AuditAction] = None,
        performed_by: Optional[int] = None,
        limit: int,
    ) -> Sequence[AuditEntry]:
        clauses = ["1=1"]
        params: list[object] = []
        if action is not None:
            clauses.append("action=%s")
            params.append(action.value)
        if performed_by is not None:
            clauses.append("performed_by=%s")
            params.append(int(performed_by))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY audit_id DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [self._map(r) for r in fetchall(cur)]
