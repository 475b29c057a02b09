from __future__ import annotations

from decimal import Decimal

from ..common.datetime_utils import month_bounds
from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import LeaveRepository


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def count_lop_days(self, *, employee_id: int, month: str) -> Decimal:
        first, last = month_bounds(month)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT start_date, end_date
                FROM leave_requests
                WHERE employee_id=%s AND leave_type='LOP' AND status=%s
                  AND start_date <= %s AND end_date >= %s
                """,
                (int(employee_id), LeaveStatus.APPROVED.value, last, first),
            )
            rows = fetchall(cur)

        days = 0
        for r in rows:
            # Clip multi-month leave to this month.
            start = max(r["start_date"], first)
            end = min(r["end_date"], last)
            days += (end - start).days + 1
        return Decimal(days)
