from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import NewNotification, Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> Notification:
        return Notification(
            notification_id=int(r["notification_id"]),
            employee_id=int(r["employee_id"]),
            type=NotificationType(r["type"]),
            title=r["title"],
            message=r["message"],
            link=r.get("link"),
            read=as_bool(r.get("is_read")),
            created_at=r.get("created_at"),
            read_at=r.get("read_at"),
        )

    def create(self, notification: NewNotification) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(employee_id, type, title, message, link)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    int(notification.employee_id),
                    notification.type.value,
                    notification.title,
                    notification.message,
                    notification.link,
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(self, *, employee_id: int, limit: int) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, employee_id, type, title, message, link, is_read, created_at, read_at
                FROM notifications
                WHERE employee_id=%s
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [self._map(r) for r in fetchall(cur)]

    def count_unread(self, *, employee_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM notifications WHERE employee_id=%s AND is_read=0",
                (int(employee_id),),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def mark_read(self, *, employee_id: int, notification_id: int, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT is_read FROM notifications WHERE notification_id=%s AND employee_id=%s",
                (int(notification_id), int(employee_id)),
            )
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE notifications SET is_read=1, read_at=COALESCE(read_at, %s)
                WHERE notification_id=%s AND employee_id=%s
                """,
                (read_at, int(notification_id), int(employee_id)),
            )
            return True

    def mark_all_read(self, *, employee_id: int, read_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE employee_id=%s AND is_read=0",
                (read_at, int(employee_id)),
            )
            return int(cur.rowcount)
