from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import NewNotification, Notification


class NotificationRepository(Protocol):
    def create(self, notification: NewNotification) -> int:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, limit: int) -> Sequence[Notification]:
        """Newest first."""

        raise NotImplementedError

    def count_unread(self, *, employee_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, *, employee_id: int, notification_id: int, read_at: datetime) -> bool:
        """Return False when the notification does not exist or belongs to someone else."""

        raise NotImplementedError

    def mark_all_read(self, *, employee_id: int, read_at: datetime) -> int:
        raise NotImplementedError
