from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class Notification:
    notification_id: int
    employee_id: int
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "employee_id": self.employee_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "link": self.link,
            "read": self.read,
            "created_at": self.created_at.isoformat(timespec="seconds") if self.created_at else None,
            "read_at": self.read_at.isoformat(timespec="seconds") if self.read_at else None,
        }


@dataclass(frozen=True)
class NewNotification:
    employee_id: int
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
