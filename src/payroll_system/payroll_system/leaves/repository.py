from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class LeaveRepository(Protocol):
    def count_lop_days(self, *, employee_id: int, month: str) -> Decimal:
        """Approved loss-of-pay leave days that fall inside ``month`` (YYYY-MM)."""

        raise NotImplementedError
