from __future__ import annotations

import calendar
import re
from datetime import date, datetime
from typing import Any

from ..core.constants import MAX_PAYROLL_YEAR, MIN_PAYROLL_YEAR
from ..core.exceptions import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def _whole_number(value: Any) -> int:
    # int("1.9") fails but int(1.9) truncates, so floats must be integral.
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(value)
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(value)


def format_month(month: Any, year: Any) -> str:
    """Validate a (month, year) pair and return its ``YYYY-MM`` key."""
    try:
        month_num = _whole_number(month)
        year_num = _whole_number(year)
    except ValueError:
        raise ValidationError("Month and year must be integers")
    if not 1 <= month_num <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not MIN_PAYROLL_YEAR <= year_num <= MAX_PAYROLL_YEAR:
        raise ValidationError(f"Year must be between {MIN_PAYROLL_YEAR} and {MAX_PAYROLL_YEAR}")
    return f"{year_num:04d}-{month_num:02d}"


def parse_month(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(month, year)``."""
    m = _MONTH_RE.match((value or "").strip())
    if not m:
        raise ValidationError("Month must be in YYYY-MM format")
    year, month = int(m.group(1)), int(m.group(2))
    format_month(month, year)
    return month, year


def month_bounds(month_key: str) -> tuple[date, date]:
    """First and last calendar day of a ``YYYY-MM`` month."""
    month, year = parse_month(month_key)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
