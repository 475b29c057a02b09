"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_PF_PERCENTAGE = Decimal("12")
DEFAULT_PROFESSIONAL_TAX = Decimal("200")
DEFAULT_ESI_PERCENTAGE = Decimal("0.75")
LOP_DAYS_PER_MONTH = Decimal("30")

MIN_PAYROLL_YEAR = 2020
MAX_PAYROLL_YEAR = 2100

ADJUSTMENT_DESCRIPTION_MAX = 200
REMARKS_MAX = 500

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_NOTIFICATION_LIMIT = 20
STATS_MONTHS = 6
DEFAULT_AUDIT_LIMIT = 50
