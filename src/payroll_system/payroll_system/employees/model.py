from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_ESI_PERCENTAGE, DEFAULT_PF_PERCENTAGE, DEFAULT_PROFESSIONAL_TAX
from ..core.enums import EmploymentStatus


@dataclass(frozen=True)
class SalaryStructure:
    """Monthly salary components. ``basic`` may be None for incomplete profiles."""

    basic: Optional[Decimal]
    hra: Decimal = Decimal("0")
    da: Decimal = Decimal("0")
    special_allowance: Decimal = Decimal("0")
    other_allowances: Decimal = Decimal("0")
    pf_percentage: Decimal = DEFAULT_PF_PERCENTAGE
    professional_tax: Decimal = DEFAULT_PROFESSIONAL_TAX
    esi_percentage: Decimal = DEFAULT_ESI_PERCENTAGE


@dataclass(frozen=True)
class BankDetails:
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    ifsc_code: Optional[str] = None

    @property
    def masked_account(self) -> str:
        if not self.account_number:
            return ""
        return "****" + self.account_number[-4:]


@dataclass(frozen=True)
class Employee:
    employee_id: int
    employee_code: str
    first_name: str
    last_name: str
    email: str
    status: EmploymentStatus
    salary: SalaryStructure
    department: Optional[str] = None
    designation: Optional[str] = None
    bank: BankDetails = field(default_factory=BankDetails)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
