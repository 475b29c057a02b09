from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ...employees.model import SalaryStructure
from ..model import Deductions, Earnings, MonthFacts, SalaryBreakdown


class DeductionPolicy(ABC):
    """Statutory deduction rules (Strategy Pattern)."""

    @abstractmethod
    def compute(self, earnings: Earnings, structure: SalaryStructure, facts: MonthFacts) -> Deductions:
        raise NotImplementedError


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(self, structure: SalaryStructure, facts: Optional[MonthFacts] = None) -> SalaryBreakdown:
        raise NotImplementedError
