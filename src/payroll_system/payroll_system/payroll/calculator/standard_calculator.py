from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.money import round_money, sum_money
from ...common.validators import require_amount
from ...core.exceptions import ValidationError
from ...employees.model import SalaryStructure
from ..model import Earnings, MonthFacts, SalaryBreakdown
from .base import DeductionPolicy, PayrollCalculator
from .statutory_policy import StatutoryDeductionPolicy


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: gross = sum of components, net = gross - deductions, never below 0."""

    def __init__(self, policy: Optional[DeductionPolicy] = None):
        self._policy = policy or StatutoryDeductionPolicy()

    @staticmethod
    def validate(structure: Optional[SalaryStructure]) -> SalaryStructure:
        if structure is None or structure.basic is None:
            raise ValidationError("Missing required field: basic salary")
        return SalaryStructure(
            basic=require_amount(structure.basic, "basic"),
            hra=require_amount(structure.hra, "hra"),
            da=require_amount(structure.da, "da"),
            special_allowance=require_amount(structure.special_allowance, "special_allowance"),
            other_allowances=require_amount(structure.other_allowances, "other_allowances"),
            pf_percentage=require_amount(structure.pf_percentage, "pf_percentage"),
            professional_tax=require_amount(structure.professional_tax, "professional_tax"),
            esi_percentage=require_amount(structure.esi_percentage, "esi_percentage"),
        )

    def calculate(self, structure: SalaryStructure, facts: Optional[MonthFacts] = None) -> SalaryBreakdown:
        structure = self.validate(structure)
        facts = facts or MonthFacts()

        basic = round_money(structure.basic)
        hra = round_money(structure.hra)
        da = round_money(structure.da)
        special = round_money(structure.special_allowance)
        other = round_money(structure.other_allowances)
        earnings = Earnings(
            basic=basic,
            hra=hra,
            da=da,
            special_allowance=special,
            other_allowances=other,
            gross=sum_money([basic, hra, da, special, other]),
        )

        deductions = self._policy.compute(earnings, structure, facts)
        net_salary = round_money(earnings.gross - deductions.total)
        if net_salary < 0:
            raise ValidationError("Net salary cannot be negative. Please review the salary structure.")

        return SalaryBreakdown(earnings=earnings, deductions=deductions, net_salary=net_salary)

    def yearly_ctc(self, structure: SalaryStructure) -> Decimal:
        return round_money(self.calculate(structure).earnings.gross * 12)
