from __future__ import annotations

from decimal import Decimal

from ...common.money import ZERO, round_money, sum_money
from ...core.constants import LOP_DAYS_PER_MONTH
from ...employees.model import SalaryStructure
from ..model import Deductions, Earnings, MonthFacts
from .base import DeductionPolicy

_HUNDRED = Decimal("100")


class StatutoryDeductionPolicy(DeductionPolicy):
    """PF and ESI as a percentage of basic, flat professional tax, LOP pro-rated on gross/30."""

    def compute(self, earnings: Earnings, structure: SalaryStructure, facts: MonthFacts) -> Deductions:
        pf = round_money(earnings.basic * structure.pf_percentage / _HUNDRED)
        esi = round_money(earnings.basic * structure.esi_percentage / _HUNDRED)
        professional_tax = round_money(structure.professional_tax)

        lop = ZERO
        if facts.lop_days > 0:
            lop = round_money(earnings.gross / LOP_DAYS_PER_MONTH * facts.lop_days)

        return Deductions(
            pf=pf,
            professional_tax=professional_tax,
            esi=esi,
            lop=lop,
            total=sum_money([pf, professional_tax, esi, lop]),
        )
