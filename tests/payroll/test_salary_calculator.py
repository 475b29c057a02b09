from decimal import Decimal

import pytest

from src.payroll_system.payroll_system.core.exceptions import ValidationError
from src.payroll_system.payroll_system.employees.model import SalaryStructure
from src.payroll_system.payroll_system.payroll.calculator.base import DeductionPolicy
from src.payroll_system.payroll_system.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.payroll_system.payroll_system.payroll.model import Deductions, MonthFacts


def _structure(**kw) -> SalaryStructure:
    values = {"basic": Decimal("30000"), "hra": Decimal("12000"), "special_allowance": Decimal("5000")}
    values.update(kw)
    return SalaryStructure(**values)


def test_statutory_breakdown():
    result = StandardPayrollCalculator().calculate(_structure())

    assert result.earnings.gross == Decimal("47000.00")
    assert result.deductions.pf == Decimal("3600.00")
    assert result.deductions.professional_tax == Decimal("200.00")
    assert result.deductions.esi == Decimal("225.00")
    assert result.deductions.lop == Decimal("0.00")
    assert result.deductions.total == Decimal("4025.00")
    assert result.net_salary == Decimal("42975.00")


def test_loss_of_pay_is_prorated_on_gross():
    result = StandardPayrollCalculator().calculate(_structure(), MonthFacts(lop_days=Decimal("2")))

    # 47000 / 30 * 2 = 3133.333.. -> 3133.33
    assert result.deductions.lop == Decimal("3133.33")
    assert result.deductions.total == Decimal("7158.33")
    assert result.net_salary == Decimal("39841.67")


def test_calculation_is_idempotent():
    calc = StandardPayrollCalculator()
    assert calc.calculate(_structure()) == calc.calculate(_structure())


def test_missing_basic_is_rejected():
    with pytest.raises(ValidationError, match="basic"):
        StandardPayrollCalculator().calculate(SalaryStructure(basic=None))


@pytest.mark.parametrize("field", ["basic", "hra", "special_allowance"])
def test_negative_component_is_rejected(field):
    with pytest.raises(ValidationError):
        StandardPayrollCalculator().calculate(_structure(**{field: Decimal("-1")}))


def test_non_numeric_component_is_rejected():
    with pytest.raises(ValidationError, match="must be a number"):
        StandardPayrollCalculator().calculate(_structure(hra="abc"))


def test_negative_net_is_rejected():
    # Professional tax alone exceeds a tiny salary.
    with pytest.raises(ValidationError, match="negative"):
        StandardPayrollCalculator().calculate(SalaryStructure(basic=Decimal("100")))


def test_custom_deduction_policy_is_used():
    class NoDeductions(DeductionPolicy):
        def compute(self, earnings, structure, facts):
            zero = Decimal("0.00")
            return Deductions(pf=zero, professional_tax=zero, esi=zero, lop=zero, total=zero)

    result = StandardPayrollCalculator(NoDeductions()).calculate(_structure())
    assert result.net_salary == result.earnings.gross == Decimal("47000.00")


def test_yearly_ctc():
    assert StandardPayrollCalculator().yearly_ctc(_structure()) == Decimal("564000.00")
