from datetime import datetime
from decimal import Decimal

import pytest

from fakes import make_employee, make_record
from src.payroll_system.payroll_system.core.enums import AdjustmentType, PayrollStatus
from src.payroll_system.payroll_system.core.exceptions import NotFoundError
from src.payroll_system.payroll_system.payroll.model import Adjustment
from src.payroll_system.payroll_system.payslips.document import ReportLabPayslipGenerator


def _paid_record():
    return make_record(
        status=PayrollStatus.PAID,
        transaction_id="TXN-1767225600000-EMP0001",
        paid_at=datetime(2026, 2, 1, 10, 0),
        adjustments=(Adjustment(type=AdjustmentType.BONUS, description="Festival", amount=Decimal("2000.00")),),
    )


def test_generate_writes_pdf_to_storage(tmp_path):
    generator = ReportLabPayslipGenerator(tmp_path / "payslips")

    document = generator.generate(_paid_record(), make_employee(1))

    assert document.url == "/files/payslips/payslip-EMP0001-2026-01.pdf"
    assert document.content.startswith(b"%PDF")
    stored = tmp_path / "payslips" / "payslip-EMP0001-2026-01.pdf"
    assert stored.read_bytes() == document.content


def test_read_returns_stored_document(tmp_path):
    generator = ReportLabPayslipGenerator(tmp_path, base_url="https://hr.example.com/payslips/")
    document = generator.generate(_paid_record(), make_employee(1))

    assert document.url == "https://hr.example.com/payslips/payslip-EMP0001-2026-01.pdf"
    assert generator.read(document.url) == document.content


def test_read_missing_document(tmp_path):
    with pytest.raises(NotFoundError):
        ReportLabPayslipGenerator(tmp_path).read("/files/payslips/nope.pdf")
