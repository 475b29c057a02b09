from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..common.money import format_currency
from ..core.exceptions import ExternalServiceError, NotFoundError
from ..employees.model import Employee
from ..payroll.model import PayrollRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayslipDocument:
    url: str
    content: bytes


class PayslipDocumentGenerator(Protocol):
    def generate(self, record: PayrollRecord, employee: Employee) -> PayslipDocument:
        raise NotImplementedError

    def read(self, url: str) -> bytes:
        """Return the stored document behind ``url``; NotFoundError when it is gone."""

        raise NotImplementedError


def payslip_filename(employee: Employee, record: PayrollRecord) -> str:
    return f"payslip-{employee.employee_code}-{record.month}.pdf"


class ReportLabPayslipGenerator(PayslipDocumentGenerator):
    """Renders A4 payslips with ReportLab and stores them under ``storage_dir``."""

    def __init__(self, storage_dir, *, base_url: str = "/files/payslips", company_name: str = "Payroll"):
        self._storage_dir = Path(storage_dir)
        self._base_url = base_url.rstrip("/")
        self._company_name = company_name

    def render(self, record: PayrollRecord, employee: Employee) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=f"Payslip {record.month}",
        )
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "PayslipTitle",
            parent=styles["Heading1"],
            fontSize=20,
            textColor=colors.HexColor("#1a365d"),
            spaceAfter=6,
        )
        heading_style = ParagraphStyle(
            "PayslipHeading",
            parent=styles["Heading2"],
            fontSize=12,
            textColor=colors.HexColor("#1a365d"),
            spaceBefore=10,
            spaceAfter=4,
        )

        elements = [
            Paragraph(f"<b>{self._company_name}</b>", title_style),
            Paragraph(f"Payslip for {record.month}", styles["Normal"]),
            Spacer(1, 12),
            self._info_table(record, employee),
            Paragraph("Earnings and Deductions", heading_style),
            self._amounts_table(record),
        ]
        if record.adjustments:
            elements.append(Paragraph("Adjustments", heading_style))
            elements.append(self._adjustments_table(record))

        elements.append(Spacer(1, 12))
        elements.append(Paragraph(f"<b>Net Salary: {format_currency(record.net_salary)}</b>", heading_style))
        if record.transaction_id:
            elements.append(Paragraph(f"Transaction ID: {record.transaction_id}", styles["Normal"]))
        elements.append(Spacer(1, 18))
        elements.append(Paragraph("This is a system generated payslip.", styles["Italic"]))

        doc.build(elements)
        return buffer.getvalue()

    @staticmethod
    def _info_table(record: PayrollRecord, employee: Employee) -> Table:
        data = [
            ["Employee", employee.full_name, "Employee Code", employee.employee_code],
            ["Department", employee.department or "-", "Designation", employee.designation or "-"],
            ["Bank", employee.bank.bank_name or "-", "Account", employee.bank.masked_account or "-"],
            [
                "Payment Method",
                record.payment_method.value,
                "Paid On",
                record.paid_at.strftime("%Y-%m-%d") if record.paid_at else "-",
            ],
        ]
        table = Table(data, colWidths=[90, 160, 90, 150])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ]
            )
        )
        return table

    @staticmethod
    def _amounts_table(record: PayrollRecord) -> Table:
        e, d = record.earnings, record.deductions
        earnings = [
            ("Basic", e.basic),
            ("HRA", e.hra),
            ("DA", e.da),
            ("Special Allowance", e.special_allowance),
            ("Other Allowances", e.other_allowances),
        ]
        deductions = [
            ("Provident Fund", d.pf),
            ("Professional Tax", d.professional_tax),
            ("ESI", d.esi),
            ("Loss of Pay", d.lop),
            ("", None),
        ]
        data = [["Earnings", "Amount", "Deductions", "Amount"]]
        for (el, ev), (dl, dv) in zip(earnings, deductions):
            data.append([el, format_currency(ev), dl, format_currency(dv) if dv is not None else ""])
        data.append(["Gross", format_currency(e.gross), "Total Deductions", format_currency(d.total)])

        table = Table(data, colWidths=[110, 135, 110, 135])
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1a365d")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("ALIGN", (3, 0), (3, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ]
            )
        )
        return table

    @staticmethod
    def _adjustments_table(record: PayrollRecord) -> Table:
        data = [["Type", "Description", "Amount"]]
        for a in record.adjustments:
            data.append([a.type.value, a.description, format_currency(a.signed_amount)])
        table = Table(data, colWidths=[90, 290, 110])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (2, 0), (2, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ]
            )
        )
        return table

    def generate(self, record: PayrollRecord, employee: Employee) -> PayslipDocument:
        filename = payslip_filename(employee, record)
        try:
            content = self.render(record, employee)
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            (self._storage_dir / filename).write_bytes(content)
        except OSError as e:
            raise ExternalServiceError(f"Could not store payslip {filename}: {e}") from e

        logger.info("Payslip generated for %s (%s): %s", employee.employee_code, record.month, filename)
        return PayslipDocument(url=f"{self._base_url}/{filename}", content=content)

    def read(self, url: str) -> bytes:
        path = self._storage_dir / Path(url).name
        if not path.is_file():
            raise NotFoundError("Payslip document not found")
        return path.read_bytes()
