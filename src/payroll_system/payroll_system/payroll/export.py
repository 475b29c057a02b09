from __future__ import annotations

import io
from typing import Mapping, Optional, Sequence

import pandas as pd

from ..employees.model import Employee
from .model import PayrollRecord

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

COLUMNS = [
    "Employee Code",
    "Employee Name",
    "Department",
    "Month",
    "Basic",
    "HRA",
    "DA",
    "Special Allowance",
    "Other Allowances",
    "Gross",
    "PF",
    "Professional Tax",
    "ESI",
    "LOP",
    "Adjustments",
    "Total Deductions",
    "Net Salary",
    "Status",
    "Transaction ID",
    "Paid At",
]


def build_rows(records: Sequence[PayrollRecord], employees: Mapping[int, Employee]) -> list[dict]:
    rows = []
    for r in records:
        emp: Optional[Employee] = employees.get(r.employee_id)
        rows.append(
            {
                "Employee Code": emp.employee_code if emp else "",
                "Employee Name": emp.full_name if emp else "Unknown",
                "Department": (emp.department if emp else None) or "-",
                "Month": r.month,
                "Basic": float(r.earnings.basic),
                "HRA": float(r.earnings.hra),
                "DA": float(r.earnings.da),
                "Special Allowance": float(r.earnings.special_allowance),
                "Other Allowances": float(r.earnings.other_allowances),
                "Gross": float(r.earnings.gross),
                "PF": float(r.deductions.pf),
                "Professional Tax": float(r.deductions.professional_tax),
                "ESI": float(r.deductions.esi),
                "LOP": float(r.deductions.lop),
                "Adjustments": float(r.total_adjustment),
                "Total Deductions": float(r.deductions.total),
                "Net Salary": float(r.net_salary),
                "Status": r.status.value,
                "Transaction ID": r.transaction_id or "",
                "Paid At": r.paid_at.strftime("%Y-%m-%d %H:%M") if r.paid_at else "",
            }
        )
    return rows


def to_xlsx(rows: list[dict], *, sheet_name: str = "Payroll") -> bytes:
    """Render rows into an in-memory workbook."""
    df = pd.DataFrame(rows, columns=COLUMNS)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()
