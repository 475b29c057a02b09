from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import EmploymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import BankDetails, Employee, SalaryStructure
from .repository import EmployeeRepository

_SELECT = """
    SELECT employee_id, employee_code, first_name, last_name, email,
           department, designation, status,
           basic_salary, hra, da, special_allowance, other_allowances,
           pf_percentage, professional_tax, esi_percentage,
           account_number, bank_name, ifsc_code
    FROM employees
"""


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> Employee:
        return Employee(
            employee_id=int(r["employee_id"]),
            employee_code=r["employee_code"],
            first_name=r["first_name"],
            last_name=r["last_name"],
            email=r["email"],
            department=r.get("department"),
            designation=r.get("designation"),
            status=EmploymentStatus(r["status"]),
            salary=SalaryStructure(
                basic=as_decimal(r["basic_salary"]) if r.get("basic_salary") is not None else None,
                hra=as_decimal(r.get("hra")),
                da=as_decimal(r.get("da")),
                special_allowance=as_decimal(r.get("special_allowance")),
                other_allowances=as_decimal(r.get("other_allowances")),
                pf_percentage=as_decimal(r.get("pf_percentage")),
                professional_tax=as_decimal(r.get("professional_tax")),
                esi_percentage=as_decimal(r.get("esi_percentage")),
            ),
            bank=BankDetails(
                account_number=r.get("account_number"),
                bank_name=r.get("bank_name"),
                ifsc_code=r.get("ifsc_code"),
            ),
        )

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE status=%s ORDER BY employee_id",
                (EmploymentStatus.ACTIVE.value,),
            )
            return [self._map(r) for r in fetchall(cur)]

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return self._map(r) if r else None
