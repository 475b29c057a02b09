from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AdjustmentType, PaymentMethod, PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Adjustment, Deductions, Earnings, NewPayrollRecord, PayrollRecord
from .repository import TRANSITION_FIELDS, PayrollRepository

_SELECT = """
    SELECT record_id, employee_id, month, year,
           basic, hra, da, special_allowance, other_allowances, gross,
           pf, professional_tax, esi, lop, total_deductions,
           total_adjustment, net_salary, status, transaction_id, payment_method,
           processed_at, processed_by, approved_at, approved_by, paid_at, payment_claimed_at,
           payslip_generated, payslip_url, payslip_generated_at,
           notification_sent, notification_sent_at, remarks, failure_reason, version
    FROM payroll_records
"""


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- mapping --------
    @staticmethod
    def _map(r: dict, adjustments: Sequence[Adjustment] = ()) -> PayrollRecord:
        return PayrollRecord(
            record_id=int(r["record_id"]),
            employee_id=int(r["employee_id"]),
            month=r["month"],
            year=int(r["year"]),
            earnings=Earnings(
                basic=as_decimal(r["basic"]),
                hra=as_decimal(r["hra"]),
                da=as_decimal(r["da"]),
                special_allowance=as_decimal(r["special_allowance"]),
                other_allowances=as_decimal(r["other_allowances"]),
                gross=as_decimal(r["gross"]),
            ),
            deductions=Deductions(
                pf=as_decimal(r["pf"]),
                professional_tax=as_decimal(r["professional_tax"]),
                esi=as_decimal(r["esi"]),
                lop=as_decimal(r["lop"]),
                total=as_decimal(r["total_deductions"]),
            ),
            adjustments=tuple(adjustments),
            total_adjustment=as_decimal(r["total_adjustment"]),
            net_salary=as_decimal(r["net_salary"]),
            status=PayrollStatus(r["status"]),
            transaction_id=r.get("transaction_id"),
            payment_method=PaymentMethod(r.get("payment_method") or PaymentMethod.BANK_TRANSFER.value),
            processed_at=r.get("processed_at"),
            processed_by=r.get("processed_by"),
            approved_at=r.get("approved_at"),
            approved_by=r.get("approved_by"),
            paid_at=r.get("paid_at"),
            payment_claimed_at=r.get("payment_claimed_at"),
            payslip_generated=as_bool(r.get("payslip_generated")),
            payslip_url=r.get("payslip_url"),
            payslip_generated_at=r.get("payslip_generated_at"),
            notification_sent=as_bool(r.get("notification_sent")),
            notification_sent_at=r.get("notification_sent_at"),
            remarks=r.get("remarks"),
            failure_reason=r.get("failure_reason"),
            version=int(r.get("version") or 0),
        )

    @staticmethod
    def _load_adjustments(cur, record_ids: Sequence[int]) -> dict[int, list[Adjustment]]:
        out: dict[int, list[Adjustment]] = {rid: [] for rid in record_ids}
        if not record_ids:
            return out
        placeholders = ",".join(["%s"] * len(record_ids))
        cur.execute(
            f"""
            SELECT record_id, adjustment_type, description, amount, added_by, added_at
            FROM payroll_adjustments
            WHERE record_id IN ({placeholders})
            ORDER BY adjustment_id
            """,
            tuple(record_ids),
        )
        for a in fetchall(cur):
            out[int(a["record_id"])].append(
                Adjustment(
                    type=AdjustmentType(a["adjustment_type"]),
                    description=a["description"],
                    amount=as_decimal(a["amount"]),
                    added_by=a.get("added_by"),
                    added_at=a.get("added_at"),
                )
            )
        return out

    def _query(self, where: str, params: tuple, suffix: str = "") -> list[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} {suffix}", params)
            rows = fetchall(cur)
            adjustments = self._load_adjustments(cur, [int(r["record_id"]) for r in rows])
            return [self._map(r, adjustments[int(r["record_id"])]) for r in rows]

    @staticmethod
    def _filters(
        *,
        month: Optional[str],
        status: Optional[PayrollStatus],
        employee_id: Optional[int],
        payslip_only: bool,
    ) -> tuple[str, list[object]]:
        clauses = ["1=1"]
        params: list[object] = []
        if month:
            clauses.append("month=%s")
            params.append(month)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if payslip_only:
            clauses.append("status=%s AND payslip_generated=1")
            params.append(PayrollStatus.PAID.value)
        return " AND ".join(clauses), params

    # -------- reads --------
    def get(self, record_id: int) -> Optional[PayrollRecord]:
        rows = self._query("record_id=%s", (int(record_id),))
        return rows[0] if rows else None

    def get_for_employee_and_month(self, *, employee_id: int, month: str) -> Optional[PayrollRecord]:
        rows = self._query("employee_id=%s AND month=%s", (int(employee_id), month))
        return rows[0] if rows else None

    def list_by_month(self, *, month: str, status: Optional[PayrollStatus] = None) -> Sequence[PayrollRecord]:
        where, params = self._filters(month=month, status=status, employee_id=None, payslip_only=False)
        return self._query(where, tuple(params), "ORDER BY record_id")

    def list_records(
        self,
        *,
        month: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
        payslip_only: bool = False,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[PayrollRecord]:
        where, params = self._filters(month=month, status=status, employee_id=employee_id, payslip_only=payslip_only)
        return self._query(
            where,
            tuple(params + [int(limit), int(offset)]),
            "ORDER BY year DESC, month DESC, record_id DESC LIMIT %s OFFSET %s",
        )

    def count_records(
        self,
        *,
        month: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
        payslip_only: bool = False,
    ) -> int:
        where, params = self._filters(month=month, status=status, employee_id=employee_id, payslip_only=payslip_only)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM payroll_records WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    # -------- writes --------
    def create(self, record: NewPayrollRecord) -> Optional[int]:
        e = record.breakdown.earnings
        d = record.breakdown.deductions
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll_records(
                        employee_id, month, year,
                        basic, hra, da, special_allowance, other_allowances, gross,
                        pf, professional_tax, esi, lop, total_deductions,
                        total_adjustment, net_salary, status, processed_at, processed_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0,%s,%s,%s,%s)
                    """,
                    (
                        int(record.employee_id),
                        record.month,
                        int(record.year),
                        e.basic,
                        e.hra,
                        e.da,
                        e.special_allowance,
                        e.other_allowances,
                        e.gross,
                        d.pf,
                        d.professional_tax,
                        d.esi,
                        d.lop,
                        d.total,
                        record.breakdown.net_salary,
                        PayrollStatus.PENDING.value,
                        record.processed_at,
                        record.processed_by,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as err:
            if is_duplicate_key(err):
                return None
            raise

    def transition(
        self,
        *,
        record_id: int,
        expected: PayrollStatus,
        new_status: PayrollStatus,
        claimed: bool = False,
        **fields: Any,
    ) -> bool:
        unknown = set(fields) - TRANSITION_FIELDS
        if unknown:
            raise ValueError(f"Unsupported transition fields: {sorted(unknown)}")

        assignments = ["status=%s", "version=version+1"]
        params: list[object] = [new_status.value]
        for column, value in fields.items():
            assignments.append(f"{column}=%s")
            params.append(value.value if isinstance(value, PaymentMethod) else value)
        claim_clause = "payment_claimed_at IS NOT NULL" if claimed else "payment_claimed_at IS NULL"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE payroll_records
                SET {", ".join(assignments)}
                WHERE record_id=%s AND status=%s AND {claim_clause}
                """,
                tuple(params + [int(record_id), expected.value]),
            )
            return cur.rowcount == 1

    def claim_payment(self, *, record_id: int, expected_version: int, claimed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET payment_claimed_at=%s, version=version+1
                WHERE record_id=%s AND status=%s AND version=%s AND payment_claimed_at IS NULL
                """,
                (claimed_at, int(record_id), PayrollStatus.APPROVED.value, int(expected_version)),
            )
            return cur.rowcount == 1

    def save_adjustment(self, *, record: PayrollRecord, adjustment: Adjustment, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET gross=%s, total_deductions=%s, total_adjustment=%s, net_salary=%s,
                    version=version+1
                WHERE record_id=%s AND status=%s AND version=%s
                """,
                (
                    record.earnings.gross,
                    record.deductions.total,
                    record.total_adjustment,
                    record.net_salary,
                    int(record.record_id),
                    PayrollStatus.PENDING.value,
                    int(expected_version),
                ),
            )
            if cur.rowcount != 1:
                return False

            cur.execute(
                """
                INSERT INTO payroll_adjustments(record_id, adjustment_type, description, amount, added_by, added_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(record.record_id),
                    adjustment.type.value,
                    adjustment.description,
                    adjustment.amount,
                    adjustment.added_by,
                    adjustment.added_at,
                ),
            )
            return True

    def mark_payslip_generated(self, *, record_id: int, payslip_url: str, generated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET payslip_generated=1, payslip_url=%s, payslip_generated_at=%s
                WHERE record_id=%s AND status=%s
                """,
                (payslip_url, generated_at, int(record_id), PayrollStatus.PAID.value),
            )
            return cur.rowcount == 1

    def mark_notification_sent(self, *, record_id: int, sent_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET notification_sent=1, notification_sent_at=%s
                WHERE record_id=%s AND status=%s
                """,
                (sent_at, int(record_id), PayrollStatus.PAID.value),
            )
            return cur.rowcount == 1

    # -------- reporting --------
    def summarize_by_status(self, *, month: Optional[str] = None) -> Sequence[dict]:
        where, params = self._filters(month=month, status=None, employee_id=None, payslip_only=False)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT status, COUNT(*) AS count, COALESCE(SUM(net_salary), 0) AS total_amount
                FROM payroll_records
                WHERE {where}
                GROUP BY status
                """,
                tuple(params),
            )
            return [
                {
                    "status": r["status"],
                    "count": int(r["count"]),
                    "total_amount": as_decimal(r["total_amount"]),
                }
                for r in fetchall(cur)
            ]

    def summarize_by_month(self, *, limit: int = 6) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT month,
                       COUNT(*) AS total_employees,
                       COALESCE(SUM(gross), 0) AS total_gross,
                       COALESCE(SUM(total_deductions), 0) AS total_deductions,
                       COALESCE(SUM(net_salary), 0) AS total_net
                FROM payroll_records
                GROUP BY month
                ORDER BY month DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                {
                    "month": r["month"],
                    "total_employees": int(r["total_employees"]),
                    "total_gross": as_decimal(r["total_gross"]),
                    "total_deductions": as_decimal(r["total_deductions"]),
                    "total_net": as_decimal(r["total_net"]),
                }
                for r in fetchall(cur)
            ]
