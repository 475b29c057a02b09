from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from src.payroll_system.payroll_system.core.enums import EmploymentStatus, PaymentMethod, PayrollStatus
from src.payroll_system.payroll_system.audit.model import AuditEntry, NewAuditEntry
from src.payroll_system.payroll_system.core.exceptions import ExternalServiceError, NotFoundError
from src.payroll_system.payroll_system.employees.model import BankDetails, Employee, SalaryStructure
from src.payroll_system.payroll_system.notifications.model import NewNotification, Notification
from src.payroll_system.payroll_system.payroll.gateway import PaymentReceipt
from src.payroll_system.payroll_system.payroll.model import Deductions, Earnings, PayrollRecord
from src.payroll_system.payroll_system.payroll.repository import TRANSITION_FIELDS
from src.payroll_system.payroll_system.payslips.document import PayslipDocument


def make_employee(employee_id=1, code=None, *, basic="30000", hra="12000", special="5000", **kw) -> Employee:
    return Employee(
        employee_id=employee_id,
        employee_code=code or f"EMP{employee_id:04d}",
        first_name=kw.pop("first_name", "Asha"),
        last_name=kw.pop("last_name", f"Rao{employee_id}"),
        email=kw.pop("email", f"emp{employee_id}@example.com"),
        status=kw.pop("status", EmploymentStatus.ACTIVE),
        salary=SalaryStructure(
            basic=Decimal(basic) if basic is not None else None,
            hra=Decimal(hra),
            special_allowance=Decimal(special),
        ),
        department=kw.pop("department", "Engineering"),
        bank=kw.pop("bank", BankDetails(account_number="123456789012", bank_name="State Bank", ifsc_code="SBIN0001")),
    )


def make_record(record_id=1, employee_id=1, *, status=PayrollStatus.PENDING, month="2026-01", **kw) -> PayrollRecord:
    """Record for EMP basic 30000 / hra 12000 / special 5000 with statutory deductions."""
    return PayrollRecord(
        record_id=record_id,
        employee_id=employee_id,
        month=month,
        year=int(month[:4]),
        earnings=Earnings(
            basic=Decimal("30000.00"),
            hra=Decimal("12000.00"),
            da=Decimal("0.00"),
            special_allowance=Decimal("5000.00"),
            other_allowances=Decimal("0.00"),
            gross=Decimal("47000.00"),
        ),
        deductions=Deductions(
            pf=Decimal("3600.00"),
            professional_tax=Decimal("200.00"),
            esi=Decimal("225.00"),
            lop=Decimal("0.00"),
            total=Decimal("4025.00"),
        ),
        net_salary=Decimal("42975.00"),
        status=status,
        **kw,
    )


class FakeEmployeesRepo:
    def __init__(self, employees=()):
        self._items = {e.employee_id: e for e in employees}

    def add(self, employee: Employee) -> None:
        self._items[employee.employee_id] = employee

    def list_active(self):
        return [e for e in self._items.values() if e.status == EmploymentStatus.ACTIVE]

    def get_by_id(self, employee_id):
        return self._items.get(int(employee_id))


class FakeLeavesRepo:
    def __init__(self, lop_days=None):
        self.lop_days = dict(lop_days or {})

    def count_lop_days(self, *, employee_id, month):
        return Decimal(self.lop_days.get((int(employee_id), month), 0))


class FakePayrollRepo:
    """In-memory payroll store with the same conditional-update semantics as MySQL."""

    def __init__(self):
        self._lock = threading.Lock()
        self._next_id = 1
        self.records: dict[int, PayrollRecord] = {}

    def put(self, record: PayrollRecord) -> PayrollRecord:
        with self._lock:
            self.records[record.record_id] = record
            self._next_id = max(self._next_id, record.record_id + 1)
        return record

    def create(self, record):
        with self._lock:
            if any(r.employee_id == record.employee_id and r.month == record.month for r in self.records.values()):
                return None
            rid = self._next_id
            self._next_id += 1
            self.records[rid] = PayrollRecord(
                record_id=rid,
                employee_id=record.employee_id,
                month=record.month,
                year=record.year,
                earnings=record.breakdown.earnings,
                deductions=record.breakdown.deductions,
                net_salary=record.breakdown.net_salary,
                processed_at=record.processed_at,
                processed_by=record.processed_by,
            )
            return rid

    def get(self, record_id):
        return self.records.get(int(record_id))

    def get_for_employee_and_month(self, *, employee_id, month):
        for r in self.records.values():
            if r.employee_id == int(employee_id) and r.month == month:
                return r
        return None

    def list_by_month(self, *, month, status=None):
        return [
            r
            for r in sorted(self.records.values(), key=lambda x: x.record_id)
            if r.month == month and (status is None or r.status == status)
        ]

    def _filtered(self, month, status, employee_id, payslip_only):
        out = []
        for r in self.records.values():
            if month and r.month != month:
                continue
            if status is not None and r.status != status:
                continue
            if employee_id is not None and r.employee_id != int(employee_id):
                continue
            if payslip_only and not (r.status == PayrollStatus.PAID and r.payslip_generated):
                continue
            out.append(r)
        return sorted(out, key=lambda x: (x.month, x.record_id), reverse=True)

    def list_records(self, *, month=None, status=None, employee_id=None, payslip_only=False, offset=0, limit=10):
        return self._filtered(month, status, employee_id, payslip_only)[offset : offset + limit]

    def count_records(self, *, month=None, status=None, employee_id=None, payslip_only=False):
        return len(self._filtered(month, status, employee_id, payslip_only))

    def transition(self, *, record_id, expected, new_status, claimed=False, **fields):
        assert set(fields) <= TRANSITION_FIELDS
        with self._lock:
            r = self.records.get(int(record_id))
            if not r or r.status != expected or (r.payment_claimed_at is not None) != claimed:
                return False
            self.records[r.record_id] = replace(r, status=new_status, version=r.version + 1, **fields)
            return True

    def claim_payment(self, *, record_id, expected_version, claimed_at):
        with self._lock:
            r = self.records.get(int(record_id))
            if (
                not r
                or r.status != PayrollStatus.APPROVED
                or r.version != expected_version
                or r.payment_claimed_at is not None
            ):
                return False
            self.records[r.record_id] = replace(r, payment_claimed_at=claimed_at, version=r.version + 1)
            return True

    def save_adjustment(self, *, record, adjustment, expected_version):
        with self._lock:
            r = self.records.get(record.record_id)
            if not r or r.status != PayrollStatus.PENDING or r.version != expected_version:
                return False
            self.records[r.record_id] = replace(
                r,
                earnings=record.earnings,
                deductions=record.deductions,
                total_adjustment=record.total_adjustment,
                net_salary=record.net_salary,
                adjustments=r.adjustments + (adjustment,),
                version=r.version + 1,
            )
            return True

    def mark_payslip_generated(self, *, record_id, payslip_url, generated_at):
        with self._lock:
            r = self.records[int(record_id)]
            self.records[r.record_id] = replace(
                r, payslip_generated=True, payslip_url=payslip_url, payslip_generated_at=generated_at
            )
            return True

    def mark_notification_sent(self, *, record_id, sent_at):
        with self._lock:
            r = self.records[int(record_id)]
            self.records[r.record_id] = replace(r, notification_sent=True, notification_sent_at=sent_at)
            return True

    def summarize_by_status(self, *, month=None):
        out: dict[str, dict] = {}
        for r in self.records.values():
            if month and r.month != month:
                continue
            row = out.setdefault(r.status.value, {"status": r.status.value, "count": 0, "total_amount": Decimal("0")})
            row["count"] += 1
            row["total_amount"] += r.net_salary
        return list(out.values())

    def summarize_by_month(self, *, limit=6):
        out: dict[str, dict] = {}
        for r in self.records.values():
            row = out.setdefault(
                r.month,
                {
                    "month": r.month,
                    "total_employees": 0,
                    "total_gross": Decimal("0"),
                    "total_deductions": Decimal("0"),
                    "total_net": Decimal("0"),
                },
            )
            row["total_employees"] += 1
            row["total_gross"] += r.earnings.gross
            row["total_deductions"] += r.deductions.total
            row["total_net"] += r.net_salary
        return sorted(out.values(), key=lambda x: x["month"], reverse=True)[:limit]


class FakeNotificationsRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, Notification] = {}
        self.fail = False

    def create(self, notification: NewNotification):
        if self.fail:
            raise RuntimeError("notification store unavailable")
        nid = self._next_id
        self._next_id += 1
        self.items[nid] = Notification(
            notification_id=nid,
            employee_id=notification.employee_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            link=notification.link,
            created_at=datetime(2026, 2, 1, 9, 0, nid % 60),
        )
        return nid

    def list_for_employee(self, *, employee_id, limit):
        items = [n for n in self.items.values() if n.employee_id == int(employee_id)]
        return sorted(items, key=lambda n: n.notification_id, reverse=True)[:limit]

    def count_unread(self, *, employee_id):
        return sum(1 for n in self.items.values() if n.employee_id == int(employee_id) and not n.read)

    def mark_read(self, *, employee_id, notification_id, read_at):
        n = self.items.get(int(notification_id))
        if not n or n.employee_id != int(employee_id):
            return False
        self.items[n.notification_id] = replace(n, read=True, read_at=n.read_at or read_at)
        return True

    def mark_all_read(self, *, employee_id, read_at):
        count = 0
        for n in list(self.items.values()):
            if n.employee_id == int(employee_id) and not n.read:
                self.items[n.notification_id] = replace(n, read=True, read_at=read_at)
                count += 1
        return count


class FakeGateway:
    def __init__(self):
        self.fail_for: set[int] = set()
        self.calls: list[int] = []

    def pay(self, record, employee):
        self.calls.append(record.record_id)
        if record.record_id in self.fail_for:
            raise ExternalServiceError("Bank rejected the transfer")
        return PaymentReceipt(
            transaction_id=f"TXN-1767225600000-{employee.employee_code}",
            paid_at=datetime(2026, 2, 1, 10, 0, 0),
            payment_method=PaymentMethod.BANK_TRANSFER,
        )


class BlockingGateway(FakeGateway):
    """Holds every transfer open until ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def pay(self, record, employee):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().pay(record, employee)


class FakeDocuments:
    def __init__(self):
        self.generated: list[int] = []
        self.stored: dict[str, bytes] = {}
        self.fail = False

    def generate(self, record, employee):
        if self.fail:
            raise ExternalServiceError("PDF renderer unavailable")
        self.generated.append(record.record_id)
        url = f"/files/payslips/payslip-{employee.employee_code}-{record.month}.pdf"
        content = b"%PDF-1.4 fake"
        self.stored[url] = content
        return PayslipDocument(url=url, content=content)

    def read(self, url):
        if url not in self.stored:
            raise NotFoundError("Payslip document not found")
        return self.stored[url]


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.deliver = True

    def send(self, message):
        if not self.deliver:
            return False
        self.sent.append(message)
        return True




class FakeAuditRepo:
    def __init__(self):
        self._next_id = 1
        self.entries: dict[int, AuditEntry] = {}
        self.fail = False

    def create(self, entry: NewAuditEntry):
        if self.fail:
            raise RuntimeError("audit store unavailable")
        audit_id = self._next_id
        self._next_id += 1
        self.entries[audit_id] = AuditEntry(
            audit_id=audit_id,
            action=entry.action,
            entity=entry.entity,
            entity_id=entry.entity_id,
            performed_by=entry.performed_by,
            before=entry.before,
            after=entry.after,
            outcome=entry.outcome,
            description=entry.description,
            created_at=datetime(2026, 2, 1, 9, 0, audit_id % 60),
        )
        return audit_id

    def list_for_entity(self, *, entity, entity_id, limit):
        items = [e for e in self.entries.values() if e.entity == entity and e.entity_id == int(entity_id)]
        return sorted(items, key=lambda e: e.audit_id, reverse=True)[:limit]

    def list_recent(self, *, action=None, performed_by=None, limit):
        items = [
            e
            for e in self.entries.values()
            if (action is None or e.action == action) and (performed_by is None or e.performed_by == performed_by)
        ]
        return sorted(items, key=lambda e: e.audit_id, reverse=True)[:limit]

    def actions(self, entity_id=None, outcome=None):
        return [
            e.action.value
            for e in sorted(self.entries.values(), key=lambda e: e.audit_id)
            if (entity_id is None or e.entity_id == entity_id) and (outcome is None or e.outcome == outcome)
        ]
