from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ..common.datetime_utils import now_local
from ..core.enums import PaymentMethod
from ..core.exceptions import ExternalServiceError
from ..employees.model import Employee
from .model import PayrollRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentReceipt:
    transaction_id: str
    paid_at: datetime
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER


class PaymentGateway(Protocol):
    def pay(self, record: PayrollRecord, employee: Employee) -> PaymentReceipt:
        """Disburse ``record.net_salary``; raise ExternalServiceError when the transfer fails."""

        raise NotImplementedError


def make_transaction_id(employee_code: str, at: Optional[datetime] = None) -> str:
    stamp = int((at or now_local()).timestamp() * 1000)
    return f"TXN-{stamp}-{employee_code}"


class ManualPaymentGateway(PaymentGateway):
    """Records an off-system transfer.

    Bank transfers need an account on file; the other methods are settled by
    HR outside the system and only need a transaction reference.
    """

    def __init__(self, method: PaymentMethod = PaymentMethod.BANK_TRANSFER):
        self._method = method

    def pay(self, record: PayrollRecord, employee: Employee) -> PaymentReceipt:
        if self._method == PaymentMethod.BANK_TRANSFER and not employee.bank.account_number:
            raise ExternalServiceError(f"No bank account on file for employee {employee.employee_code}")

        paid_at = now_local()
        receipt = PaymentReceipt(
            transaction_id=make_transaction_id(employee.employee_code, paid_at),
            paid_at=paid_at,
            payment_method=self._method,
        )
        logger.info(
            "Payment recorded for %s (%s): %s via %s",
            employee.employee_code,
            record.month,
            receipt.transaction_id,
            self._method.value,
        )
        return receipt
