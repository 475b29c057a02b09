"""Example: drive the service layer directly, without Flask.

Processes a month, approves it in bulk and prints the result envelopes.
"""

import importlib
import json

from config import get_settings_module

from src.payroll_system.payroll_system.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        payslip_dir=settings.PAYSLIP_DIR,
        smtp_config=settings.SMTP_CONFIG,
        email_backend=getattr(settings, "EMAIL_BACKEND", "smtp"),
    )

    batch = container.payroll_service.process_month(1, 2026)
    print(json.dumps(batch.to_dict(), indent=2))

    approved = container.bulk_payroll_service.bulk_approve(batch.month)
    print(json.dumps(approved.to_dict(), indent=2))


if __name__ == "__main__":
    main()
