from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.validators import parse_positive_int
from ..common.web import admin_required, current_employee_id, login_required, ok
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE


def register(app: Flask, container: Container) -> None:
    service = container.payslip_service

    @app.route("/api/payslips/me", methods=["GET"], endpoint="payslips_mine")
    @login_required
    def my_payslips():
        page = service.list_for_employee(
            current_employee_id(),
            page=parse_positive_int(request.args.get("page"), "page", 1),
            limit=parse_positive_int(request.args.get("limit"), "limit", DEFAULT_PAGE_SIZE),
        )
        envelope = page.envelope(lambda r: r.to_dict())
        return ok(envelope["data"], pagination=envelope["pagination"])

    @app.route("/api/payslips/status/<month>", methods=["GET"], endpoint="payslips_status")
    @admin_required
    def status(month: str):
        return ok(service.status_for_month(month))

    @app.route("/api/payslips/<int:record_id>", methods=["GET"], endpoint="payslips_get")
    @login_required
    def get(record_id: int):
        return ok(service.get_for_employee(current_employee_id(), record_id).to_dict())

    @app.route("/api/payslips/<int:record_id>/download", methods=["GET"], endpoint="payslips_download")
    @login_required
    def download(record_id: int):
        if request.args.get("format") == "link":
            return ok(service.download_link(current_employee_id(), record_id))
        payslip = service.download(current_employee_id(), record_id)
        return send_file(
            io.BytesIO(payslip.content),
            download_name=payslip.filename,
            as_attachment=True,
            mimetype="application/pdf",
        )

    @app.route("/api/payslips/<int:record_id>/resend", methods=["POST"], endpoint="payslips_resend")
    @admin_required
    def resend(record_id: int):
        outcome = service.resend_payslip_email(record_id)
        return ok(outcome.to_dict(), "Payslip email resent successfully")
