from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.validators import parse_positive_int
from ..common.web import admin_required, current_user_id, json_body, ok
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.exceptions import ValidationError
from .export import XLSX_MIMETYPE


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service
    bulk = container.bulk_payroll_service

    @app.route("/api/payroll/process", methods=["POST"], endpoint="payroll_process")
    @admin_required
    def process():
        body = json_body()
        if body.get("month") in (None, "") or body.get("year") in (None, ""):
            raise ValidationError("Month and year are required")
        result = service.process_month(body["month"], body["year"], actor_id=current_user_id())
        return ok(
            result.to_dict(),
            f"Payroll processed for {result.total_processed} employees",
            status=201 if result.total_processed else 200,
        )

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    @admin_required
    def list_records():
        page = service.list_records(
            month=request.args.get("month"),
            year=request.args.get("year"),
            status=request.args.get("status"),
            page=parse_positive_int(request.args.get("page"), "page", 1),
            limit=parse_positive_int(request.args.get("limit"), "limit", DEFAULT_PAGE_SIZE),
        )
        envelope = page.envelope(lambda r: r.to_dict())
        return ok(envelope["data"], pagination=envelope["pagination"])

    @app.route("/api/payroll/stats", methods=["GET"], endpoint="payroll_stats")
    @admin_required
    def stats():
        return ok(service.stats(request.args.get("month")))

    @app.route("/api/payroll/month/<month>", methods=["GET"], endpoint="payroll_month")
    @admin_required
    def month_summary(month: str):
        return ok(service.month_summary(month))

    @app.route("/api/payroll/export", methods=["GET"], endpoint="payroll_export")
    @admin_required
    def export():
        month = request.args.get("month")
        if not month:
            raise ValidationError("Month is required (YYYY-MM)")
        content = service.export_month(month, request.args.get("status"))
        return send_file(
            io.BytesIO(content),
            download_name=f"payroll_{month}.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )

    @app.route("/api/payroll/<int:record_id>", methods=["GET"], endpoint="payroll_get")
    @admin_required
    def get(record_id: int):
        return ok(service.details(record_id))

    @app.route("/api/payroll/<int:record_id>/adjustment", methods=["PUT"], endpoint="payroll_adjust")
    @admin_required
    def add_adjustment(record_id: int):
        body = json_body()
        record = service.add_adjustment(
            record_id,
            adjustment_type=body.get("type"),
            amount=body.get("amount"),
            description=body.get("description"),
            actor_id=current_user_id(),
        )
        return ok(record.to_dict(), "Adjustment added successfully")

    @app.route("/api/payroll/<int:record_id>/approve", methods=["PUT"], endpoint="payroll_approve")
    @admin_required
    def approve(record_id: int):
        record = service.approve(record_id, actor_id=current_user_id())
        return ok(record.to_dict(), "Payroll approved successfully")

    @app.route("/api/payroll/<int:record_id>/revoke", methods=["PUT"], endpoint="payroll_revoke")
    @admin_required
    def revoke(record_id: int):
        record = service.revoke(record_id, actor_id=current_user_id())
        return ok(record.to_dict(), "Payroll approval revoked")

    @app.route("/api/payroll/<int:record_id>/pay", methods=["PUT"], endpoint="payroll_pay")
    @admin_required
    def pay(record_id: int):
        result = service.pay(record_id, actor_id=current_user_id())
        return ok(
            result.record.to_dict(),
            "Payroll marked as paid",
            dispatch=result.dispatch.to_dict() if result.dispatch else None,
        )

    @app.route("/api/payroll/<int:record_id>/cancel", methods=["PUT"], endpoint="payroll_cancel")
    @admin_required
    def cancel(record_id: int):
        body = json_body()
        record = service.cancel(record_id, body.get("remarks"), actor_id=current_user_id())
        return ok(record.to_dict(), "Payroll cancelled")

    @app.route("/api/payroll/bulk-approve/<month>", methods=["POST"], endpoint="payroll_bulk_approve")
    @admin_required
    def bulk_approve(month: str):
        result = bulk.bulk_approve(month, actor_id=current_user_id())
        return ok(result.to_dict(), f"{result.total_succeeded} payroll records approved")

    @app.route("/api/payroll/bulk-revoke/<month>", methods=["POST"], endpoint="payroll_bulk_revoke")
    @admin_required
    def bulk_revoke(month: str):
        result = bulk.bulk_revoke(month, actor_id=current_user_id())
        return ok(result.to_dict(), f"{result.total_succeeded} payroll approvals revoked")

    @app.route("/api/payroll/bulk-pay/<month>", methods=["POST"], endpoint="payroll_bulk_pay")
    @admin_required
    def bulk_pay(month: str):
        result = bulk.bulk_pay_and_generate_payslips(month, actor_id=current_user_id())
        return ok(result.to_dict(), f"{result.total_succeeded} payroll records paid")
