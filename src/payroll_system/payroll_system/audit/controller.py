from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_positive_int
from ..common.web import admin_required, ok
from ..container import Container
from ..core.constants import DEFAULT_AUDIT_LIMIT


def register(app: Flask, container: Container) -> None:
    trail = container.audit_trail

    @app.route("/api/payroll/<int:record_id>/audit", methods=["GET"], endpoint="audit_payroll_history")
    @admin_required
    def payroll_history(record_id: int):
        limit = parse_positive_int(request.args.get("limit"), "limit", DEFAULT_AUDIT_LIMIT)
        return ok([e.to_dict() for e in trail.history(record_id, limit)])

    @app.route("/api/audit", methods=["GET"], endpoint="audit_recent")
    @admin_required
    def recent():
        actor = request.args.get("performed_by")
        entries = trail.recent(
            action=request.args.get("action"),
            actor_id=parse_positive_int(actor, "performed_by", 0) if actor else None,
            limit=parse_positive_int(request.args.get("limit"), "limit", DEFAULT_AUDIT_LIMIT),
        )
        return ok([e.to_dict() for e in entries])
