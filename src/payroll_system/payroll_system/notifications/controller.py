from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_positive_int
from ..common.web import current_employee_id, login_required, ok
from ..container import Container
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT, MAX_PAGE_SIZE


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_required
    def list_notifications():
        limit = parse_positive_int(request.args.get("limit"), "limit", DEFAULT_NOTIFICATION_LIMIT)
        return ok(service.list_for_employee(current_employee_id(), min(limit, MAX_PAGE_SIZE)))

    @app.route("/api/notifications/read-all", methods=["PUT"], endpoint="notifications_read_all")
    @login_required
    def read_all():
        count = service.mark_all_read(current_employee_id())
        return ok({"modified_count": count}, "All notifications marked as read")

    @app.route("/api/notifications/<int:notification_id>/read", methods=["PUT"], endpoint="notifications_read")
    @login_required
    def read(notification_id: int):
        service.mark_read(current_employee_id(), notification_id)
        return ok(message="Notification marked as read")
