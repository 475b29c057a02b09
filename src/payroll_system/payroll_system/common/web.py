from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConcurrencyConflictError,
    DomainError,
    ExternalServiceError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first: IllegalTransitionError is caught through InvalidStateError.
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConcurrencyConflictError, 409),
    (InvalidStateError, 409),
    (ExternalServiceError, 502),
)


def status_for(error: DomainError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return code
    return 400


def ok(data: Any = None, message: Optional[str] = None, status: int = 200, **extra: Any):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int, error: Optional[str] = None):
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", 401)
        if session.get("role") != Role.ADMIN.value:
            return fail("Admin access required", 403, "AuthorizationError")
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_employee_id() -> int:
    """Employee id bound to the session; falls back to the user id."""
    value = session.get("employee_id", session.get("user_id"))
    if value is None:
        raise AuthorizationError("No employee profile bound to this session")
    return int(value)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.warning("%s %s -> %s: %s", request.method, request.path, status, e)
        return fail(str(e), status, type(e).__name__)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", 500)
