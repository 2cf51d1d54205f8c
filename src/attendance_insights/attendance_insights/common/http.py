"""JSON helpers shared by the controllers.

Responses use the ``{"success": bool, "data" | "message": ...}`` envelope.
Authentication is session based: login stores ``user_id``, ``name``, ``role``
and ``day_group`` in the Flask session.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from .validators import parse_day_group, require_iso_date
from ..core.enums import DayGroup, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (UpstreamError, 502),
)


def ok(data: Any = None, status: int = 200, **extra: Any):
    body = {"success": True, "data": data}
    body.update(extra)
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def status_for(exc: DomainError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc)
        return fail(str(exc), status)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return fail(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = str(exc) if app.config.get("DEBUG") else "Server Error"
        return fail(message, 500)


def current_role() -> Optional[Role]:
    role = session.get("role")
    return Role(role) if role else None


def current_user_id() -> int:
    return int(session["user_id"])


def current_day_group() -> DayGroup:
    return DayGroup(session["day_group"])


def leader_scope() -> Optional[DayGroup]:
    """Day group a leader is restricted to; ``None`` for admins."""
    return current_day_group() if current_role() == Role.LEADER else None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Not authorized to access this route", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Not authorized to access this route", 401)
            role = current_role()
            if role not in roles:
                return fail(f"Role {role.value if role else None} is not authorized to access this route", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def query_date(name: str, *, required: bool = True) -> Optional[date]:
    value = request.args.get(name)
    if not value and not required:
        return None
    return require_iso_date(value, name)


def scoped_day_group(value: Optional[str]) -> Optional[DayGroup]:
    """Requested ``dayGroup`` filter; leaders get their own group and may not ask for another."""
    requested = parse_day_group(value)
    scope = leader_scope()
    if scope is None:
        return requested
    if requested is not None and requested != scope:
        raise AuthorizationError("Access restricted to own day group")
    return scope
