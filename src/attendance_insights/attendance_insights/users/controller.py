from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, request, session

from ..common.http import (
    current_user_id,
    fail,
    json_body,
    leader_scope,
    login_required,
    ok,
    roles_required,
)
from ..common.validators import parse_day_group, parse_pagination
from ..core.enums import DayGroup, Role, UserStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import UserFilter

logger = logging.getLogger(__name__)


def _parse_role(value: Optional[str]) -> Optional[Role]:
    if not value:
        return None
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}") from None


def _parse_status(value: Optional[str]) -> Optional[UserStatus]:
    if not value:
        return None
    try:
        return UserStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}") from None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["day_group"] = s_user.day_group.value
        return ok(s_user.to_dict())

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(None, message="Logged out")

    @app.route("/api/auth/me", endpoint="me")
    @login_required
    def me():
        user = container.user_service.get_user(current_user_id())
        return ok(user.to_public_dict())

    @app.route("/api/auth/password", methods=["PUT"], endpoint="change_password")
    @login_required
    def change_password():
        body = json_body()
        container.user_service.change_password(
            current_user_id(),
            old_password=body.get("currentPassword", ""),
            new_password=body.get("newPassword", ""),
        )
        return ok(None, message="Password updated")

    @app.route("/api/users", endpoint="list_users")
    @roles_required(Role.ADMIN, Role.LEADER)
    def list_users():
        args = request.args
        page, limit = parse_pagination(args.get("page"), args.get("limit"))
        user_filter = UserFilter(
            role=_parse_role(args.get("role")),
            day_group=parse_day_group(args.get("dayGroup"), allow_admin_day=True),
            status=_parse_status(args.get("status")),
            search=(args.get("search") or "").strip() or None,
        )
        users, total = container.user_service.list_users(
            user_filter, page=page, limit=limit, scope_day_group=leader_scope()
        )
        return ok(
            [u.to_public_dict() for u in users],
            pagination={"total": total, "page": page, "pages": -(-total // limit)},
        )

    @app.route("/api/users/<int:user_id>", endpoint="get_user")
    @roles_required(Role.ADMIN, Role.LEADER)
    def get_user(user_id: int):
        user = container.user_service.get_user(user_id, scope_day_group=leader_scope())
        return ok(user.to_public_dict())

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @roles_required(Role.ADMIN)
    def create_user():
        body = json_body()
        role = _parse_role(body.get("role")) or Role.MEMBER
        user = container.user_service.create_user(
            actor_id=current_user_id(),
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            role=role,
            day_group=parse_day_group(body.get("dayGroup"), allow_admin_day=role == Role.ADMIN),
            phone_number=body.get("phoneNumber", ""),
            department=body.get("department", ""),
        )
        return ok(user.to_public_dict(), status=201)

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="update_user")
    @roles_required(Role.ADMIN)
    def update_user(user_id: int):
        body = json_body()
        day_group: Optional[DayGroup] = parse_day_group(body.get("dayGroup"), allow_admin_day=True)
        user = container.user_service.update_user(
            user_id,
            actor_id=current_user_id(),
            name=body.get("name"),
            phone_number=body.get("phoneNumber"),
            department=body.get("department"),
            day_group=day_group,
        )
        return ok(user.to_public_dict())

    @app.route("/api/users/<int:user_id>/status", methods=["PATCH"], endpoint="update_user_status")
    @roles_required(Role.ADMIN)
    def update_user_status(user_id: int):
        status = _parse_status(json_body().get("status"))
        if status is None:
            return fail("status is required", 400)
        user = container.user_service.set_status(user_id, actor_id=current_user_id(), status=status)
        return ok(user.to_public_dict())
