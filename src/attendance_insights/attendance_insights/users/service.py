from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.logging_config import audit_logger
from ..common.validators import (
    require_email,
    require_min_length,
    require_non_empty,
    require_phone,
)
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import DayGroup, Role, UserStatus
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User, UserFilter
from .repository import UserRepository

logger = logging.getLogger(__name__)
audit = audit_logger()


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    role: Role
    day_group: DayGroup

    def to_dict(self) -> dict:
        return {"id": self.user_id, "name": self.name, "role": self.role.value, "day_group": self.day_group.value}


def resolve_day_group(role: Role, day_group: Optional[DayGroup]) -> DayGroup:
    """Admins belong to ``adminDay``; everyone else needs a weekday group."""
    if role == Role.ADMIN:
        if day_group not in (None, DayGroup.ADMIN_DAY):
            raise ValidationError("Admins must use the adminDay group")
        return DayGroup.ADMIN_DAY
    if day_group is None:
        raise ValidationError("Day group is required")
    if day_group == DayGroup.ADMIN_DAY:
        raise ValidationError("adminDay is reserved for admins")
    return day_group


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            logger.warning("Failed login for %s", email)
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.warning("Failed login for %s", email)
            raise AuthenticationError("Invalid credentials")

        audit.info("login user_id=%s role=%s", user.user_id, user.role.value)
        return SessionUser(user_id=user.user_id, name=user.name, role=user.role, day_group=user.day_group)


class UserService:
    """Use case: manage users (admin) and look them up (admin / leader)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_user(
        self,
        *,
        actor_id: int,
        name: str,
        email: str,
        password: str,
        role: Role,
        day_group: Optional[DayGroup],
        phone_number: str = "",
        department: str = "",
    ) -> User:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if phone_number:
            phone_number = require_phone(phone_number)
        day_group = resolve_day_group(role, day_group)

        if self._users.get_by_email(email):
            raise ValidationError("A user with this email already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            day_group=day_group,
            phone_number=phone_number,
            department=(department or "").strip(),
        )
        audit.info("user created user_id=%s role=%s by=%s", user_id, role.value, actor_id)
        return self.get_user(user_id)

    def update_user(
        self,
        user_id: int,
        *,
        actor_id: int,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
        department: Optional[str] = None,
        day_group: Optional[DayGroup] = None,
    ) -> User:
        user = self.get_user(user_id)

        new_name = require_non_empty(name, "Name") if name is not None else user.name
        new_phone = require_phone(phone_number) if phone_number else user.phone_number
        new_department = department.strip() if department is not None else user.department
        new_day_group = resolve_day_group(user.role, day_group) if day_group is not None else user.day_group

        self._users.update_user(
            user_id,
            name=new_name,
            phone_number=new_phone,
            department=new_department,
            day_group=new_day_group,
        )
        audit.info("user updated user_id=%s by=%s", user_id, actor_id)
        return self.get_user(user_id)

    def set_status(self, user_id: int, *, actor_id: int, status: UserStatus) -> User:
        if user_id == actor_id:
            raise ValidationError("You cannot change your own status")
        self.get_user(user_id)
        self._users.set_status(user_id, status=status)
        audit.info("user status user_id=%s status=%s by=%s", user_id, status.value, actor_id)
        return self.get_user(user_id)

    def change_password(self, user_id: int, *, old_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        try:
            ok = check_password_hash(user.password_hash, old_password or "")
        except ValueError:
            ok = False
        if not ok:
            raise AuthenticationError("Current password is incorrect")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        self._users.update_password(user_id, password_hash=generate_password_hash(new_password))
        audit.info("password changed user_id=%s", user_id)

    def get_user(self, user_id: int, *, scope_day_group: Optional[DayGroup] = None) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User not found with id of {user_id}")
        if scope_day_group is not None and user.day_group != scope_day_group:
            raise AuthorizationError("Not authorized to access this user")
        return user

    def list_users(
        self,
        user_filter: UserFilter,
        *,
        page: int,
        limit: int,
        scope_day_group: Optional[DayGroup] = None,
    ) -> tuple[Sequence[User], int]:
        """Leaders pass ``scope_day_group`` and only ever see their own group."""
        if scope_day_group is not None:
            if user_filter.day_group not in (None, scope_day_group):
                raise AuthorizationError("Leaders can only view their own day group")
            user_filter = UserFilter(
                role=user_filter.role,
                day_group=scope_day_group,
                status=user_filter.status,
                search=user_filter.search,
            )
        return self._users.list_users(user_filter, page=page, limit=limit)
