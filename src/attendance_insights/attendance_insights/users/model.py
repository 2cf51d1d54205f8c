from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import DayGroup, Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: a user. Members are users with ``role == Role.MEMBER``.

    Plain data object (no database access code).
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    day_group: DayGroup
    phone_number: str = ""
    department: str = ""
    status: UserStatus = UserStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def to_public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "phone_number": self.phone_number,
            "role": self.role.value,
            "day_group": self.day_group.value,
            "department": self.department,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class UserFilter:
    role: Optional[Role] = None
    day_group: Optional[DayGroup] = None
    status: Optional[UserStatus] = None
    search: Optional[str] = None
