from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import DayGroup, Role, UserStatus
from .model import User, UserFilter


class UserRepository(Protocol):
    """Repository interface for users.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_users(self, user_filter: UserFilter, *, page: int, limit: int) -> tuple[Sequence[User], int]:
        """Return one page of users (ordered by name) and the total match count."""

        raise NotImplementedError

    def list_members(
        self,
        *,
        day_group: Optional[DayGroup] = None,
        status: Optional[UserStatus] = UserStatus.ACTIVE,
    ) -> Sequence[User]:
        """Users with role ``member``, ordered by name."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        day_group: DayGroup,
        phone_number: str = "",
        department: str = "",
    ) -> int:
        raise NotImplementedError

    def update_user(
        self,
        user_id: int,
        *,
        name: str,
        phone_number: str,
        department: str,
        day_group: DayGroup,
    ) -> bool:
        raise NotImplementedError

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        raise NotImplementedError

    def update_password(self, user_id: int, *, password_hash: str) -> bool:
        raise NotImplementedError
