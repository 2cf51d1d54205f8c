from __future__ import annotations

from datetime import datetime

import pytest

from src.attendance_insights.attendance_insights.caching.cache import InMemoryCache
from src.attendance_insights.attendance_insights.core.enums import DayGroup, Role, UserStatus

from tests.fakes import InMemoryAttendanceRepository, InMemoryUserRepository, make_user


@pytest.fixture
def fixed_now() -> datetime:
    # Wednesday
    return datetime(2024, 1, 10, 10, 0, 0)


@pytest.fixture
def people():
    return [
        make_user(1, "Admin", role=Role.ADMIN, day_group=DayGroup.ADMIN_DAY, email="admin@example.com"),
        make_user(2, "Leader Mon", role=Role.LEADER, day_group=DayGroup.MONDAY, email="leader@example.com"),
        make_user(3, "Ada", day_group=DayGroup.MONDAY),
        make_user(4, "Ben", day_group=DayGroup.MONDAY),
        make_user(5, "Cy", day_group=DayGroup.TUESDAY),
        make_user(6, "Dee", day_group=DayGroup.MONDAY, status=UserStatus.SUSPENDED),
    ]


@pytest.fixture
def users_repo(people) -> InMemoryUserRepository:
    return InMemoryUserRepository(people)


@pytest.fixture
def attendance_repo(users_repo) -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository(users=users_repo)


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()
