from __future__ import annotations

from dataclasses import dataclass

from .analytics.service import AnalyticsService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .caching.cache import AnalyticsCache, InMemoryCache, NullCache
from .core.constants import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_SECONDS, DEFAULT_MARKING_WINDOW_HOURS
from .database.connection import DatabaseConnection, DBConfig
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    cache: AnalyticsCache

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    analytics_service: AnalyticsService


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    cache: AnalyticsCache,
    cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    marking_window_hours: int = DEFAULT_MARKING_WINDOW_HOURS,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""
    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        cache=cache,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            cache=cache,
            marking_window_hours=marking_window_hours,
        ),
        analytics_service=AnalyticsService(attendance_repo, users_repo, cache, cache_ttl=cache_ttl),
    )


def build_container(
    *,
    db_config: dict,
    cache_enabled: bool = True,
    cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
    marking_window_hours: int = DEFAULT_MARKING_WINDOW_HOURS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        cache=InMemoryCache(maxsize=cache_max_entries) if cache_enabled else NullCache(),
        cache_ttl=cache_ttl,
        marking_window_hours=marking_window_hours,
    )
