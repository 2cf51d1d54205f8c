from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..caching.cache import AnalyticsCache, NullCache, fingerprint
from ..common.datetime_utils import now_local
from ..common.validators import require_date_range
from ..core.constants import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_RADAR_TIMEFRAME_DAYS, MAX_TIMEFRAME_DAYS
from ..core.enums import WORKDAY_GROUPS, DayGroup, Role
from ..core.exceptions import AuthorizationError, NotFoundError, UpstreamError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from . import report
from .period_report import build_period_report
from .scoring.base import RiskScorer

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Fetches members and records, runs the pure engine, and caches the result.

    ``scope_day_group`` is how leaders are limited to their own group: when it is
    set, any other requested group is refused.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        cache: Optional[AnalyticsCache] = None,
        *,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
        scorer: Optional[RiskScorer] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._cache = cache if cache is not None else NullCache()
        self._cache_ttl = int(cache_ttl)
        self._scorer = scorer
        self._clock = clock

    def get_trends(
        self,
        *,
        start: date,
        end: date,
        day_group: Optional[DayGroup] = None,
        scope_day_group: Optional[DayGroup] = None,
    ) -> dict:
        day_group = _scoped(day_group, scope_day_group)
        require_date_range(start, end)

        def compute() -> dict:
            members, records = self._load(start, end, day_group)
            return report.compute_trends(records, members, start=start, end=end, day_group=day_group)

        return self._cached("trends", compute, start=start, end=end, day_group=day_group)

    def get_predictions(
        self,
        *,
        start: date,
        end: date,
        day_group: Optional[DayGroup] = None,
        scope_day_group: Optional[DayGroup] = None,
    ) -> dict:
        day_group = _scoped(day_group, scope_day_group)
        require_date_range(start, end)

        def compute() -> dict:
            members, records = self._load(start, end, day_group)
            return report.compute_predictions(records, members, scorer=self._scorer)

        return self._cached("predictions", compute, start=start, end=end, day_group=day_group)

    def get_heatmap(
        self,
        *,
        start: date,
        end: date,
        day_group: Optional[DayGroup] = None,
        scope_day_group: Optional[DayGroup] = None,
    ) -> dict:
        day_group = _scoped(day_group, scope_day_group)
        require_date_range(start, end)

        def compute() -> dict:
            members, records = self._load(start, end, day_group)
            return report.compute_heatmap(records, members)

        return self._cached("heatmap", compute, start=start, end=end, day_group=day_group)

    def get_timeline(
        self,
        *,
        start: date,
        end: date,
        day_group: Optional[DayGroup] = None,
        scope_day_group: Optional[DayGroup] = None,
    ) -> list[dict]:
        day_group = _scoped(day_group, scope_day_group)
        require_date_range(start, end)

        def compute() -> list[dict]:
            _, records = self._load(start, end, day_group)
            return report.compute_timeline(records)

        return self._cached("timeline", compute, start=start, end=end, day_group=day_group)

    def get_member_radar(
        self,
        member_id: int,
        *,
        timeframe: int = DEFAULT_RADAR_TIMEFRAME_DAYS,
        scope_day_group: Optional[DayGroup] = None,
    ) -> dict:
        _require_timeframe(timeframe)
        member = self._users.get_by_id(member_id)
        if not member or member.role != Role.MEMBER:
            raise NotFoundError("Member not found")
        if scope_day_group is not None and member.day_group != scope_day_group:
            raise AuthorizationError("Access restricted to own day group")

        end = self._clock().date()
        start = end - timedelta(days=timeframe)

        def compute() -> dict:
            records = self._fetch([member.user_id], start, end)
            return report.compute_radar(records)

        return self._cached("radar", compute, member_id=member_id, start=start, end=end)

    def get_trend_comparison(
        self,
        *,
        day_groups: Optional[Iterable[DayGroup]] = None,
        timeframe: int = DEFAULT_RADAR_TIMEFRAME_DAYS,
        scope_day_group: Optional[DayGroup] = None,
    ) -> dict:
        _require_timeframe(timeframe)
        default_groups = (scope_day_group,) if scope_day_group is not None else WORKDAY_GROUPS
        groups = list(dict.fromkeys(day_groups or default_groups))
        if scope_day_group is not None and any(g != scope_day_group for g in groups):
            raise AuthorizationError("Access restricted to own day group")

        end = self._clock().date()
        start = end - timedelta(days=timeframe)

        def compute() -> dict:
            by_group: dict[str, Sequence[AttendanceRecord]] = {}
            for group in groups:
                _, records = self._load(start, end, group)
                by_group[group.value] = records
            return report.compute_trend_comparison(by_group)

        return self._cached(
            "trend_comparison",
            compute,
            day_groups=[g.value for g in groups],
            start=start,
            end=end,
        )

    def get_period_report(
        self,
        *,
        start: date,
        end: date,
        day_group: Optional[DayGroup] = None,
        scope_day_group: Optional[DayGroup] = None,
    ) -> dict:
        day_group = _scoped(day_group, scope_day_group)
        require_date_range(start, end)

        def compute() -> dict:
            members, records = self._load(start, end, day_group)
            return build_period_report(records, members, start=start, end=end, day_group=day_group)

        return self._cached("period_report", compute, start=start, end=end, day_group=day_group)

    def _load(self, start: date, end: date, day_group: Optional[DayGroup]) -> tuple[Sequence[User], Sequence[AttendanceRecord]]:
        try:
            members = self._users.list_members(day_group=day_group)
        except Exception as exc:
            logger.exception("Failed to load members (day_group=%s)", day_group)
            raise UpstreamError("Failed to load members") from exc
        return members, self._fetch([m.user_id for m in members], start, end)

    def _fetch(self, member_ids: Sequence[int], start: date, end: date) -> Sequence[AttendanceRecord]:
        if not member_ids:
            return []
        try:
            return self._attendance.fetch_for_members(member_ids, start, end)
        except Exception as exc:
            logger.exception("Failed to load attendance records (%s..%s)", start, end)
            raise UpstreamError("Failed to load attendance records") from exc

    def _cached(self, operation: str, compute: Callable[[], object], **params):
        key = fingerprint(operation, **params)
        hit = self._cache.get(key)
        if hit is not None:
            logger.debug("Analytics cache hit %s", key)
            return hit

        result = compute()
        self._cache.set(key, result, ttl_seconds=self._cache_ttl)
        return result


def _scoped(day_group: Optional[DayGroup], scope_day_group: Optional[DayGroup]) -> Optional[DayGroup]:
    if scope_day_group is None:
        return day_group
    if day_group is not None and day_group != scope_day_group:
        raise AuthorizationError("Access restricted to own day group")
    return scope_day_group


def _require_timeframe(timeframe: int) -> None:
    if not 1 <= int(timeframe) <= MAX_TIMEFRAME_DAYS:
        raise ValidationError(f"timeframe must be between 1 and {MAX_TIMEFRAME_DAYS} days")
