from __future__ import annotations

from datetime import date, datetime

import pytest

from src.attendance_insights.attendance_insights.attendance.model import AttendanceMark
from src.attendance_insights.attendance_insights.attendance.service import EXPORT_COLUMNS, AttendanceService
from src.attendance_insights.attendance_insights.core.enums import AttendanceStatus, DayGroup
from src.attendance_insights.attendance_insights.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)

from tests.fakes import InMemoryAttendanceRepository, rec

PRESENT = AttendanceStatus.PRESENT
ABSENT = AttendanceStatus.ABSENT


@pytest.fixture
def service(attendance_repo, users_repo, cache, fixed_now):
    return AttendanceService(attendance_repo, users_repo, cache=cache, clock=lambda: fixed_now)


def _mark(service, work_date, *marks):
    return service.mark_attendance(
        leader_id=2,
        leader_day_group=DayGroup.MONDAY,
        work_date=work_date,
        marks=[AttendanceMark(member_id=m, status=s) for m, s in marks],
    )


def test_leader_marks_own_group_today(service, attendance_repo, cache, fixed_now):
    cache.set("trends:x", {"stale": True}, ttl_seconds=60)

    written = _mark(service, fixed_now.date(), (3, PRESENT), (4, ABSENT))

    assert written == 2
    stored = attendance_repo.all()
    assert [(r.member_id, r.status, r.marked_by) for r in stored] == [(3, PRESENT, 2), (4, ABSENT, 2)]
    assert cache.get("trends:x") is None


def test_marking_again_replaces_the_status(service, attendance_repo, fixed_now):
    _mark(service, fixed_now.date(), (3, PRESENT))
    _mark(service, fixed_now.date(), (3, ABSENT))

    stored = attendance_repo.all()
    assert len(stored) == 1
    assert stored[0].status == ABSENT


@pytest.mark.parametrize(
    "work_date",
    [date(2024, 1, 6), date(2024, 1, 11), date(2024, 1, 9)],
    ids=["weekend", "future", "outside-window"],
)
def test_marking_date_rules(service, work_date):
    with pytest.raises(ValidationError):
        _mark(service, work_date, (3, PRESENT))


def test_wider_window_allows_yesterday(attendance_repo, users_repo, fixed_now):
    svc = AttendanceService(attendance_repo, users_repo, marking_window_hours=48, clock=lambda: fixed_now)
    assert svc.mark_attendance(
        leader_id=2,
        leader_day_group=DayGroup.MONDAY,
        work_date=date(2024, 1, 9),
        marks=[AttendanceMark(member_id=3, status=PRESENT)],
    ) == 1


def test_can_mark_window_boundary(service):
    assert service.can_mark(date(2024, 1, 9), now=datetime(2024, 1, 10, 0, 0))
    assert not service.can_mark(date(2024, 1, 9), now=datetime(2024, 1, 10, 0, 1))


def test_marks_are_limited_to_active_members_of_the_leaders_group(service, fixed_now):
    with pytest.raises(AuthorizationError):
        _mark(service, fixed_now.date(), (5, PRESENT))
    with pytest.raises(AuthorizationError):
        _mark(service, fixed_now.date(), (6, PRESENT))


def test_invalid_marks(service, fixed_now):
    with pytest.raises(ValidationError):
        _mark(service, fixed_now.date(), (3, AttendanceStatus.SYSTEM_ABSENT))
    with pytest.raises(ValidationError):
        _mark(service, fixed_now.date(), (3, PRESENT), (3, ABSENT))
    with pytest.raises(ValidationError):
        _mark(service, fixed_now.date())


def test_override_records_history(service, attendance_repo, cache):
    _mark(service, date(2024, 1, 10), (3, ABSENT))
    attendance_id = attendance_repo.all()[0].attendance_id
    cache.set("k", 1, ttl_seconds=60)

    updated = service.override_attendance(attendance_id, admin_id=1, status=PRESENT, reason="Doctor's note provided")

    assert updated.status == PRESENT
    history = service.override_history(attendance_id)
    assert [(h.admin_id, h.previous_status) for h in history] == [(1, ABSENT)]
    assert cache.get("k") is None


def test_override_validation(service, attendance_repo):
    _mark(service, date(2024, 1, 10), (3, ABSENT))
    attendance_id = attendance_repo.all()[0].attendance_id

    with pytest.raises(ValidationError):
        service.override_attendance(attendance_id, admin_id=1, status=PRESENT, reason="too short")
    with pytest.raises(NotFoundError):
        service.override_attendance(999, admin_id=1, status=PRESENT, reason="A sufficiently long reason")
    with pytest.raises(NotFoundError):
        service.override_history(999)


def test_automatic_absence_marks_only_unmarked_active_members(service, attendance_repo):
    day = date(2024, 1, 10)
    _mark(service, day, (3, PRESENT))

    assert service.process_automatic_absence(day) == 2
    by_member = {r.member_id: r for r in attendance_repo.all()}
    assert by_member[3].status == PRESENT
    assert by_member[4].status == AttendanceStatus.SYSTEM_ABSENT
    assert by_member[5].status == AttendanceStatus.SYSTEM_ABSENT
    assert by_member[4].marked_by is None
    assert 6 not in by_member

    assert service.process_automatic_absence(day) == 0


def test_automatic_absence_defaults_to_today_and_skips_weekends(service, attendance_repo):
    assert service.process_automatic_absence() == 3
    assert {r.work_date for r in attendance_repo.all()} == {date(2024, 1, 10)}

    with pytest.raises(ValidationError):
        service.process_automatic_absence(date(2024, 1, 7))


class LeaderMarksDuringRead(InMemoryAttendanceRepository):
    """Stores a leader's mark right after the existing records were read."""

    def fetch_for_members(self, member_ids, start_date, end_date):
        found = super().fetch_for_members(member_ids, start_date, end_date)
        self.upsert_marks(work_date=start_date, marks=[AttendanceMark(member_id=3, status=PRESENT)], marked_by=2)
        return found


def test_automatic_absence_never_replaces_a_late_leader_mark(users_repo, fixed_now):
    repo = LeaderMarksDuringRead(users=users_repo)
    svc = AttendanceService(repo, users_repo, clock=lambda: fixed_now)

    assert svc.process_automatic_absence(date(2024, 3, 4)) == 2

    by_member = {r.member_id: r for r in repo.all()}
    assert by_member[3].status == PRESENT
    assert by_member[3].marked_by == 2
    assert by_member[4].status == AttendanceStatus.SYSTEM_ABSENT


def test_get_attendance_is_newest_first_and_paginated(users_repo, attendance_repo, fixed_now):
    for r in [rec(3, "2024-01-08"), rec(3, "2024-01-09", "A"), rec(5, "2024-01-10")]:
        attendance_repo.upsert_marks(work_date=r.work_date, marks=[AttendanceMark(r.member_id, r.status)], marked_by=2)
    svc = AttendanceService(attendance_repo, users_repo, clock=lambda: fixed_now)

    page = svc.get_attendance(page=1, limit=2)
    assert [r.work_date.day for r in page.records] == [10, 9]
    assert (page.total, page.pages) == (3, 2)

    monday_only = svc.get_attendance(day_group=DayGroup.MONDAY)
    assert {r.member_id for r in monday_only.records} == {3}

    with pytest.raises(ValidationError):
        svc.get_attendance(start_date=date(2024, 1, 10), end_date=date(2024, 1, 1))


def test_export_csv(service, fixed_now):
    _mark(service, fixed_now.date(), (3, PRESENT))
    service.process_automatic_absence(fixed_now.date())

    lines = service.export_csv(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)).splitlines()

    assert lines[0] == ",".join(EXPORT_COLUMNS)
    assert len(lines) == 4
    assert lines[1].startswith("2024-01-10,Ada,user3@example.com,Monday,present,Leader Mon,")
    assert "system-absent,System" in lines[2]


def test_export_with_no_rows_still_has_header(service):
    csv_text = service.export_csv(start_date=date(2024, 1, 1), end_date=date(2024, 1, 2))
    assert csv_text.splitlines() == [",".join(EXPORT_COLUMNS)]
