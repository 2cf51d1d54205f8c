from __future__ import annotations

import pytest

from src.attendance_insights.attendance_insights.core.enums import DayGroup, Role, UserStatus
from src.attendance_insights.attendance_insights.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.attendance_insights.attendance_insights.users.model import UserFilter
from src.attendance_insights.attendance_insights.users.service import AuthService, UserService

from tests.fakes import DEFAULT_PASSWORD


@pytest.fixture
def auth(users_repo):
    return AuthService(users_repo)


@pytest.fixture
def users(users_repo):
    return UserService(users_repo)


def test_authenticate_success(auth):
    s_user = auth.authenticate("Leader@Example.com ", DEFAULT_PASSWORD)

    assert s_user.user_id == 2
    assert s_user.role == Role.LEADER
    assert s_user.to_dict() == {"id": 2, "name": "Leader Mon", "role": "leader", "day_group": "Monday"}


@pytest.mark.parametrize(
    "email, password",
    [
        ("leader@example.com", "wrong-password"),
        ("nobody@example.com", DEFAULT_PASSWORD),
        ("user6@example.com", DEFAULT_PASSWORD),
    ],
    ids=["wrong-password", "unknown-email", "suspended"],
)
def test_authenticate_failures(auth, email, password):
    with pytest.raises(AuthenticationError):
        auth.authenticate(email, password)


def test_create_member(users, auth):
    user = users.create_user(
        actor_id=1,
        name=" Eve ",
        email="Eve@Example.com",
        password="longenough",
        role=Role.MEMBER,
        day_group=DayGroup.FRIDAY,
        phone_number="+1 555-0100",
    )

    assert user.name == "Eve"
    assert user.email == "eve@example.com"
    assert user.status == UserStatus.ACTIVE
    assert auth.authenticate("eve@example.com", "longenough").user_id == user.user_id


def test_admins_always_get_admin_day(users):
    admin = users.create_user(
        actor_id=1, name="Root", email="root@example.com", password="longenough", role=Role.ADMIN, day_group=None
    )
    assert admin.day_group == DayGroup.ADMIN_DAY


@pytest.mark.parametrize(
    "overrides",
    [
        {"password": "short"},
        {"email": "not-an-email"},
        {"email": "user3@example.com"},
        {"day_group": DayGroup.ADMIN_DAY},
        {"day_group": None},
        {"name": "  "},
        {"phone_number": "call me"},
    ],
    ids=["short-password", "bad-email", "duplicate-email", "admin-day", "no-group", "blank-name", "bad-phone"],
)
def test_create_user_validation(users, overrides):
    fields = {
        "actor_id": 1,
        "name": "Eve",
        "email": "eve@example.com",
        "password": "longenough",
        "role": Role.MEMBER,
        "day_group": DayGroup.MONDAY,
    }
    fields.update(overrides)
    with pytest.raises(ValidationError):
        users.create_user(**fields)


def test_update_user_keeps_unspecified_fields(users):
    updated = users.update_user(3, actor_id=1, department="Choir", day_group=DayGroup.TUESDAY)

    assert updated.name == "Ada"
    assert updated.department == "Choir"
    assert updated.day_group == DayGroup.TUESDAY

    with pytest.raises(ValidationError):
        users.update_user(3, actor_id=1, day_group=DayGroup.ADMIN_DAY)


def test_set_status(users, auth):
    suspended = users.set_status(3, actor_id=1, status=UserStatus.SUSPENDED)
    assert suspended.status == UserStatus.SUSPENDED

    with pytest.raises(AuthenticationError):
        auth.authenticate("user3@example.com", DEFAULT_PASSWORD)
    with pytest.raises(ValidationError):
        users.set_status(1, actor_id=1, status=UserStatus.SUSPENDED)
    with pytest.raises(NotFoundError):
        users.set_status(42, actor_id=1, status=UserStatus.ACTIVE)


def test_change_password(users, auth):
    with pytest.raises(AuthenticationError):
        users.change_password(3, old_password="nope", new_password="brand-new-pass")
    with pytest.raises(ValidationError):
        users.change_password(3, old_password=DEFAULT_PASSWORD, new_password="short")

    users.change_password(3, old_password=DEFAULT_PASSWORD, new_password="brand-new-pass")
    assert auth.authenticate("user3@example.com", "brand-new-pass").user_id == 3


def test_leaders_only_see_their_own_group(users):
    page, total = users.list_users(UserFilter(role=Role.MEMBER), page=1, limit=10, scope_day_group=DayGroup.MONDAY)
    assert [u.name for u in page] == ["Ada", "Ben", "Dee"]
    assert total == 3

    with pytest.raises(AuthorizationError):
        users.list_users(UserFilter(day_group=DayGroup.TUESDAY), page=1, limit=10, scope_day_group=DayGroup.MONDAY)

    assert users.get_user(3, scope_day_group=DayGroup.MONDAY).name == "Ada"
    with pytest.raises(AuthorizationError):
        users.get_user(5, scope_day_group=DayGroup.MONDAY)


def test_admin_listing_filters_and_pages(users):
    page, total = users.list_users(UserFilter(status=UserStatus.ACTIVE), page=2, limit=2)
    assert total == 5
    assert [u.name for u in page] == ["Ben", "Cy"]

    found, _ = users.list_users(UserFilter(search="lead"), page=1, limit=10)
    assert [u.user_id for u in found] == [2]
