from __future__ import annotations

import pytest

from src.attendance_insights.attendance_insights.analytics.controller import _timeframe
from src.attendance_insights.attendance_insights.container import wire
from src.attendance_insights.attendance_insights.core.exceptions import ValidationError
from src.attendance_insights.attendance_insights.main import create_app

from tests.fakes import DEFAULT_PASSWORD, InMemoryAttendanceRepository, workday_series


@pytest.fixture
def records():
    return workday_series(3, "2024-01-01", "PPAPP") + workday_series(5, "2024-01-01", "AAAAA")


@pytest.fixture
def app(monkeypatch, users_repo, cache, records):
    monkeypatch.setenv("APP_ENV", "testing")
    attendance_repo = InMemoryAttendanceRepository(records, users=users_repo)
    container = wire(users_repo=users_repo, attendance_repo=attendance_repo, cache=cache)
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email):
    resp = client.post("/api/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def test_health(client):
    assert client.get("/health").get_json() == {"success": True, "data": {"status": "ok"}}


def test_login_me_logout(client):
    data = login(client, "leader@example.com")
    assert data["role"] == "leader"

    me = client.get("/api/auth/me").get_json()
    assert me["data"]["email"] == "leader@example.com"

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401


def test_bad_credentials(client):
    resp = client.post("/api/auth/login", json={"email": "leader@example.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Invalid credentials"}


def test_analytics_requires_login_and_role(client):
    url = "/api/attendance/analytics/trends?startDate=2024-01-01&endDate=2024-01-31"
    assert client.get(url).status_code == 401

    login(client, "user3@example.com")
    assert client.get(url).status_code == 403


def test_admin_trends(client):
    login(client, "admin@example.com")

    resp = client.get("/api/attendance/analytics/trends?startDate=2024-01-01&endDate=2024-01-31")

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["summary"]["total_members"] == 3
    assert [m["member_id"] for m in body["data"]["stability_metrics"]] == [3, 4, 5]


def test_query_validation(client):
    login(client, "admin@example.com")

    missing = client.get("/api/attendance/analytics/predictions?startDate=2024-01-01")
    assert missing.status_code == 400
    assert missing.get_json()["message"] == "endDate is required"

    inverted = client.get("/api/attendance/visualizations/heatmap?startDate=2024-02-01&endDate=2024-01-01")
    assert inverted.status_code == 400

    bad_group = client.get("/api/attendance/analytics/detailed?startDate=2024-01-01&endDate=2024-01-31&dayGroup=Sunday")
    assert bad_group.status_code == 400


def test_leader_is_limited_to_own_group(client):
    login(client, "leader@example.com")

    other = client.get("/api/attendance/visualizations/timeline?startDate=2024-01-01&endDate=2024-01-31&dayGroup=Tuesday")
    assert other.status_code == 403

    own = client.get("/api/attendance/visualizations/heatmap?startDate=2024-01-01&endDate=2024-01-31")
    assert own.get_json()["data"]["members"] == ["Ada", "Ben"]

    assert client.get("/api/attendance/visualizations/radar/5").status_code == 403
    assert client.get("/api/users/5").status_code == 403


def test_predictions_flag_the_absent_member(client):
    login(client, "admin@example.com")

    data = client.get("/api/attendance/analytics/predictions?startDate=2024-01-01&endDate=2024-01-31").get_json()["data"]

    assert [m["member_id"] for m in data["risk_analysis"]["high_risk_members"]] == [5]


def test_trend_comparison_query(client):
    login(client, "admin@example.com")

    resp = client.get("/api/attendance/visualizations/trends/compare?dayGroups=Monday,Tuesday&timeframe=30")

    assert resp.status_code == 200
    assert list(resp.get_json()["data"]) == ["Monday", "Tuesday"]
    assert client.get("/api/attendance/visualizations/trends/compare?timeframe=abc").status_code == 400


def test_list_and_override_attendance(client):
    login(client, "admin@example.com")

    listing = client.get("/api/attendance?dayGroup=Tuesday&limit=2").get_json()
    assert listing["pagination"] == {"total": 5, "page": 1, "pages": 3}
    attendance_id = listing["data"][0]["id"]

    short = client.patch(f"/api/attendance/{attendance_id}/override", json={"status": "present", "reason": "short"})
    assert short.status_code == 400

    resp = client.patch(
        f"/api/attendance/{attendance_id}/override",
        json={"status": "present", "reason": "Was at an offsite event"},
    )
    assert resp.get_json()["data"]["status"] == "present"

    history = client.get(f"/api/attendance/{attendance_id}/overrides").get_json()["data"]
    assert history[0]["previous_status"] == "absent"


def test_leader_cannot_override(client):
    login(client, "leader@example.com")
    resp = client.patch("/api/attendance/1/override", json={"status": "present", "reason": "Long enough reason"})
    assert resp.status_code == 403


def test_export_csv(client):
    login(client, "admin@example.com")

    resp = client.get("/api/attendance/export?startDate=2024-01-01&endDate=2024-01-05&dayGroup=Monday")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    lines = resp.get_data(as_text=True).splitlines()
    assert lines[0].startswith("Date,Member Name")
    assert len(lines) == 6


def test_admin_creates_and_suspends_user(client):
    login(client, "admin@example.com")

    created = client.post(
        "/api/users",
        json={"name": "Fay", "email": "fay@example.com", "password": "longenough", "dayGroup": "Thursday"},
    )
    assert created.status_code == 201
    user_id = created.get_json()["data"]["id"]

    status = client.patch(f"/api/users/{user_id}/status", json={"status": "suspended"})
    assert status.get_json()["data"]["status"] == "suspended"

    bad = client.post(
        "/api/users",
        json={"name": "Gus", "email": "gus@example.com", "password": "longenough", "dayGroup": "adminDay"},
    )
    assert bad.status_code == 400


def test_user_listing_pagination(client):
    login(client, "admin@example.com")

    body = client.get("/api/users?role=member&limit=2&page=2").get_json()

    assert body["pagination"] == {"total": 4, "page": 2, "pages": 2}
    assert [u["name"] for u in body["data"]] == ["Cy", "Dee"]
    assert client.get("/api/users?role=boss").status_code == 400


def test_unknown_route_uses_json_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_bad_timeframe_error_is_not_chained(app):
    with app.test_request_context("/?timeframe=abc"):
        with pytest.raises(ValidationError) as excinfo:
            _timeframe()

    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__ is True
