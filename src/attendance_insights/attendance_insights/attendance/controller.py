from __future__ import annotations

import io
import logging

from flask import Flask, request, send_file

from ..common.http import (
    current_day_group,
    current_user_id,
    json_body,
    ok,
    query_date,
    roles_required,
    scoped_day_group,
)
from ..common.validators import parse_pagination, require_iso_date
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AttendanceMark

logger = logging.getLogger(__name__)


def _parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}") from None


def _parse_marks(items) -> list[AttendanceMark]:
    if not isinstance(items, list) or not items:
        raise ValidationError("members must be a non-empty list")
    marks = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each member entry must be an object")
        try:
            member_id = int(item.get("memberId"))
        except (TypeError, ValueError):
            raise ValidationError("memberId must be an integer") from None
        marks.append(
            AttendanceMark(
                member_id=member_id,
                status=_parse_status(item.get("status")),
                notes=item.get("notes") or None,
            )
        )
    return marks


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="mark_attendance")
    @roles_required(Role.LEADER)
    def mark_attendance():
        body = json_body()
        work_date = require_iso_date(body.get("date"), "date")
        written = container.attendance_service.mark_attendance(
            leader_id=current_user_id(),
            leader_day_group=current_day_group(),
            work_date=work_date,
            marks=_parse_marks(body.get("members")),
        )
        return ok({"date": work_date.isoformat(), "written": written})

    @app.route("/api/attendance", endpoint="list_attendance")
    @roles_required(Role.ADMIN, Role.LEADER)
    def list_attendance():
        args = request.args
        page, limit = parse_pagination(args.get("page"), args.get("limit"))
        status = _parse_status(args["status"]) if args.get("status") else None
        result = container.attendance_service.get_attendance(
            start_date=query_date("startDate", required=False),
            end_date=query_date("endDate", required=False),
            status=status,
            day_group=scoped_day_group(args.get("dayGroup")),
            page=page,
            limit=limit,
        )
        return ok(
            [r.to_dict() for r in result.records],
            pagination={"total": result.total, "page": result.page, "pages": result.pages},
        )

    @app.route("/api/attendance/<int:attendance_id>/override", methods=["PATCH"], endpoint="override_attendance")
    @roles_required(Role.ADMIN)
    def override_attendance(attendance_id: int):
        body = json_body()
        record = container.attendance_service.override_attendance(
            attendance_id,
            admin_id=current_user_id(),
            status=_parse_status(body.get("status")),
            reason=body.get("reason", ""),
        )
        return ok(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>/overrides", endpoint="override_history")
    @roles_required(Role.ADMIN)
    def override_history(attendance_id: int):
        entries = container.attendance_service.override_history(attendance_id)
        return ok(
            [
                {
                    "admin_id": e.admin_id,
                    "previous_status": e.previous_status.value,
                    "reason": e.reason,
                    "timestamp": e.timestamp.isoformat(),
                }
                for e in entries
            ]
        )

    @app.route("/api/attendance/auto-process", methods=["POST"], endpoint="auto_process_absence")
    @roles_required(Role.ADMIN)
    def auto_process_absence():
        body = request.get_json(silent=True) or {}
        work_date = require_iso_date(body["date"], "date") if body.get("date") else None
        count = container.attendance_service.process_automatic_absence(work_date)
        return ok({"processed": count})

    @app.route("/api/attendance/export", endpoint="export_attendance")
    @roles_required(Role.ADMIN, Role.LEADER)
    def export_attendance():
        fmt = request.args.get("format", "csv")
        if fmt != "csv":
            raise ValidationError("Only csv export is supported")
        start = query_date("startDate")
        end = query_date("endDate")
        csv_text = container.attendance_service.export_csv(
            start_date=start,
            end_date=end,
            day_group=scoped_day_group(request.args.get("dayGroup")),
        )
        output = io.BytesIO(csv_text.encode("utf-8"))
        return send_file(
            output,
            mimetype="text/csv",
            as_attachment=True,
            download_name=f"attendance-{start.isoformat()}-to-{end.isoformat()}.csv",
        )
