from __future__ import annotations

import csv
import io
from dataclasses import asdict
from datetime import timedelta
from typing import Optional

from flask import Flask, request, send_file

from ..common.datetime_utils import now_local, parse_iso_date, parse_optional_datetime
from ..common.validators import require_month
from ..common.web import current_identity, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, ValidationError
from .qr import render_png

REPORT_FIELDS = ["work_date", "user_id", "name", "check_in", "check_out", "status", "worked_hours", "note"]


def _optional_float(value) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError("위치 정보가 올바르지 않습니다")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _scoped_user_id(requested: Optional[str]) -> int:
        """Staff may only look at their own figures; managers may pick anyone in the clinic."""
        ident = current_identity()
        try:
            requested_id = int(requested) if requested else None
        except ValueError:
            raise ValidationError("직원 번호가 올바르지 않습니다")
        if requested_id is None or requested_id == ident.user_id:
            return ident.user_id
        if not ident.role.is_manager:
            raise AuthorizationError("다른 직원의 기록은 관리자만 조회할 수 있습니다")
        return container.staff_service.get_staff(ident.clinic_id, requested_id).user_id

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    @json_endpoint
    def check_in():
        body = json_body()
        status = service.check_in(
            current_identity().user_id,
            qr_code=body.get("qr_code"),
            latitude=_optional_float(body.get("latitude")),
            longitude=_optional_float(body.get("longitude")),
        )
        return ok({"status": status.value}, message="출근 처리되었습니다")

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    @json_endpoint
    def check_out():
        body = json_body()
        status = service.check_out(
            current_identity().user_id,
            qr_code=body.get("qr_code"),
            latitude=_optional_float(body.get("latitude")),
            longitude=_optional_float(body.get("longitude")),
        )
        return ok({"status": status.value}, message="퇴근 처리되었습니다")

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="attendance_scan")
    @login_required
    @json_endpoint
    def scan():
        body = json_body()
        action = service.check_by_qr(
            current_identity().user_id,
            str(body.get("qr_code") or ""),
            latitude=_optional_float(body.get("latitude")),
            longitude=_optional_float(body.get("longitude")),
        )
        message = "퇴근 처리되었습니다" if action == "check_out" else "출근 처리되었습니다"
        return ok({"action": action}, message=message)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    @json_endpoint
    def today_record():
        record = service.get_today_record(current_identity().user_id, now_local().date())
        return ok(service.to_ui(record) if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    @json_endpoint
    def history():
        user_id = _scoped_user_id(request.args.get("user_id"))
        limit = request.args.get("limit", DEFAULT_HISTORY_LIMIT, type=int)
        return ok(service.get_history_ui(user_id, limit=limit))

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @login_required
    @json_endpoint
    def summary():
        today = now_local().date()
        year, month = require_month(request.args.get("year") or today.year, request.args.get("month") or today.month)
        user_id = _scoped_user_id(request.args.get("user_id"))
        return ok(asdict(service.monthly_summary(user_id, year, month)))

    @app.route("/api/attendance/team", methods=["GET"], endpoint="attendance_team")
    @manager_required
    @json_endpoint
    def team():
        day_s = request.args.get("date")
        day = parse_iso_date(day_s) if day_s else now_local().date()
        return ok(service.team_status(current_identity().clinic_id, day))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_edit")
    @manager_required
    @json_endpoint
    def edit(attendance_id: int):
        body = json_body()
        try:
            status = AttendanceStatus(body.get("status"))
        except ValueError:
            raise ValidationError("출퇴근 상태 값이 올바르지 않습니다")

        ident = current_identity()
        service.edit_record(
            current_role=ident.role,
            clinic_id=ident.clinic_id,
            editor_id=ident.user_id,
            attendance_id=attendance_id,
            check_in_time=parse_optional_datetime(body.get("check_in_time")),
            check_out_time=parse_optional_datetime(body.get("check_out_time")),
            status=status,
            note=body.get("note"),
        )
        return ok(message="출퇴근 기록이 수정되었습니다")

    def _report_args():
        today = now_local().date()
        start_s = request.args.get("start") or (today - timedelta(days=7)).strftime("%Y-%m-%d")
        end_s = request.args.get("end") or today.strftime("%Y-%m-%d")
        return parse_iso_date(start_s), parse_iso_date(end_s)

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @login_required
    @json_endpoint
    def report():
        start, end = _report_args()
        ident = current_identity()
        user_id = None if ident.role.is_manager and not request.args.get("user_id") else _scoped_user_id(request.args.get("user_id"))
        data = service.build_report(clinic_id=ident.clinic_id, start=start, end=end, user_id=user_id)
        return ok({"start": start.isoformat(), "end": end.isoformat(), "rows": data.rows, "summary": data.summary})

    @app.route("/api/attendance/report.csv", methods=["GET"], endpoint="attendance_report_csv")
    @manager_required
    @json_endpoint
    def report_csv():
        start, end = _report_args()
        user_s = request.args.get("user_id")
        data = service.build_report(
            clinic_id=current_identity().clinic_id,
            start=start,
            end=end,
            user_id=int(user_s) if user_s else None,
        )

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        filename = f"attendance_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _daily_code():
        return container.qr_service.get_or_create_daily_code(
            current_identity().clinic_id,
            now_local().date(),
            latitude=_optional_float(request.args.get("latitude")),
            longitude=_optional_float(request.args.get("longitude")),
            radius_meters=int(request.args.get("radius") or 0) or None,
        )

    @app.route("/api/attendance/qr", methods=["GET"], endpoint="attendance_qr")
    @manager_required
    @json_endpoint
    def qr_info():
        code = _daily_code()
        return ok(
            {
                "qr_code": code.qr_code,
                "valid_date": code.valid_date.isoformat(),
                "latitude": code.latitude,
                "longitude": code.longitude,
                "radius_meters": code.radius_meters,
            }
        )

    @app.route("/api/attendance/qr.png", methods=["GET"], endpoint="attendance_qr_image")
    @manager_required
    @json_endpoint
    def qr_image():
        return send_file(render_png(_daily_code().qr_code), mimetype="image/png")
