from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time

import pytest

from conftest import make_user, record
from dental_clinic.attendance.service import summarize_month
from dental_clinic.core.enums import AttendanceStatus, Role, UserStatus
from dental_clinic.core.exceptions import AuthorizationError, NotFoundError, ValidationError

MONDAY = date(2024, 3, 4)
SATURDAY = date(2024, 3, 9)


@pytest.fixture
def service(container):
    return container.attendance_service


def test_checkin_within_grace_is_on_time_and_copies_schedule(service, attendance_repo):
    status = service.check_in(2, now=datetime(2024, 3, 4, 9, 3))

    assert status == AttendanceStatus.ON_TIME
    rec = attendance_repo.get_for_user_and_date(2, MONDAY)
    assert rec.scheduled_start == time(9, 0)
    assert rec.scheduled_end == time(18, 0)
    assert rec.break_minutes == 60


def test_checkin_after_grace_is_late(service, attendance_repo):
    status = service.check_in(2, now=datetime(2024, 3, 4, 9, 20))

    assert status == AttendanceStatus.LATE
    assert attendance_repo.get_for_user_and_date(2, MONDAY).note == "지각 20분"


def test_checkin_twice_is_rejected(service):
    service.check_in(2, now=datetime(2024, 3, 4, 9, 0))

    with pytest.raises(ValidationError):
        service.check_in(2, now=datetime(2024, 3, 4, 9, 30))


def test_checkin_on_closed_day_has_no_schedule(service, attendance_repo):
    assert service.check_in(2, now=datetime(2024, 3, 9, 11, 0)) == AttendanceStatus.ON_TIME

    rec = attendance_repo.get_for_user_and_date(2, SATURDAY)
    assert rec.scheduled_start is None
    assert rec.note == "휴무일 근무"
    assert rec.break_minutes == 0


def test_pending_user_cannot_check_in(service, users_repo):
    users_repo.users[3] = make_user(3, status=UserStatus.PENDING)

    with pytest.raises(ValidationError):
        service.check_in(3, now=datetime(2024, 3, 4, 9, 0))


def test_checkout_without_checkin_is_rejected(service):
    with pytest.raises(ValidationError):
        service.check_out(2, now=datetime(2024, 3, 4, 18, 0))


def test_checkout_before_closing_is_early_leave(service, attendance_repo):
    service.check_in(2, now=datetime(2024, 3, 4, 8, 55))
    status = service.check_out(2, now=datetime(2024, 3, 4, 17, 0))

    assert status == AttendanceStatus.EARLY_LEAVE
    rec = attendance_repo.get_for_user_and_date(2, MONDAY)
    assert rec.note == "조퇴 60분"
    assert rec.worked_minutes == 7 * 60 + 5


def test_checkout_twice_is_rejected(service):
    service.check_in(2, now=datetime(2024, 3, 4, 9, 0))
    service.check_out(2, now=datetime(2024, 3, 4, 18, 0))

    with pytest.raises(ValidationError):
        service.check_out(2, now=datetime(2024, 3, 4, 18, 30))


def test_qr_code_of_another_clinic_is_rejected(service, container):
    code = container.qr_service.get_or_create_daily_code(2, MONDAY)

    with pytest.raises(ValidationError, match="소속 병원"):
        service.check_in(2, now=datetime(2024, 3, 4, 9, 0), qr_code=code.qr_code)


def test_scan_toggles_between_checkin_and_checkout(service, container):
    code = container.qr_service.get_or_create_daily_code(1, MONDAY).qr_code

    assert service.check_by_qr(2, code, now=datetime(2024, 3, 4, 9, 0)) == "check_in"
    assert service.check_by_qr(2, code, now=datetime(2024, 3, 4, 18, 5)) == "check_out"


def test_scan_requires_code(service):
    with pytest.raises(ValidationError):
        service.check_by_qr(2, "  ", now=datetime(2024, 3, 4, 9, 0))


def test_monthly_summary_counts_missing_past_days_as_absent(service, attendance_repo):
    attendance_repo.add(record(1, 2, date(2024, 3, 1), time(9, 0), time(18, 0)))
    attendance_repo.add(record(2, 2, date(2024, 3, 4), time(9, 20), time(18, 0), AttendanceStatus.LATE))
    attendance_repo.add(record(3, 2, date(2024, 3, 5), time(9, 0), time(17, 0), AttendanceStatus.EARLY_LEAVE))
    attendance_repo.add(record(4, 2, date(2024, 3, 6), None, None, AttendanceStatus.LEAVE))

    summary = service.monthly_summary(2, 2024, 3, as_of=date(2024, 3, 8))

    # scheduled: 1, 4, 5, 6, 7, 8 / the 7th has no record, the 8th is today
    assert summary.scheduled_days == 6
    assert summary.month_scheduled_days == 21
    assert summary.present_days == 3
    assert summary.absent_days == 1
    assert summary.leave_days == 1
    assert summary.late_count == 1
    assert summary.late_minutes == 20
    assert summary.early_leave_count == 1
    assert summary.early_leave_minutes == 60
    assert summary.total_worked_minutes == 480 + 460 + 420
    assert summary.attendance_rate == 60.0


def test_monthly_summary_skips_days_before_hire_date(service, users_repo):
    users_repo.users[2] = replace(users_repo.users[2], hire_date=date(2024, 3, 7))

    summary = service.monthly_summary(2, 2024, 3, as_of=date(2024, 3, 8))

    assert summary.scheduled_days == 2
    assert summary.month_scheduled_days == 17
    assert summary.absent_days == 1


def test_summarize_month_without_working_days_has_zero_rate():
    summary = summarize_month(2, 2024, 3, [], {}, as_of=date(2024, 3, 31))

    assert summary.attendance_rate == 0.0
    assert summary.absent_days == 0


def test_edit_record_requires_manager(service, attendance_repo):
    attendance_repo.add(record(1, 2, MONDAY, time(9, 30), None, AttendanceStatus.LATE))

    with pytest.raises(AuthorizationError):
        service.edit_record(
            current_role=Role.STAFF,
            clinic_id=1,
            editor_id=2,
            attendance_id=1,
            check_in_time=datetime(2024, 3, 4, 9, 0),
            check_out_time=None,
            status=AttendanceStatus.ON_TIME,
        )


def test_edit_record_checks_clinic_and_time_order(service, attendance_repo):
    attendance_repo.add(record(1, 2, MONDAY, time(9, 30), None, AttendanceStatus.LATE))

    with pytest.raises(NotFoundError):
        service.edit_record(
            current_role=Role.OWNER,
            clinic_id=99,
            editor_id=1,
            attendance_id=1,
            check_in_time=None,
            check_out_time=None,
            status=AttendanceStatus.ABSENT,
        )
    with pytest.raises(ValidationError):
        service.edit_record(
            current_role=Role.OWNER,
            clinic_id=1,
            editor_id=1,
            attendance_id=1,
            check_in_time=datetime(2024, 3, 4, 18, 0),
            check_out_time=datetime(2024, 3, 4, 9, 0),
            status=AttendanceStatus.ON_TIME,
        )


def test_edit_record_marks_row_as_manually_edited(service, attendance_repo):
    attendance_repo.add(record(1, 2, MONDAY, time(9, 30), None, AttendanceStatus.LATE))

    service.edit_record(
        current_role=Role.MANAGER,
        clinic_id=1,
        editor_id=1,
        attendance_id=1,
        check_in_time=datetime(2024, 3, 4, 9, 0),
        check_out_time=datetime(2024, 3, 4, 18, 0),
        status=AttendanceStatus.ON_TIME,
        note="  지문 인식 오류  ",
    )

    rec = attendance_repo.get_by_id(1)
    assert rec.status == AttendanceStatus.ON_TIME
    assert rec.is_manually_edited
    assert rec.edited_by == 1
    assert rec.note == "지문 인식 오류"


def test_team_status_lists_every_active_employee(service, attendance_repo):
    attendance_repo.add(record(1, 2, MONDAY, time(9, 15), None, AttendanceStatus.LATE))

    board = service.team_status(1, MONDAY)

    assert board["total_employees"] == 2
    assert board["checked_in"] == 1
    assert board["not_checked_in"] == 1
    assert board["late_count"] == 1
    staff_row = next(e for e in board["employees"] if e["user_id"] == 2)
    assert staff_row["check_in"] == "09:15"
    assert staff_row["late_minutes"] == 15


def test_build_report_sums_hours_per_employee(service, attendance_repo):
    attendance_repo.names = {2: "이위생사"}
    attendance_repo.add(record(1, 2, date(2024, 3, 4), time(9, 0), time(18, 0)))
    attendance_repo.add(record(2, 2, date(2024, 3, 5), time(9, 0), time(18, 30)))

    data = service.build_report(clinic_id=1, start=date(2024, 3, 1), end=date(2024, 3, 31))

    assert [r["worked_hours"] for r in data.rows] == ["08:00", "08:30"]
    assert data.summary == [{"user_id": 2, "name": "이위생사", "total_hours": "16:30"}]


def test_build_report_rejects_inverted_range(service):
    with pytest.raises(ValidationError):
        service.build_report(clinic_id=1, start=date(2024, 3, 5), end=date(2024, 3, 1))
