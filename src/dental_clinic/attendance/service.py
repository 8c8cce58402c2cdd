from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..clinics import hours as hours_rules
from ..clinics.model import OperatingHours
from ..clinics.repository import ClinicRepository
from ..common.datetime_utils import format_minutes, month_bounds, now_local
from ..common.logger import get_logger
from ..common.money import percent
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import AttendanceStatus, Role, UserStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AttendanceSummary
from .qr import QRCodeService
from .repository import AttendanceRepository

logger = get_logger(__name__)

PRESENT_STATUSES = frozenset({AttendanceStatus.ON_TIME, AttendanceStatus.LATE, AttendanceStatus.EARLY_LEAVE})

STATUS_LABELS = {
    AttendanceStatus.ON_TIME: "정상",
    AttendanceStatus.LATE: "지각",
    AttendanceStatus.EARLY_LEAVE: "조퇴",
    AttendanceStatus.ABSENT: "결근",
    AttendanceStatus.LEAVE: "휴가",
    AttendanceStatus.HOLIDAY: "공휴일",
}


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        clinics: ClinicRepository,
        *,
        qr_codes: QRCodeService | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    ):
        self._attendance = attendance
        self._users = users
        self._clinics = clinics
        self._qr = qr_codes
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)

    def _active_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise ValidationError("직원 정보를 찾을 수 없습니다")
        if user.status != UserStatus.ACTIVE:
            raise ValidationError("재직 중인 직원만 출퇴근을 기록할 수 있습니다")
        return user

    def _hours(self, clinic_id: int) -> OperatingHours:
        return hours_rules.merge_operating_hours(self._clinics.get_hours(int(clinic_id)))

    def _check_qr(self, user: User, qr_code: Optional[str], today: date, latitude, longitude) -> None:
        if qr_code is None or self._qr is None:
            return
        result = self._qr.validate(qr_code, today, latitude=latitude, longitude=longitude)
        if not result.is_valid:
            raise ValidationError(result.message or "유효하지 않은 QR 코드입니다")
        if result.clinic_id != user.clinic_id:
            raise ValidationError("소속 병원의 QR 코드가 아닙니다")

    def check_in(
        self,
        user_id: int,
        *,
        now: datetime | None = None,
        qr_code: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> AttendanceStatus:
        now = now or now_local()
        today = now.date()

        user = self._active_user(user_id)
        self._check_qr(user, qr_code, today, latitude, longitude)

        if self._attendance.get_for_user_and_date(user.user_id, today):
            raise ValidationError("오늘 이미 출근 처리되었습니다")

        schedule = hours_rules.hours_for_date(self._hours(user.clinic_id), today)
        strategy = self._factory.for_checkin(now=now, today=today, schedule=schedule, grace_minutes=self._grace_minutes)
        decision = strategy.decide_checkin(now=now, today=today, schedule=schedule, grace_minutes=self._grace_minutes)

        scheduled = schedule if schedule.enabled else None
        self._attendance.create_checkin(
            clinic_id=user.clinic_id,
            user_id=user.user_id,
            work_date=today,
            check_in_time=now,
            status=decision.status,
            scheduled_start=scheduled.start_time if scheduled else None,
            scheduled_end=scheduled.end_time if scheduled else None,
            break_minutes=hours_rules.break_minutes(scheduled) if scheduled else 0,
            note=decision.note,
        )
        logger.info(
            "Check-in user=%s date=%s status=%s late=%smin", user.user_id, today, decision.status.value, decision.minutes
        )
        return decision.status

    def check_out(
        self,
        user_id: int,
        *,
        now: datetime | None = None,
        qr_code: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> AttendanceStatus:
        now = now or now_local()
        today = now.date()

        user = self._active_user(user_id)
        self._check_qr(user, qr_code, today, latitude, longitude)

        record = self._attendance.get_for_user_and_date(user.user_id, today)
        if not record or not record.check_in_time:
            raise ValidationError("오늘 출근 기록이 없습니다")
        if record.check_out_time is not None:
            raise ValidationError("오늘 이미 퇴근 처리되었습니다")

        schedule = hours_rules.hours_for_date(self._hours(user.clinic_id), today)
        strategy = self._factory.for_checkout(now=now, today=today, schedule=schedule, current_status=record.status)
        decision = strategy.decide_checkout(now=now, today=today, schedule=schedule, current=record.status)

        self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            status=decision.status,
            note=decision.note or record.note,
        )
        logger.info(
            "Check-out user=%s date=%s status=%s early=%smin", user.user_id, today, decision.status.value, decision.minutes
        )
        return decision.status

    def check_by_qr(
        self,
        user_id: int,
        qr_code: str,
        *,
        now: datetime | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> str:
        """Scan handler: check out when checked in today, otherwise check in."""
        if not (qr_code or "").strip():
            raise ValidationError("QR 코드가 비어 있습니다")

        now = now or now_local()
        record = self._attendance.get_for_user_and_date(int(user_id), now.date())
        if record and record.check_in_time and not record.check_out_time:
            self.check_out(user_id, now=now, qr_code=qr_code, latitude=latitude, longitude=longitude)
            return "check_out"
        self.check_in(user_id, now=now, qr_code=qr_code, latitude=latitude, longitude=longitude)
        return "check_in"

    def edit_record(
        self,
        *,
        current_role: Role,
        clinic_id: int,
        editor_id: int,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("출퇴근 기록은 관리자만 수정할 수 있습니다")

        record = self._attendance.get_by_id(int(attendance_id))
        if not record or record.clinic_id != int(clinic_id):
            raise NotFoundError("출퇴근 기록을 찾을 수 없습니다")
        if check_out_time and not check_in_time:
            raise ValidationError("출근 시간 없이 퇴근 시간을 입력할 수 없습니다")
        if check_in_time and check_out_time and check_out_time < check_in_time:
            raise ValidationError("퇴근 시간은 출근 시간 이후여야 합니다")

        self._attendance.admin_update_record(
            attendance_id=record.attendance_id,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            status=status,
            note=(note or "").strip() or None,
            edited_by=int(editor_id),
        )
        logger.info("Attendance %s edited by %s", record.attendance_id, editor_id)

    def monthly_summary(self, user_id: int, year: int, month: int, *, as_of: date | None = None) -> AttendanceSummary:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("직원을 찾을 수 없습니다")

        as_of = as_of or now_local().date()
        start, end = month_bounds(year, month)

        month_days = [
            d
            for d in hours_rules.scheduled_work_days(self._hours(user.clinic_id), year, month)
            if not user.hire_date or d >= user.hire_date
        ]
        scheduled = [d for d in month_days if d <= as_of]
        records = {r.work_date: r for r in self._attendance.list_for_user_between(user.user_id, start, end)}
        return summarize_month(
            user.user_id, year, month, scheduled, records, as_of=as_of, month_scheduled_days=len(month_days)
        )

    def get_today_record(self, user_id: int, today: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(int(user_id), today)

    def get_history_ui(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        return [self.to_ui(r) for r in self._attendance.get_recent_for_user(int(user_id), limit)]

    def to_ui(self, r: AttendanceRecord) -> dict:
        css = {
            AttendanceStatus.ON_TIME: "bg-success",
            AttendanceStatus.LATE: "bg-danger",
            AttendanceStatus.EARLY_LEAVE: "bg-warning text-dark",
        }.get(r.status, "bg-secondary")

        return {
            "attendance_id": r.attendance_id,
            "date": r.work_date.strftime("%Y-%m-%d"),
            "check_in": r.check_in_time.strftime("%H:%M:%S") if r.check_in_time else "-",
            "check_out": r.check_out_time.strftime("%H:%M:%S") if r.check_out_time else "-",
            "status": STATUS_LABELS.get(r.status, r.status.value),
            "css_class": css,
            "worked_hours": format_minutes(r.worked_minutes),
            "edited": r.is_manually_edited,
        }

    def team_status(self, clinic_id: int, day: date) -> dict:
        """Today's board: every active employee and whether they checked in."""
        users = self._users.list_by_clinic(int(clinic_id), status=UserStatus.ACTIVE)
        records = {r.user_id: r for r in self._attendance.list_for_clinic_on(int(clinic_id), day)}

        employees = []
        for u in users:
            r = records.get(u.user_id)
            employees.append(
                {
                    "user_id": u.user_id,
                    "name": u.name,
                    "status": r.status.value if r else AttendanceStatus.ABSENT.value,
                    "check_in": r.check_in_time.strftime("%H:%M") if r and r.check_in_time else None,
                    "late_minutes": r.late_minutes if r and r.status == AttendanceStatus.LATE else 0,
                }
            )

        checked_in = sum(1 for e in employees if e["check_in"])
        on_leave = sum(1 for e in employees if e["status"] == AttendanceStatus.LEAVE.value)
        return {
            "date": day.isoformat(),
            "total_employees": len(employees),
            "checked_in": checked_in,
            "not_checked_in": len(employees) - checked_in - on_leave,
            "on_leave": on_leave,
            "late_count": sum(1 for e in employees if e["status"] == AttendanceStatus.LATE.value),
            "employees": employees,
        }

    def build_report(
        self,
        *,
        clinic_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> ReportData:
        if end < start:
            raise ValidationError("종료일은 시작일 이후여야 합니다")

        query_rows = self._attendance.get_report_rows(clinic_id=int(clinic_id), start_date=start, end_date=end, user_id=user_id)

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for row in query_rows:
            r = row.record
            minutes = r.worked_minutes
            out_rows.append(
                {
                    "user_id": row.user_id,
                    "name": row.name,
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "check_in": r.check_in_time.strftime("%H:%M") if r.check_in_time else "-",
                    "check_out": r.check_out_time.strftime("%H:%M") if r.check_out_time else "-",
                    "worked_hours": format_minutes(minutes),
                    "status": r.status.value,
                    "note": r.note or "",
                }
            )

            s = summary_map.setdefault(row.user_id, {"user_id": row.user_id, "name": row.name, "total_minutes": 0})
            s["total_minutes"] += minutes

        summary = sorted(summary_map.values(), key=lambda x: x["total_minutes"], reverse=True)
        for s in summary:
            s["total_hours"] = format_minutes(s.pop("total_minutes"))
        return ReportData(rows=out_rows, summary=summary)


def summarize_month(
    user_id: int,
    year: int,
    month: int,
    scheduled_days: list[date],
    records: dict[date, AttendanceRecord],
    *,
    as_of: date,
    month_scheduled_days: int | None = None,
) -> AttendanceSummary:
    present = [r for r in records.values() if r.status in PRESENT_STATUSES and r.check_in_time]
    late = [r for r in records.values() if r.status == AttendanceStatus.LATE]
    early = [r for r in records.values() if r.status == AttendanceStatus.EARLY_LEAVE]
    leave_days = sum(1 for r in records.values() if r.status == AttendanceStatus.LEAVE)
    holiday_days = sum(1 for r in records.values() if r.status == AttendanceStatus.HOLIDAY)

    # scheduled days already past with nothing recorded count as absences
    absent_days = sum(1 for r in records.values() if r.status == AttendanceStatus.ABSENT)
    absent_days += sum(1 for d in scheduled_days if d < as_of and d not in records)

    working_days = len(scheduled_days) - leave_days - holiday_days
    return AttendanceSummary(
        user_id=int(user_id),
        year=year,
        month=month,
        scheduled_days=len(scheduled_days),
        month_scheduled_days=len(scheduled_days) if month_scheduled_days is None else month_scheduled_days,
        present_days=len(present),
        absent_days=absent_days,
        leave_days=leave_days,
        holiday_days=holiday_days,
        late_count=len(late),
        late_minutes=sum(r.late_minutes for r in late),
        early_leave_count=len(early),
        early_leave_minutes=sum(r.early_leave_minutes for r in early),
        overtime_minutes=sum(r.overtime_minutes for r in records.values()),
        total_worked_minutes=sum(r.worked_minutes for r in records.values()),
        attendance_rate=percent(len(present), working_days) if working_days > 0 else 0.0,
    )
