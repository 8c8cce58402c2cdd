from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date, normalize_mysql_time
from .model import AttendanceRecord, AttendanceReportRow, DailyQRCode
from .repository import AttendanceRepository, QRCodeRepository

_COLUMNS = """
    ar.attendance_id, ar.clinic_id, ar.user_id, ar.work_date, ar.check_in_time, ar.check_out_time,
    ar.status, ar.note, ar.scheduled_start, ar.scheduled_end, ar.break_minutes,
    ar.is_manually_edited, ar.edited_by
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        clinic_id=int(r["clinic_id"]),
        user_id=int(r["user_id"]),
        work_date=normalize_mysql_date(r["work_date"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        status=AttendanceStatus(r["status"]),
        note=r.get("note"),
        scheduled_start=normalize_mysql_time(r.get("scheduled_start")),
        scheduled_end=normalize_mysql_time(r.get("scheduled_end")),
        break_minutes=int(r.get("break_minutes") or 0),
        is_manually_edited=bool(r.get("is_manually_edited")),
        edited_by=int(r["edited_by"]) if r.get("edited_by") is not None else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.user_id=%s
                ORDER BY ar.work_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.user_id=%s AND ar.work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.user_id=%s AND ar.work_date BETWEEN %s AND %s
                ORDER BY ar.work_date ASC
                """,
                (int(user_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_clinic_on(self, clinic_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.clinic_id=%s AND ar.work_date=%s",
                (int(clinic_id), work_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_checkin(
        self,
        *,
        clinic_id: int,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        scheduled_start: Optional[time],
        scheduled_end: Optional[time],
        break_minutes: int,
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    clinic_id, user_id, work_date, check_in_time, status, note,
                    scheduled_start, scheduled_end, break_minutes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(clinic_id),
                    int(user_id),
                    work_date,
                    check_in_time,
                    status.value,
                    note,
                    scheduled_start,
                    scheduled_end,
                    int(break_minutes),
                ),
            )
            return int(cur.lastrowid)

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, status=%s, note=%s
                WHERE attendance_id=%s
                """,
                (check_out_time, status.value, note, int(attendance_id)),
            )
            return cur.rowcount > 0

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str],
        edited_by: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_out_time=%s, status=%s, note=%s,
                    is_manually_edited=1, edited_by=%s
                WHERE attendance_id=%s
                """,
                (check_in_time, check_out_time, status.value, note, int(edited_by), int(attendance_id)),
            )
            return cur.rowcount > 0

    def get_report_rows(
        self,
        *,
        clinic_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["ar.clinic_id=%s", "ar.work_date BETWEEN %s AND %s"]
        params: list[object] = [int(clinic_id), start_date, end_date]

        if user_id is not None:
            clauses.append("ar.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.name
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.user_id ASC
                """,
                tuple(params),
            )
            return [
                AttendanceReportRow(user_id=int(r["user_id"]), name=r["name"], record=_to_record(r))
                for r in fetchall(cur)
            ]


def _to_qr(r: Dict[str, Any]) -> DailyQRCode:
    return DailyQRCode(
        qr_id=int(r["qr_id"]),
        clinic_id=int(r["clinic_id"]),
        qr_code=r["qr_code"],
        valid_date=normalize_mysql_date(r["valid_date"]),
        latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
        longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
        radius_meters=int(r.get("radius_meters") or 0),
        is_active=bool(r.get("is_active")),
    )


class MySQLQRCodeRepository(QRCodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_date(self, clinic_id: int, valid_date: date) -> Optional[DailyQRCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM attendance_qr_codes WHERE clinic_id=%s AND valid_date=%s",
                (int(clinic_id), valid_date),
            )
            r = fetchone(cur)
            return _to_qr(r) if r else None

    def get_by_code(self, qr_code: str) -> Optional[DailyQRCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM attendance_qr_codes WHERE qr_code=%s", (qr_code,))
            r = fetchone(cur)
            return _to_qr(r) if r else None

    def create(
        self,
        *,
        clinic_id: int,
        qr_code: str,
        valid_date: date,
        latitude: Optional[float],
        longitude: Optional[float],
        radius_meters: int,
    ) -> DailyQRCode:
        with db_cursor(self._conn_factory) as (_, cur):
            # an inactive code for the same day is replaced
            cur.execute(
                """
                INSERT INTO attendance_qr_codes(clinic_id, qr_code, valid_date, latitude, longitude, radius_meters, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                ON DUPLICATE KEY UPDATE qr_code=VALUES(qr_code), latitude=VALUES(latitude),
                    longitude=VALUES(longitude), radius_meters=VALUES(radius_meters), is_active=1
                """,
                (int(clinic_id), qr_code, valid_date, latitude, longitude, int(radius_meters)),
            )
            cur.execute("SELECT * FROM attendance_qr_codes WHERE qr_code=%s", (qr_code,))
            return _to_qr(fetchone(cur))
