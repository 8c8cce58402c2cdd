from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ConsultStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import ConsultLog, DailyReport, GiftLog, HappyCallLog, SpecialNote
from .repository import ReportRepository

_LOG_TABLES = ("consult_logs", "gift_logs", "happy_call_logs")


def _to_report(r: Dict[str, Any]) -> DailyReport:
    return DailyReport(
        report_id=int(r["report_id"]),
        clinic_id=int(r["clinic_id"]),
        report_date=normalize_mysql_date(r["report_date"]),
        recall_count=int(r["recall_count"]),
        recall_booking_count=int(r["recall_booking_count"]),
        recall_booking_names=r.get("recall_booking_names") or "",
        consult_proceed=int(r["consult_proceed"]),
        consult_hold=int(r["consult_hold"]),
        naver_review_count=int(r["naver_review_count"]),
    )


def _to_consult(r: Dict[str, Any]) -> ConsultLog:
    return ConsultLog(
        log_id=int(r["log_id"]),
        clinic_id=int(r["clinic_id"]),
        log_date=normalize_mysql_date(r["log_date"]),
        patient_name=r["patient_name"],
        consult_content=r.get("consult_content") or "",
        consult_status=ConsultStatus(r["consult_status"]),
        remarks=r.get("remarks") or "",
    )


def _to_gift(r: Dict[str, Any]) -> GiftLog:
    return GiftLog(
        log_id=int(r["log_id"]),
        clinic_id=int(r["clinic_id"]),
        log_date=normalize_mysql_date(r["log_date"]),
        patient_name=r["patient_name"],
        gift_type=r["gift_type"],
        quantity=int(r.get("quantity") or 1),
        naver_review=r.get("naver_review") or "X",
        notes=r.get("notes") or "",
    )


def _to_happy_call(r: Dict[str, Any]) -> HappyCallLog:
    return HappyCallLog(
        log_id=int(r["log_id"]),
        clinic_id=int(r["clinic_id"]),
        log_date=normalize_mysql_date(r["log_date"]),
        patient_name=r["patient_name"],
        treatment=r.get("treatment") or "",
        notes=r.get("notes") or "",
    )


def _insert_consult(cur, c: ConsultLog) -> int:
    cur.execute(
        """
        INSERT INTO consult_logs(clinic_id, log_date, patient_name, consult_content, consult_status, remarks)
        VALUES(%s,%s,%s,%s,%s,%s)
        """,
        (c.clinic_id, c.log_date, c.patient_name, c.consult_content, c.consult_status.value, c.remarks),
    )
    return int(cur.lastrowid)


def _upsert_report(cur, report: DailyReport) -> int:
    cur.execute(
        """
        INSERT INTO daily_reports(
            clinic_id, report_date, recall_count, recall_booking_count, recall_booking_names,
            consult_proceed, consult_hold, naver_review_count
        ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
        ON DUPLICATE KEY UPDATE
            report_id=LAST_INSERT_ID(report_id),
            recall_count=VALUES(recall_count),
            recall_booking_count=VALUES(recall_booking_count),
            recall_booking_names=VALUES(recall_booking_names),
            consult_proceed=VALUES(consult_proceed),
            consult_hold=VALUES(consult_hold),
            naver_review_count=VALUES(naver_review_count)
        """,
        (
            report.clinic_id,
            report.report_date,
            report.recall_count,
            report.recall_booking_count,
            report.recall_booking_names,
            report.consult_proceed,
            report.consult_hold,
            report.naver_review_count,
        ),
    )
    return int(cur.lastrowid)


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_report(self, clinic_id: int, report_date: date) -> Optional[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM daily_reports WHERE clinic_id=%s AND report_date=%s",
                (int(clinic_id), report_date),
            )
            r = fetchone(cur)
            return _to_report(r) if r else None

    def list_reports(self, clinic_id: int, start: date, end: date) -> Sequence[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM daily_reports
                WHERE clinic_id=%s AND report_date BETWEEN %s AND %s
                ORDER BY report_date ASC
                """,
                (int(clinic_id), start, end),
            )
            return [_to_report(r) for r in fetchall(cur)]

    def _list_logs(self, table: str, clinic_id: int, start: date, end: date):
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT * FROM {table}
                WHERE clinic_id=%s AND log_date BETWEEN %s AND %s
                ORDER BY log_date ASC, log_id ASC
                """,
                (int(clinic_id), start, end),
            )
            return fetchall(cur)

    def list_consults(self, clinic_id: int, start: date, end: date) -> Sequence[ConsultLog]:
        return [_to_consult(r) for r in self._list_logs("consult_logs", clinic_id, start, end)]

    def list_gifts(self, clinic_id: int, start: date, end: date) -> Sequence[GiftLog]:
        return [_to_gift(r) for r in self._list_logs("gift_logs", clinic_id, start, end)]

    def list_happy_calls(self, clinic_id: int, start: date, end: date) -> Sequence[HappyCallLog]:
        return [_to_happy_call(r) for r in self._list_logs("happy_call_logs", clinic_id, start, end)]

    def replace_report(
        self,
        report: DailyReport,
        consults: Sequence[ConsultLog],
        gifts: Sequence[GiftLog],
        happy_calls: Sequence[HappyCallLog],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            for table in _LOG_TABLES:
                cur.execute(
                    f"DELETE FROM {table} WHERE clinic_id=%s AND log_date=%s",
                    (report.clinic_id, report.report_date),
                )
            report_id = _upsert_report(cur, report)

            for c in consults:
                _insert_consult(cur, c)
            for g in gifts:
                cur.execute(
                    """
                    INSERT INTO gift_logs(clinic_id, log_date, patient_name, gift_type, quantity, naver_review, notes)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (g.clinic_id, g.log_date, g.patient_name, g.gift_type, g.quantity, g.naver_review, g.notes),
                )
            for h in happy_calls:
                cur.execute(
                    """
                    INSERT INTO happy_call_logs(clinic_id, log_date, patient_name, treatment, notes)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (h.clinic_id, h.log_date, h.patient_name, h.treatment, h.notes),
                )
            return report_id

    def save_counts(self, report: DailyReport) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            _upsert_report(cur, report)

    def delete_report(self, clinic_id: int, report_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            for table in _LOG_TABLES:
                cur.execute(
                    f"DELETE FROM {table} WHERE clinic_id=%s AND log_date=%s",
                    (int(clinic_id), report_date),
                )
            cur.execute(
                "DELETE FROM daily_reports WHERE clinic_id=%s AND report_date=%s",
                (int(clinic_id), report_date),
            )
            return cur.rowcount > 0

    def get_consult(self, clinic_id: int, log_id: int) -> Optional[ConsultLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM consult_logs WHERE clinic_id=%s AND log_id=%s", (int(clinic_id), int(log_id)))
            r = fetchone(cur)
            return _to_consult(r) if r else None

    def set_consult_status(self, log_id: int, status: ConsultStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE consult_logs SET consult_status=%s WHERE log_id=%s", (status.value, int(log_id)))
            return cur.rowcount > 0

    def add_consult(self, log: ConsultLog) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return _insert_consult(cur, log)

    def add_special_note(self, note: SpecialNote) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO special_notes_history(
                    clinic_id, report_date, content, author_id, author_name, is_past_date_edit, edited_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    note.clinic_id,
                    note.report_date,
                    note.content,
                    note.author_id,
                    note.author_name,
                    1 if note.is_past_date_edit else 0,
                    note.edited_at,
                ),
            )
            return int(cur.lastrowid)

    def list_special_notes(self, clinic_id: int, report_date: date) -> Sequence[SpecialNote]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM special_notes_history
                WHERE clinic_id=%s AND report_date=%s
                ORDER BY edited_at DESC, note_id DESC
                """,
                (int(clinic_id), report_date),
            )
            return [
                SpecialNote(
                    note_id=int(r["note_id"]),
                    clinic_id=int(r["clinic_id"]),
                    report_date=normalize_mysql_date(r["report_date"]),
                    content=r["content"],
                    author_id=int(r["author_id"]) if r.get("author_id") is not None else None,
                    author_name=r["author_name"],
                    is_past_date_edit=bool(r["is_past_date_edit"]),
                    edited_at=r["edited_at"],
                )
                for r in fetchall(cur)
            ]
