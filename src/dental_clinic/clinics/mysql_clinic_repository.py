from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_json, to_json
from .model import Clinic
from .repository import ClinicRepository


class MySQLClinicRepository(ClinicRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, clinic_id: int) -> Optional[Clinic]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT clinic_id, name, owner_name, status FROM clinics WHERE clinic_id=%s",
                (int(clinic_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Clinic(
                clinic_id=int(row["clinic_id"]),
                name=row["name"],
                owner_name=row.get("owner_name"),
                status=row.get("status") or "active",
            )

    def get_hours(self, clinic_id: int) -> Optional[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT hours FROM clinic_hours WHERE clinic_id=%s", (int(clinic_id),))
            row = fetchone(cur)
            return from_json(row["hours"]) if row else None

    def save_hours(self, clinic_id: int, hours: dict) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO clinic_hours(clinic_id, hours) VALUES(%s, %s)
                ON DUPLICATE KEY UPDATE hours=VALUES(hours)
                """,
                (int(clinic_id), to_json(hours)),
            )
