from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, clinic_id, name, email, password_hash, role, status, phone, hire_date"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        clinic_id=int(row["clinic_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        status=UserStatus(row["status"]),
        phone=row.get("phone"),
        hire_date=normalize_mysql_date(row.get("hire_date")),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_by_clinic(self, clinic_id: int, *, status: Optional[UserStatus] = None) -> Sequence[User]:
        clauses = ["clinic_id=%s"]
        params: list[object] = [int(clinic_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {' AND '.join(clauses)} ORDER BY name",
                tuple(params),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        clinic_id: int,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        phone: Optional[str],
        hire_date: Optional[date],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(clinic_id, name, email, password_hash, role, status, phone, hire_date)
                VALUES(%s,%s,%s,%s,%s,'pending',%s,%s)
                """,
                (int(clinic_id), name, email, password_hash, role.value, phone, hire_date),
            )
            return int(cur.lastrowid)

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE user_id=%s", (status.value, int(user_id)))
            return cur.rowcount > 0

    def set_hire_date(self, user_id: int, hire_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET hire_date=%s WHERE user_id=%s", (hire_date, int(user_id)))
            return cur.rowcount > 0
