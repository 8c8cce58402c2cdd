from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.enums import AnnouncementCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import Announcement
from .repository import BulletinRepository

_SELECT = """
    SELECT a.*, u.name AS author_name
    FROM announcements a
    LEFT JOIN users u ON u.user_id = a.author_id
"""


def _to_announcement(r: Dict[str, Any]) -> Announcement:
    return Announcement(
        announcement_id=int(r["announcement_id"]),
        clinic_id=int(r["clinic_id"]),
        title=r["title"],
        content=r["content"],
        category=AnnouncementCategory(r["category"]),
        author_id=int(r["author_id"]),
        is_pinned=bool(r["is_pinned"]),
        is_important=bool(r["is_important"]),
        start_date=normalize_mysql_date(r.get("start_date")),
        end_date=normalize_mysql_date(r.get("end_date")),
        view_count=int(r.get("view_count") or 0),
        created_at=r.get("created_at"),
        author_name=r.get("author_name"),
    )


class MySQLBulletinRepository(BulletinRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_announcements(
        self,
        clinic_id: int,
        *,
        category: Optional[AnnouncementCategory] = None,
        search: Optional[str] = None,
        limit: int,
        offset: int,
    ) -> Tuple[Sequence[Announcement], int]:
        where = " WHERE a.clinic_id=%s"
        params: List[Any] = [int(clinic_id)]
        if category is not None:
            where += " AND a.category=%s"
            params.append(category.value)
        if search:
            where += " AND (a.title LIKE %s OR a.content LIKE %s)"
            params.extend([f"%{search}%", f"%{search}%"])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM announcements a{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"{_SELECT}{where} ORDER BY a.is_pinned DESC, a.created_at DESC, a.announcement_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_announcement(r) for r in fetchall(cur)], total

    def get_announcement(self, clinic_id: int, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE a.clinic_id=%s AND a.announcement_id=%s",
                (int(clinic_id), int(announcement_id)),
            )
            r = fetchone(cur)
            return _to_announcement(r) if r else None

    def create_announcement(self, announcement: Announcement) -> int:
        a = announcement
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO announcements(
                    clinic_id, title, content, category, is_pinned, is_important, start_date, end_date, author_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    a.clinic_id,
                    a.title,
                    a.content,
                    a.category.value,
                    int(a.is_pinned),
                    int(a.is_important),
                    a.start_date,
                    a.end_date,
                    a.author_id,
                ),
            )
            return int(cur.lastrowid)

    def update_announcement(self, announcement: Announcement) -> bool:
        a = announcement
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE announcements
                SET title=%s, content=%s, category=%s, is_pinned=%s, is_important=%s, start_date=%s, end_date=%s
                WHERE announcement_id=%s AND clinic_id=%s
                """,
                (
                    a.title,
                    a.content,
                    a.category.value,
                    int(a.is_pinned),
                    int(a.is_important),
                    a.start_date,
                    a.end_date,
                    a.announcement_id,
                    a.clinic_id,
                ),
            )
            return cur.rowcount > 0

    def delete_announcement(self, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM announcements WHERE announcement_id=%s", (int(announcement_id),))
            return cur.rowcount > 0

    def increment_view_count(self, announcement_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE announcements SET view_count = view_count + 1 WHERE announcement_id=%s",
                (int(announcement_id),),
            )

    def list_upcoming(self, clinic_id: int, *, since: date, limit: int) -> Sequence[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""{_SELECT}
                WHERE a.clinic_id=%s AND a.category IN (%s, %s) AND a.start_date >= %s
                ORDER BY a.start_date ASC
                LIMIT %s
                """,
                (
                    int(clinic_id),
                    AnnouncementCategory.SCHEDULE.value,
                    AnnouncementCategory.HOLIDAY.value,
                    since,
                    int(limit),
                ),
            )
            return [_to_announcement(r) for r in fetchall(cur)]
