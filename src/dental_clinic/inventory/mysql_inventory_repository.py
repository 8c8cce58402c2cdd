from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import GiftCategory, GiftItem, InventoryLog
from .repository import InventoryRepository


def _to_item(r: Dict[str, Any]) -> GiftItem:
    return GiftItem(
        item_id=int(r["item_id"]),
        clinic_id=int(r["clinic_id"]),
        name=r["name"],
        stock=int(r["stock"]),
        category_id=int(r["category_id"]) if r.get("category_id") is not None else None,
    )


def _to_category(r: Dict[str, Any]) -> GiftCategory:
    return GiftCategory(
        category_id=int(r["category_id"]),
        clinic_id=int(r["clinic_id"]),
        name=r["name"],
        color=r["color"],
        display_order=int(r.get("display_order") or 0),
    )


class MySQLInventoryRepository(InventoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_items(self, clinic_id: int) -> Sequence[GiftItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM gift_inventory WHERE clinic_id=%s ORDER BY name ASC", (int(clinic_id),))
            return [_to_item(r) for r in fetchall(cur)]

    def get_item(self, clinic_id: int, item_id: int) -> Optional[GiftItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM gift_inventory WHERE clinic_id=%s AND item_id=%s", (int(clinic_id), int(item_id)))
            r = fetchone(cur)
            return _to_item(r) if r else None

    def get_item_by_name(self, clinic_id: int, name: str) -> Optional[GiftItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM gift_inventory WHERE clinic_id=%s AND name=%s", (int(clinic_id), name))
            r = fetchone(cur)
            return _to_item(r) if r else None

    def create_item(self, *, clinic_id: int, name: str, stock: int, category_id: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO gift_inventory(clinic_id, name, stock, category_id) VALUES(%s,%s,%s,%s)",
                (int(clinic_id), name, int(stock), category_id),
            )
            return int(cur.lastrowid)

    def set_stock(self, item_id: int, stock: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE gift_inventory SET stock=%s WHERE item_id=%s", (int(stock), int(item_id)))
            return cur.rowcount > 0

    def set_category(self, item_id: int, category_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE gift_inventory SET category_id=%s WHERE item_id=%s", (category_id, int(item_id)))
            return cur.rowcount > 0

    def delete_item(self, item_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM gift_inventory WHERE item_id=%s", (int(item_id),))
            return cur.rowcount > 0

    def add_log(
        self,
        *,
        clinic_id: int,
        logged_at: datetime,
        name: str,
        reason: str,
        change_amount: int,
        old_stock: int,
        new_stock: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO inventory_logs(clinic_id, logged_at, name, reason, change_amount, old_stock, new_stock)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(clinic_id), logged_at, name, reason, int(change_amount), int(old_stock), int(new_stock)),
            )
            return int(cur.lastrowid)

    def list_logs(self, clinic_id: int, *, limit: int) -> Sequence[InventoryLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM inventory_logs
                WHERE clinic_id=%s
                ORDER BY logged_at DESC, log_id DESC
                LIMIT %s
                """,
                (int(clinic_id), int(limit)),
            )
            return [
                InventoryLog(
                    log_id=int(r["log_id"]),
                    clinic_id=int(r["clinic_id"]),
                    logged_at=r["logged_at"],
                    name=r["name"],
                    reason=r["reason"],
                    change_amount=int(r["change_amount"]),
                    old_stock=int(r["old_stock"]),
                    new_stock=int(r["new_stock"]),
                )
                for r in fetchall(cur)
            ]

    def list_categories(self, clinic_id: int) -> Sequence[GiftCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM gift_categories WHERE clinic_id=%s ORDER BY display_order ASC, name ASC",
                (int(clinic_id),),
            )
            return [_to_category(r) for r in fetchall(cur)]

    def get_category(self, clinic_id: int, category_id: int) -> Optional[GiftCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM gift_categories WHERE clinic_id=%s AND category_id=%s",
                (int(clinic_id), int(category_id)),
            )
            r = fetchone(cur)
            return _to_category(r) if r else None

    def create_category(self, *, clinic_id: int, name: str, color: str, display_order: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO gift_categories(clinic_id, name, color, display_order) VALUES(%s,%s,%s,%s)",
                (int(clinic_id), name, color, int(display_order)),
            )
            return int(cur.lastrowid)

    def delete_category(self, category_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE gift_inventory SET category_id=NULL WHERE category_id=%s", (int(category_id),))
            cur.execute("DELETE FROM gift_categories WHERE category_id=%s", (int(category_id),))
            return cur.rowcount > 0
