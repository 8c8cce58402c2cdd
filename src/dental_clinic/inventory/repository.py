from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import GiftCategory, GiftItem, InventoryLog


class InventoryRepository(Protocol):
    def list_items(self, clinic_id: int) -> Sequence[GiftItem]:
        raise NotImplementedError

    def get_item(self, clinic_id: int, item_id: int) -> Optional[GiftItem]:
        raise NotImplementedError

    def get_item_by_name(self, clinic_id: int, name: str) -> Optional[GiftItem]:
        raise NotImplementedError

    def create_item(self, *, clinic_id: int, name: str, stock: int, category_id: Optional[int]) -> int:
        raise NotImplementedError

    def set_stock(self, item_id: int, stock: int) -> bool:
        raise NotImplementedError

    def set_category(self, item_id: int, category_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete_item(self, item_id: int) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_logs(self, clinic_id: int, *, limit: int) -> Sequence[InventoryLog]:
        raise NotImplementedError

    def list_categories(self, clinic_id: int) -> Sequence[GiftCategory]:
        raise NotImplementedError

    def get_category(self, clinic_id: int, category_id: int) -> Optional[GiftCategory]:
        raise NotImplementedError

    def create_category(self, *, clinic_id: int, name: str, color: str, display_order: int) -> int:
        raise NotImplementedError

    def delete_category(self, category_id: int) -> bool:
        """Deletes the category; its items become uncategorised."""

        raise NotImplementedError
