from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.logger import get_logger
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import DEFAULT_CATEGORY_COLOR, GiftCategory, GiftItem, InventoryLog
from .repository import InventoryRepository

logger = get_logger(__name__)

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

REASON_NEW_ITEM = "신규 등록"
REASON_STOCK_IN = "재고 추가"
REASON_STOCK_OUT = "재고 차감"


class InventoryService:
    """Use case: gift stock, categories and the stock change log."""

    def __init__(self, inventory: InventoryRepository):
        self._inventory = inventory

    def list_items(self, clinic_id: int) -> Sequence[GiftItem]:
        return self._inventory.list_items(int(clinic_id))

    def get_item(self, clinic_id: int, item_id: int) -> GiftItem:
        item = self._inventory.get_item(int(clinic_id), int(item_id))
        if not item:
            raise NotFoundError("선물 항목을 찾을 수 없습니다")
        return item

    def find_by_name(self, clinic_id: int, name: str) -> Optional[GiftItem]:
        return self._inventory.get_item_by_name(int(clinic_id), name)

    def list_logs(self, clinic_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[InventoryLog]:
        return self._inventory.list_logs(int(clinic_id), limit=max(1, min(int(limit), 500)))

    def add_item(
        self,
        *,
        clinic_id: int,
        name: str,
        stock=0,
        category_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> GiftItem:
        name = require_non_empty(name or "", "선물 이름")
        stock = require_non_negative(stock, "재고")
        if self._inventory.get_item_by_name(int(clinic_id), name):
            raise ValidationError("이미 등록된 선물입니다")
        if category_id is not None:
            self.get_category(clinic_id, category_id)

        item_id = self._inventory.create_item(
            clinic_id=int(clinic_id), name=name, stock=stock, category_id=category_id
        )
        if stock > 0:
            self._inventory.add_log(
                clinic_id=int(clinic_id),
                logged_at=now or now_local(),
                name=name,
                reason=REASON_NEW_ITEM,
                change_amount=stock,
                old_stock=0,
                new_stock=stock,
            )
        logger.info("Gift item %s added to clinic %s (stock=%s)", name, clinic_id, stock)
        return GiftItem(item_id=item_id, clinic_id=int(clinic_id), name=name, stock=stock, category_id=category_id)

    def adjust_stock(
        self,
        *,
        clinic_id: int,
        item_id: int,
        change,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GiftItem:
        """Apply a signed stock change and log it. Stock never goes below zero."""
        try:
            change = int(change)
        except (TypeError, ValueError):
            raise ValidationError("변경 수량은 숫자여야 합니다")
        if change == 0:
            raise ValidationError("변경 수량을 입력해주세요")

        item = self.get_item(clinic_id, item_id)
        reason = (reason or "").strip() or (REASON_STOCK_IN if change > 0 else REASON_STOCK_OUT)
        return self._apply(item, change, reason, now)

    def apply_change_by_name(
        self, *, clinic_id: int, name: str, change: int, reason: str, now: Optional[datetime] = None
    ) -> Optional[GiftItem]:
        """Stock movement driven by gift logs; unknown gift names are ignored."""
        item = self._inventory.get_item_by_name(int(clinic_id), name)
        if not item or change == 0:
            return item
        return self._apply(item, int(change), reason, now)

    def _apply(self, item: GiftItem, change: int, reason: str, now: Optional[datetime]) -> GiftItem:
        new_stock = item.stock + change
        if new_stock < 0:
            raise ValidationError(f"재고가 부족합니다 ({item.name}: 현재 {item.stock}개)")

        self._inventory.set_stock(item.item_id, new_stock)
        self._inventory.add_log(
            clinic_id=item.clinic_id,
            logged_at=now or now_local(),
            name=item.name,
            reason=reason,
            change_amount=change,
            old_stock=item.stock,
            new_stock=new_stock,
        )
        return GiftItem(
            item_id=item.item_id,
            clinic_id=item.clinic_id,
            name=item.name,
            stock=new_stock,
            category_id=item.category_id,
        )

    def assign_category(self, *, clinic_id: int, item_id: int, category_id: Optional[int]) -> GiftItem:
        item = self.get_item(clinic_id, item_id)
        if category_id is not None:
            self.get_category(clinic_id, category_id)
        self._inventory.set_category(item.item_id, category_id)
        return GiftItem(
            item_id=item.item_id, clinic_id=item.clinic_id, name=item.name, stock=item.stock, category_id=category_id
        )

    def delete_item(self, *, current_role: Role, clinic_id: int, item_id: int) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("선물 삭제는 관리자만 가능합니다")
        item = self.get_item(clinic_id, item_id)
        self._inventory.delete_item(item.item_id)
        logger.info("Gift item %s deleted from clinic %s", item.name, clinic_id)

    # --- categories ---

    def list_categories(self, clinic_id: int) -> Sequence[GiftCategory]:
        return self._inventory.list_categories(int(clinic_id))

    def get_category(self, clinic_id: int, category_id: int) -> GiftCategory:
        category = self._inventory.get_category(int(clinic_id), int(category_id))
        if not category:
            raise NotFoundError("카테고리를 찾을 수 없습니다")
        return category

    def add_category(self, *, clinic_id: int, name: str, color: Optional[str] = None, display_order=0) -> GiftCategory:
        name = require_non_empty(name or "", "카테고리 이름")
        color = (color or DEFAULT_CATEGORY_COLOR).strip()
        if not _COLOR_RE.match(color):
            raise ValidationError("색상은 #RRGGBB 형식이어야 합니다")
        display_order = require_non_negative(display_order, "표시 순서")
        if any(c.name == name for c in self._inventory.list_categories(int(clinic_id))):
            raise ValidationError("이미 존재하는 카테고리입니다")

        category_id = self._inventory.create_category(
            clinic_id=int(clinic_id), name=name, color=color, display_order=display_order
        )
        return GiftCategory(
            category_id=category_id, clinic_id=int(clinic_id), name=name, color=color, display_order=display_order
        )

    def delete_category(self, *, current_role: Role, clinic_id: int, category_id: int) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("카테고리 삭제는 관리자만 가능합니다")
        category = self.get_category(clinic_id, category_id)
        self._inventory.delete_category(category.category_id)
