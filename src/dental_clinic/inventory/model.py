from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_CATEGORY_COLOR = "#6b7280"


@dataclass(frozen=True)
class GiftCategory:
    category_id: int
    clinic_id: int
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    display_order: int = 0


@dataclass(frozen=True)
class GiftItem:
    """A patient gift kept in stock (matched to gift logs by name)."""

    item_id: int
    clinic_id: int
    name: str
    stock: int
    category_id: Optional[int] = None


@dataclass(frozen=True)
class InventoryLog:
    log_id: int
    clinic_id: int
    logged_at: datetime
    name: str
    reason: str
    change_amount: int
    old_stock: int
    new_stock: int
