from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AnnouncementCategory


@dataclass(frozen=True)
class Announcement:
    """공지사항. Schedule and holiday posts carry a date range."""

    announcement_id: int
    clinic_id: int
    title: str
    content: str
    category: AnnouncementCategory
    author_id: int
    is_pinned: bool = False
    is_important: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    view_count: int = 0
    created_at: Optional[datetime] = None
    author_name: Optional[str] = None
