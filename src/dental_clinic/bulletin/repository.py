from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import AnnouncementCategory
from .model import Announcement


class BulletinRepository(Protocol):
    def list_announcements(
        self,
        clinic_id: int,
        *,
        category: Optional[AnnouncementCategory] = None,
        search: Optional[str] = None,
        limit: int,
        offset: int,
    ) -> Tuple[Sequence[Announcement], int]:
        """One page (pinned first, then newest) and the total match count."""
        raise NotImplementedError

    def get_announcement(self, clinic_id: int, announcement_id: int) -> Optional[Announcement]:
        raise NotImplementedError

    def create_announcement(self, announcement: Announcement) -> int:
        raise NotImplementedError

    def update_announcement(self, announcement: Announcement) -> bool:
        raise NotImplementedError

    def delete_announcement(self, announcement_id: int) -> bool:
        raise NotImplementedError

    def increment_view_count(self, announcement_id: int) -> None:
        raise NotImplementedError

    def list_upcoming(self, clinic_id: int, *, since: date, limit: int) -> Sequence[Announcement]:
        """Schedule/holiday posts starting on or after `since`, soonest first."""
        raise NotImplementedError
