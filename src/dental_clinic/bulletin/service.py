from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.logger import get_logger
from ..common.validators import as_flag, require_non_empty
from ..core.constants import DEFAULT_PAGE_SIZE, UPCOMING_SCHEDULE_LIMIT
from ..core.enums import AnnouncementCategory, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Announcement
from .repository import BulletinRepository

logger = get_logger(__name__)

DATED_CATEGORIES = frozenset({AnnouncementCategory.SCHEDULE, AnnouncementCategory.HOLIDAY})


def category_arg(value: Any) -> Optional[AnnouncementCategory]:
    if value in (None, ""):
        return None
    try:
        return AnnouncementCategory(value)
    except ValueError:
        raise ValidationError("공지 분류 값이 올바르지 않습니다")


def _optional_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    return parse_iso_date(str(value))


class BulletinService:
    """Clinic announcements (공지사항); managers post, everyone reads."""

    def __init__(self, bulletin: BulletinRepository):
        self._bulletin = bulletin

    @staticmethod
    def _require_manager(role: Role) -> None:
        if not role.is_manager:
            raise AuthorizationError("공지사항은 관리자만 작성할 수 있습니다")

    def list_announcements(
        self,
        clinic_id: int,
        *,
        category: Optional[AnnouncementCategory] = None,
        search: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Tuple[Sequence[Announcement], int]:
        return self._bulletin.list_announcements(
            int(clinic_id),
            category=category,
            search=(search or "").strip() or None,
            limit=max(1, min(int(limit), 100)),
            offset=max(0, int(offset)),
        )

    def read_announcement(self, clinic_id: int, announcement_id: int) -> Announcement:
        """Open a post; every read counts as a view."""
        announcement = self._bulletin.get_announcement(int(clinic_id), int(announcement_id))
        if not announcement:
            raise NotFoundError("공지사항을 찾을 수 없습니다")
        self._bulletin.increment_view_count(announcement.announcement_id)
        return replace(announcement, view_count=announcement.view_count + 1)

    def upcoming_schedules(
        self, clinic_id: int, *, today: Optional[date] = None, limit: int = UPCOMING_SCHEDULE_LIMIT
    ) -> Sequence[Announcement]:
        return self._bulletin.list_upcoming(int(clinic_id), since=today or now_local().date(), limit=int(limit))

    def _apply(self, base: Announcement, data: Mapping[str, Any]) -> Announcement:
        title = require_non_empty(str(data.get("title", base.title) or ""), "제목")
        content = require_non_empty(str(data.get("content", base.content) or ""), "내용")
        category = category_arg(data.get("category")) or base.category
        start = _optional_date(data["start_date"]) if "start_date" in data else base.start_date
        end = _optional_date(data["end_date"]) if "end_date" in data else base.end_date

        if category in DATED_CATEGORIES and start is None:
            raise ValidationError("일정 공지는 시작일을 입력해주세요")
        if start and end and end < start:
            raise ValidationError("종료일은 시작일 이후여야 합니다")

        return replace(
            base,
            title=title,
            content=content,
            category=category,
            is_pinned=as_flag(data, "is_pinned", base.is_pinned),
            is_important=as_flag(data, "is_important", base.is_important),
            start_date=start,
            end_date=end,
        )

    def post_announcement(
        self, *, current_role: Role, clinic_id: int, author_id: int, data: Mapping[str, Any]
    ) -> Announcement:
        self._require_manager(current_role)
        draft = Announcement(
            announcement_id=0,
            clinic_id=int(clinic_id),
            title="",
            content="",
            category=AnnouncementCategory.GENERAL,
            author_id=int(author_id),
        )
        announcement = self._apply(draft, data)
        announcement_id = self._bulletin.create_announcement(announcement)
        logger.info("Announcement %s posted clinic=%s", announcement_id, clinic_id)
        return replace(announcement, announcement_id=announcement_id)

    def update_announcement(
        self, *, current_role: Role, clinic_id: int, announcement_id: int, data: Mapping[str, Any]
    ) -> Announcement:
        self._require_manager(current_role)
        current = self._bulletin.get_announcement(int(clinic_id), int(announcement_id))
        if not current:
            raise NotFoundError("공지사항을 찾을 수 없습니다")
        announcement = self._apply(current, data)
        self._bulletin.update_announcement(announcement)
        return announcement

    def delete_announcement(self, *, current_role: Role, clinic_id: int, announcement_id: int) -> None:
        self._require_manager(current_role)
        if not self._bulletin.get_announcement(int(clinic_id), int(announcement_id)):
            raise NotFoundError("공지사항을 찾을 수 없습니다")
        self._bulletin.delete_announcement(int(announcement_id))
        logger.info("Announcement %s deleted clinic=%s", announcement_id, clinic_id)
