from datetime import date

import pytest

from dental_clinic.core.enums import AnnouncementCategory, Role
from dental_clinic.core.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def service(container):
    return container.bulletin_service


def _post(service, **data):
    body = {"title": "공지", "content": "내용", **data}
    return service.post_announcement(current_role=Role.OWNER, clinic_id=1, author_id=1, data=body)


def test_post_defaults_to_general(service):
    a = _post(service)

    assert a.category == AnnouncementCategory.GENERAL
    assert a.is_pinned is False
    assert a.announcement_id == 1


def test_staff_cannot_post(service):
    with pytest.raises(AuthorizationError):
        service.post_announcement(current_role=Role.STAFF, clinic_id=1, author_id=2, data={"title": "a", "content": "b"})


@pytest.mark.parametrize(
    "data",
    [
        {"title": "  "},
        {"content": ""},
        {"category": "party"},
        {"category": "schedule"},
        {"category": "holiday", "start_date": "2024-05-06", "end_date": "2024-05-01"},
    ],
)
def test_invalid_announcements(service, data):
    with pytest.raises(ValidationError):
        _post(service, **data)


def test_pinned_posts_come_first(service):
    _post(service, title="첫 공지")
    _post(service, title="고정 공지", is_pinned=True)
    _post(service, title="최근 공지")

    items, total = service.list_announcements(1)

    assert total == 3
    assert [a.title for a in items] == ["고정 공지", "최근 공지", "첫 공지"]


def test_search_and_category_filter(service):
    _post(service, title="회식 안내", category="schedule", start_date="2024-05-10")
    _post(service, title="소독 절차", content="멸균기 점검")

    items, total = service.list_announcements(1, search="멸균")
    assert total == 1 and items[0].title == "소독 절차"

    items, _ = service.list_announcements(1, category=AnnouncementCategory.SCHEDULE)
    assert [a.title for a in items] == ["회식 안내"]


def test_reading_counts_views(service, bulletin_repo):
    a = _post(service)

    assert service.read_announcement(1, a.announcement_id).view_count == 1
    service.read_announcement(1, a.announcement_id)
    assert bulletin_repo.announcements[a.announcement_id].view_count == 2


def test_upcoming_schedules_skip_past_and_general_posts(service):
    _post(service, title="지난 휴진", category="holiday", start_date="2024-04-01")
    _post(service, title="일반")
    _post(service, title="어린이날 휴진", category="holiday", start_date="2024-05-05")
    _post(service, title="워크숍", category="schedule", start_date="2024-05-02", end_date="2024-05-03")

    upcoming = service.upcoming_schedules(1, today=date(2024, 5, 1))

    assert [a.title for a in upcoming] == ["워크숍", "어린이날 휴진"]


def test_update_keeps_unsent_fields(service):
    a = _post(service, title="원래 제목", is_important=True)

    updated = service.update_announcement(
        current_role=Role.MANAGER, clinic_id=1, announcement_id=a.announcement_id, data={"title": "바뀐 제목"}
    )

    assert updated.title == "바뀐 제목"
    assert updated.content == "내용"
    assert updated.is_important is True


def test_delete_unknown_announcement(service):
    with pytest.raises(NotFoundError):
        service.delete_announcement(current_role=Role.OWNER, clinic_id=1, announcement_id=42)
