from __future__ import annotations

from flask import Flask, request

from ..common.web import current_identity, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE
from .model import Announcement
from .service import category_arg


def _announcement_view(a: Announcement) -> dict:
    return {
        "announcement_id": a.announcement_id,
        "title": a.title,
        "content": a.content,
        "category": a.category.value,
        "is_pinned": a.is_pinned,
        "is_important": a.is_important,
        "start_date": a.start_date.isoformat() if a.start_date else None,
        "end_date": a.end_date.isoformat() if a.end_date else None,
        "author_id": a.author_id,
        "author_name": a.author_name or "알 수 없음",
        "view_count": a.view_count,
        "created_at": a.created_at.strftime("%Y-%m-%d %H:%M:%S") if a.created_at else None,
    }


def register(app: Flask, container: Container) -> None:
    service = container.bulletin_service

    @app.route("/api/bulletin/announcements", methods=["GET"], endpoint="announcements_list")
    @login_required
    @json_endpoint
    def list_announcements():
        items, total = service.list_announcements(
            current_identity().clinic_id,
            category=category_arg(request.args.get("category")),
            search=request.args.get("search"),
            limit=request.args.get("limit", DEFAULT_PAGE_SIZE, type=int),
            offset=request.args.get("offset", 0, type=int),
        )
        return ok({"items": [_announcement_view(a) for a in items], "total": total})

    @app.route("/api/bulletin/announcements/upcoming", methods=["GET"], endpoint="announcements_upcoming")
    @login_required
    @json_endpoint
    def upcoming():
        return ok([_announcement_view(a) for a in service.upcoming_schedules(current_identity().clinic_id)])

    @app.route("/api/bulletin/announcements/<int:announcement_id>", methods=["GET"], endpoint="announcements_get")
    @login_required
    @json_endpoint
    def read_announcement(announcement_id: int):
        return ok(_announcement_view(service.read_announcement(current_identity().clinic_id, announcement_id)))

    @app.route("/api/bulletin/announcements", methods=["POST"], endpoint="announcements_post")
    @manager_required
    @json_endpoint
    def post_announcement():
        ident = current_identity()
        announcement = service.post_announcement(
            current_role=ident.role, clinic_id=ident.clinic_id, author_id=ident.user_id, data=json_body()
        )
        return ok(_announcement_view(announcement), message="공지사항이 등록되었습니다", status=201)

    @app.route("/api/bulletin/announcements/<int:announcement_id>", methods=["PUT"], endpoint="announcements_update")
    @manager_required
    @json_endpoint
    def update_announcement(announcement_id: int):
        ident = current_identity()
        announcement = service.update_announcement(
            current_role=ident.role, clinic_id=ident.clinic_id, announcement_id=announcement_id, data=json_body()
        )
        return ok(_announcement_view(announcement), message="공지사항이 수정되었습니다")

    @app.route("/api/bulletin/announcements/<int:announcement_id>", methods=["DELETE"], endpoint="announcements_delete")
    @manager_required
    @json_endpoint
    def delete_announcement(announcement_id: int):
        ident = current_identity()
        service.delete_announcement(current_role=ident.role, clinic_id=ident.clinic_id, announcement_id=announcement_id)
        return ok(message="공지사항이 삭제되었습니다")
