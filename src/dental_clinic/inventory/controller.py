from __future__ import annotations

from dataclasses import asdict

from flask import Flask, request

from ..common.web import current_identity, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from .model import InventoryLog


def _log_view(log: InventoryLog) -> dict:
    data = asdict(log)
    data["logged_at"] = log.logged_at.strftime("%Y-%m-%d %H:%M:%S")
    return data


def _optional_int(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("카테고리 값이 올바르지 않습니다")


def register(app: Flask, container: Container) -> None:
    service = container.inventory_service

    @app.route("/api/inventory", methods=["GET"], endpoint="inventory_list")
    @login_required
    @json_endpoint
    def list_items():
        return ok([asdict(i) for i in service.list_items(current_identity().clinic_id)])

    @app.route("/api/inventory", methods=["POST"], endpoint="inventory_add")
    @login_required
    @json_endpoint
    def add_item():
        body = json_body()
        item = service.add_item(
            clinic_id=current_identity().clinic_id,
            name=body.get("name") or "",
            stock=body.get("stock", 0),
            category_id=_optional_int(body.get("category_id")),
        )
        return ok(asdict(item), message="선물이 등록되었습니다", status=201)

    @app.route("/api/inventory/<int:item_id>/stock", methods=["POST"], endpoint="inventory_stock")
    @login_required
    @json_endpoint
    def adjust_stock(item_id: int):
        body = json_body()
        item = service.adjust_stock(
            clinic_id=current_identity().clinic_id,
            item_id=item_id,
            change=body.get("change"),
            reason=body.get("reason"),
        )
        return ok(asdict(item), message="재고가 변경되었습니다")

    @app.route("/api/inventory/<int:item_id>/category", methods=["PUT"], endpoint="inventory_category")
    @login_required
    @json_endpoint
    def assign_category(item_id: int):
        item = service.assign_category(
            clinic_id=current_identity().clinic_id,
            item_id=item_id,
            category_id=_optional_int(json_body().get("category_id")),
        )
        return ok(asdict(item))

    @app.route("/api/inventory/<int:item_id>", methods=["DELETE"], endpoint="inventory_delete")
    @manager_required
    @json_endpoint
    def delete_item(item_id: int):
        ident = current_identity()
        service.delete_item(current_role=ident.role, clinic_id=ident.clinic_id, item_id=item_id)
        return ok(message="선물이 삭제되었습니다")

    @app.route("/api/inventory/logs", methods=["GET"], endpoint="inventory_logs")
    @login_required
    @json_endpoint
    def list_logs():
        limit = request.args.get("limit", DEFAULT_HISTORY_LIMIT, type=int)
        return ok([_log_view(log) for log in service.list_logs(current_identity().clinic_id, limit=limit)])

    @app.route("/api/gift-categories", methods=["GET"], endpoint="gift_categories")
    @login_required
    @json_endpoint
    def list_categories():
        return ok([asdict(c) for c in service.list_categories(current_identity().clinic_id)])

    @app.route("/api/gift-categories", methods=["POST"], endpoint="gift_category_add")
    @manager_required
    @json_endpoint
    def add_category():
        body = json_body()
        category = service.add_category(
            clinic_id=current_identity().clinic_id,
            name=body.get("name") or "",
            color=body.get("color"),
            display_order=body.get("display_order", 0),
        )
        return ok(asdict(category), status=201)

    @app.route("/api/gift-categories/<int:category_id>", methods=["DELETE"], endpoint="gift_category_delete")
    @manager_required
    @json_endpoint
    def delete_category(category_id: int):
        ident = current_identity()
        service.delete_category(current_role=ident.role, clinic_id=ident.clinic_id, category_id=category_id)
        return ok(message="카테고리가 삭제되었습니다")
