from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_identity, fail, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role, UserStatus
from ..core.exceptions import ValidationError
from .model import User


def _user_view(u: User) -> dict:
    return {
        "user_id": u.user_id,
        "name": u.name,
        "email": u.email,
        "role": u.role.value,
        "status": u.status.value,
        "phone": u.phone,
        "hire_date": u.hire_date.isoformat() if u.hire_date else None,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    @json_endpoint
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.permanent = bool(body.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["clinic_id"] = s_user.clinic_id
        session["role"] = s_user.role.value
        session["name"] = s_user.name
        return ok({"user_id": s_user.user_id, "clinic_id": s_user.clinic_id, "role": s_user.role.value, "name": s_user.name})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="로그아웃되었습니다")

    @app.route("/api/auth/signup", methods=["POST"], endpoint="signup")
    @json_endpoint
    def signup():
        body = json_body()
        try:
            role = Role(body.get("role") or Role.STAFF.value)
            clinic_id = int(body.get("clinic_id") or 0)
        except ValueError:
            raise ValidationError("가입 정보가 올바르지 않습니다")
        if not clinic_id:
            return fail("병원을 선택해주세요", 400)

        hire_date = parse_iso_date(body["hire_date"]) if body.get("hire_date") else None
        user_id = container.staff_service.register_staff(
            clinic_id=clinic_id,
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            role=role,
            phone=body.get("phone"),
            hire_date=hire_date,
        )
        return ok({"user_id": user_id}, message="가입 신청이 완료되었습니다. 관리자 승인 후 이용할 수 있습니다.", status=201)

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    @json_endpoint
    def me():
        ident = current_identity()
        return ok(_user_view(container.staff_service.get_staff(ident.clinic_id, ident.user_id)))

    @app.route("/api/staff", methods=["GET"], endpoint="staff_list")
    @manager_required
    @json_endpoint
    def staff_list():
        status_s = request.args.get("status")
        try:
            status = UserStatus(status_s) if status_s else None
        except ValueError:
            raise ValidationError("상태 값이 올바르지 않습니다")
        users = container.staff_service.list_staff(current_identity().clinic_id, status=status)
        return ok([_user_view(u) for u in users])

    @app.route("/api/staff/<int:user_id>/<action>", methods=["POST"], endpoint="staff_decide")
    @manager_required
    @json_endpoint
    def staff_decide(user_id: int, action: str):
        ident = current_identity()
        handlers = {
            "approve": container.staff_service.approve,
            "reject": container.staff_service.reject,
            "resign": container.staff_service.resign,
        }
        handler = handlers.get(action)
        if handler is None:
            return fail("지원하지 않는 작업입니다", 404)
        handler(current_role=ident.role, clinic_id=ident.clinic_id, user_id=user_id)
        return ok(message="처리되었습니다")
