from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import current_app, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .logger import get_logger

logger = get_logger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


@dataclass(frozen=True)
class Identity:
    """Who is calling, as stored in the Flask session at login."""

    user_id: int
    clinic_id: int
    role: Role
    name: str


def current_identity() -> Identity:
    return Identity(
        user_id=int(session["user_id"]),
        clinic_id=int(session["clinic_id"]),
        role=Role(session["role"]),
        name=session.get("name", ""),
    )


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def ok(data: Any = None, *, message: str | None = None, status: int = 200):
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("로그인이 필요합니다", 401)
        return view(*args, **kwargs)

    return wrapper


def manager_required(view):
    """Allow only owner/manager/master_admin."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("로그인이 필요합니다", 401)
        if not Role(session.get("role")).is_manager:
            return fail("권한이 없습니다", 403)
        return view(*args, **kwargs)

    return wrapper


def json_endpoint(view):
    """Translate domain errors into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            for err, status in _STATUS_BY_ERROR:
                if isinstance(e, err):
                    return fail(str(e), status)
            return fail(str(e), 400)
        except Exception as e:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            if bool(current_app.config.get("DEBUG", False)):
                return fail(f"시스템 오류: {e}", 500)
            return fail("시스템 오류가 발생했습니다", 500)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("요청 본문은 JSON 객체여야 합니다")
    return data
