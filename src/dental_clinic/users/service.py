from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.logger import get_logger
from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Role, UserStatus
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    clinic_id: int
    name: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("이메일 또는 비밀번호가 올바르지 않습니다")

        try:
            valid = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            valid = False

        if not valid:
            raise AuthenticationError("이메일 또는 비밀번호가 올바르지 않습니다")
        if user.status == UserStatus.PENDING:
            raise AuthenticationError("관리자 승인 대기 중인 계정입니다")
        if not user.is_active:
            raise AuthenticationError("이메일 또는 비밀번호가 올바르지 않습니다")

        logger.info("User %s logged in (clinic %s)", user.user_id, user.clinic_id)
        return SessionUser(user_id=user.user_id, clinic_id=user.clinic_id, name=user.name, role=user.role)


class StaffService:
    """Use case: clinic staff directory and approval workflow."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_staff(self, clinic_id: int, *, status: Optional[UserStatus] = None) -> Sequence[User]:
        return self._users.list_by_clinic(int(clinic_id), status=status)

    def get_staff(self, clinic_id: int, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user or user.clinic_id != int(clinic_id):
            raise NotFoundError("직원을 찾을 수 없습니다")
        return user

    def register_staff(
        self,
        *,
        clinic_id: int,
        name: str,
        email: str,
        password: str,
        role: Role = Role.STAFF,
        phone: Optional[str] = None,
        hire_date: Optional[date] = None,
    ) -> int:
        name = require_non_empty(name, "이름")
        email = require_non_empty(email, "이메일").lower()
        require_min_length(password, "비밀번호", 6)

        if "@" not in email:
            raise ValidationError("이메일 형식이 올바르지 않습니다")
        if role in (Role.OWNER, Role.MASTER_ADMIN):
            raise ValidationError("이 화면에서는 원장/마스터 계정을 만들 수 없습니다")
        if self._users.get_by_email(email):
            raise ValidationError("이미 가입된 이메일입니다")

        user_id = self._users.create_user(
            clinic_id=int(clinic_id),
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            phone=(phone or "").strip() or None,
            hire_date=hire_date,
        )
        logger.info("Staff %s registered for clinic %s (pending approval)", user_id, clinic_id)
        return user_id

    def _decide(self, *, current_role: Role, clinic_id: int, user_id: int, status: UserStatus) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("권한이 없습니다")

        user = self.get_staff(clinic_id, user_id)
        if user.status != UserStatus.PENDING:
            raise ValidationError("승인 대기 중인 계정이 아닙니다")
        if not self._users.set_status(user.user_id, status=status):
            raise ValidationError("상태 변경에 실패했습니다")
        logger.info("User %s -> %s", user.user_id, status.value)

    def approve(self, *, current_role: Role, clinic_id: int, user_id: int) -> None:
        self._decide(current_role=current_role, clinic_id=clinic_id, user_id=user_id, status=UserStatus.ACTIVE)

    def reject(self, *, current_role: Role, clinic_id: int, user_id: int) -> None:
        self._decide(current_role=current_role, clinic_id=clinic_id, user_id=user_id, status=UserStatus.REJECTED)

    def resign(self, *, current_role: Role, clinic_id: int, user_id: int) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("권한이 없습니다")

        user = self.get_staff(clinic_id, user_id)
        if user.role == Role.OWNER:
            raise ValidationError("원장 계정은 퇴사 처리할 수 없습니다")
        if user.status != UserStatus.ACTIVE:
            raise ValidationError("재직 중인 직원만 퇴사 처리할 수 있습니다")
        if not self._users.set_status(user.user_id, status=UserStatus.RESIGNED):
            raise ValidationError("상태 변경에 실패했습니다")
        logger.info("User %s resigned from clinic %s", user.user_id, clinic_id)
