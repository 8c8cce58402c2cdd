from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this protocol, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_clinic(self, clinic_id: int, *, status: Optional[UserStatus] = None) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        clinic_id: int,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        phone: Optional[str],
        hire_date: Optional[date],
    ) -> int:
        raise NotImplementedError

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        raise NotImplementedError

    def set_hire_date(self, user_id: int, hire_date: date) -> bool:
        raise NotImplementedError
