from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: a clinic member (owner, manager or staff).

    Plain data object; no database access here.
    """

    user_id: int
    clinic_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    status: UserStatus
    phone: Optional[str] = None
    hire_date: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
