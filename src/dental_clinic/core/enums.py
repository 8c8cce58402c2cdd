from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role inside a clinic (used for permission checks)."""

    MASTER_ADMIN = "master_admin"
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"

    @property
    def is_manager(self) -> bool:
        return self in MANAGER_ROLES


MANAGER_ROLES = frozenset({Role.MASTER_ADMIN, Role.OWNER, Role.MANAGER})


class UserStatus(str, Enum):
    """Account approval lifecycle."""

    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    RESIGNED = "resigned"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    ON_TIME = "ON_TIME"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"
    HOLIDAY = "HOLIDAY"


class SalaryType(str, Enum):
    """How the contract amount is stated: before (gross) or after (net) tax."""

    GROSS = "gross"
    NET = "net"


class StatementStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    SENT = "sent"


class ConsultStatus(str, Enum):
    """O = treatment proceeds, X = on hold."""

    PROCEED = "O"
    HOLD = "X"


class ContractStatus(str, Enum):
    """Employment contract lifecycle: draft -> signatures -> completed (or cancelled)."""

    DRAFT = "draft"
    PENDING_EMPLOYEE_SIGNATURE = "pending_employee_signature"
    PENDING_EMPLOYER_SIGNATURE = "pending_employer_signature"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SignerType(str, Enum):
    EMPLOYER = "employer"
    EMPLOYEE = "employee"


class AnnouncementCategory(str, Enum):
    SCHEDULE = "schedule"  # 일정 (휴가, 회식 등)
    HOLIDAY = "holiday"  # 연휴/휴진
    GENERAL = "general"
