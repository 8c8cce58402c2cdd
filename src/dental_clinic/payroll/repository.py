from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import StatementStatus
from .model import PayrollSetting, PayrollStatement


class PayrollRepository(Protocol):
    def list_settings(self, clinic_id: int) -> Sequence[PayrollSetting]:
        raise NotImplementedError

    def get_setting(self, clinic_id: int, employee_user_id: int) -> Optional[PayrollSetting]:
        raise NotImplementedError

    def upsert_setting(self, setting: PayrollSetting, *, updated_by: int) -> int:
        raise NotImplementedError

    def delete_setting(self, clinic_id: int, employee_user_id: int) -> bool:
        raise NotImplementedError

    def statement_exists(self, clinic_id: int, employee_user_id: int, year: int, month: int) -> bool:
        raise NotImplementedError

    def create_statement(self, statement: PayrollStatement) -> int:
        raise NotImplementedError

    def list_statements(
        self,
        clinic_id: int,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_user_id: Optional[int] = None,
        status: Optional[StatementStatus] = None,
    ) -> Sequence[PayrollStatement]:
        raise NotImplementedError

    def get_statement(self, clinic_id: int, statement_id: int) -> Optional[PayrollStatement]:
        raise NotImplementedError

    def update_statement(self, statement: PayrollStatement) -> bool:
        raise NotImplementedError

    def set_statement_status(self, statement_id: int, status: StatementStatus) -> bool:
        raise NotImplementedError

    def delete_statement(self, statement_id: int) -> bool:
        raise NotImplementedError
