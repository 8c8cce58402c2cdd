from __future__ import annotations

from typing import Any

from ..common.logger import get_logger
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from . import hours as hours_rules
from .model import Clinic, OperatingHours
from .repository import ClinicRepository

logger = get_logger(__name__)


class ClinicService:
    """Use case: clinic profile and operating hours."""

    def __init__(self, clinics: ClinicRepository):
        self._clinics = clinics

    def get_clinic(self, clinic_id: int) -> Clinic:
        clinic = self._clinics.get_by_id(int(clinic_id))
        if not clinic:
            raise NotFoundError("병원 정보를 찾을 수 없습니다")
        return clinic

    def get_operating_hours(self, clinic_id: int) -> OperatingHours:
        return hours_rules.merge_operating_hours(self._clinics.get_hours(int(clinic_id)))

    def save_operating_hours(self, *, current_role: Role, clinic_id: int, raw: Any) -> OperatingHours:
        if not current_role.is_manager:
            raise AuthorizationError("진료시간은 관리자만 변경할 수 있습니다")
        if not isinstance(raw, dict):
            raise ValidationError("진료시간 형식이 올바르지 않습니다")

        prepared = hours_rules.prepare_for_save(hours_rules.merge_operating_hours(raw))
        for key, entry in prepared.items():
            if entry.start_time and entry.end_time and entry.end_time <= entry.start_time:
                raise ValidationError(f"{key}: 종료 시간은 시작 시간 이후여야 합니다")
            if entry.break_start and entry.break_end and entry.break_end <= entry.break_start:
                raise ValidationError(f"{key}: 휴게 종료 시간은 시작 시간 이후여야 합니다")

        self._clinics.save_hours(int(clinic_id), hours_rules.to_dict(prepared))
        logger.info("Operating hours saved for clinic %s", clinic_id)
        return prepared
