from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..clinics.repository import ClinicRepository
from ..clinics.service import ClinicService
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.logger import get_logger
from ..core.enums import ContractStatus, Role, SignerType, UserStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import EmploymentContract
from .repository import ContractRepository
from .terms import build_contract_data, revise_contract_data

logger = get_logger(__name__)

CLOSED_STATUSES = frozenset({ContractStatus.COMPLETED, ContractStatus.CANCELLED})


def next_status(contract: EmploymentContract, signer_type: SignerType) -> ContractStatus:
    """Status after `signer_type` signs: both parties -> completed, else wait for the other side."""
    signed = {s.signer_type for s in contract.signatures} | {signer_type}
    if signed == set(SignerType):
        return ContractStatus.COMPLETED
    if signer_type == SignerType.EMPLOYER:
        return ContractStatus.PENDING_EMPLOYEE_SIGNATURE
    return ContractStatus.PENDING_EMPLOYER_SIGNATURE


class ContractService:
    """Employment contracts: drafting, both-party signing, cancellation."""

    def __init__(self, contracts: ContractRepository, users: UserRepository, clinics: ClinicRepository):
        self._contracts = contracts
        self._users = users
        self._clinics = ClinicService(clinics)

    @staticmethod
    def _require_manager(role: Role) -> None:
        if not role.is_manager:
            raise AuthorizationError("근로계약서는 관리자만 관리할 수 있습니다")

    def get_contract(
        self, clinic_id: int, contract_id: int, *, viewer_id: int, viewer_role: Role
    ) -> EmploymentContract:
        contract = self._contracts.get_contract(int(clinic_id), int(contract_id))
        # staff only see their own contracts
        if not contract or (not viewer_role.is_manager and contract.employee_user_id != int(viewer_id)):
            raise NotFoundError("근로계약서를 찾을 수 없습니다")
        return contract

    def list_contracts(
        self,
        clinic_id: int,
        *,
        viewer_id: int,
        viewer_role: Role,
        status: Optional[ContractStatus] = None,
        employee_user_id: Optional[int] = None,
    ) -> Sequence[EmploymentContract]:
        if not viewer_role.is_manager:
            employee_user_id = int(viewer_id)
        return self._contracts.list_contracts(int(clinic_id), status=status, employee_user_id=employee_user_id)

    def create_contract(
        self,
        *,
        current_role: Role,
        clinic_id: int,
        created_by: int,
        employee_user_id: Any,
        data: Mapping[str, Any],
        today=None,
    ) -> EmploymentContract:
        self._require_manager(current_role)
        try:
            employee_user_id = int(employee_user_id or 0)
        except (TypeError, ValueError):
            employee_user_id = 0
        if not employee_user_id:
            raise ValidationError("계약할 직원을 선택해주세요")

        employee = self._users.get_by_id(employee_user_id)
        if not employee or employee.clinic_id != int(clinic_id):
            raise NotFoundError("직원을 찾을 수 없습니다")
        if employee.status in (UserStatus.REJECTED, UserStatus.RESIGNED):
            raise ValidationError("퇴사 또는 거절된 직원과는 계약서를 작성할 수 없습니다")

        contract_data = build_contract_data(
            data,
            employee=employee,
            clinic=self._clinics.get_clinic(clinic_id),
            hours=self._clinics.get_operating_hours(clinic_id),
            today=today or now_local().date(),
        )
        contract = EmploymentContract(
            contract_id=0,
            clinic_id=int(clinic_id),
            employee_user_id=employee.user_id,
            employer_user_id=int(created_by),
            contract_data=contract_data,
            status=ContractStatus.DRAFT,
            created_by=int(created_by),
            notes=(str(data.get("notes") or "").strip() or None),
            employee_name=employee.name,
        )
        contract_id = self._contracts.create_contract(contract)
        logger.info("Contract %s drafted clinic=%s employee=%s", contract_id, clinic_id, employee.user_id)
        return replace(contract, contract_id=contract_id)

    def update_contract(
        self, *, current_role: Role, clinic_id: int, contract_id: int, data: Mapping[str, Any]
    ) -> EmploymentContract:
        self._require_manager(current_role)
        contract = self._contracts.get_contract(int(clinic_id), int(contract_id))
        if not contract:
            raise NotFoundError("근로계약서를 찾을 수 없습니다")
        if not contract.is_editable:
            raise ValidationError("서명이 시작된 계약서는 수정할 수 없습니다")

        contract_data = revise_contract_data(contract.contract_data, data)
        notes = (str(data.get("notes") or "").strip() or None) if "notes" in data else contract.notes
        version = contract.version + 1
        self._contracts.update_terms(contract.contract_id, contract_data, notes=notes, version=version)
        logger.info("Contract %s revised to v%s", contract.contract_id, version)
        return replace(contract, contract_data=contract_data, notes=notes, version=version)

    def sign_contract(
        self,
        *,
        clinic_id: int,
        contract_id: int,
        signer_id: int,
        signer_role: Role,
        signature_data: Any,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EmploymentContract:
        """Record one party's signature; the second signature completes the contract.

        Completing a contract sets the employee's hire date to the contract start.
        """
        contract = self.get_contract(clinic_id, contract_id, viewer_id=signer_id, viewer_role=signer_role)
        if contract.status in CLOSED_STATUSES:
            raise ValidationError("완료되었거나 취소된 계약서에는 서명할 수 없습니다")

        if contract.employee_user_id == int(signer_id):
            signer_type = SignerType.EMPLOYEE
        elif signer_role.is_manager:
            signer_type = SignerType.EMPLOYER
        else:
            raise AuthorizationError("이 계약서에 서명할 권한이 없습니다")

        if contract.signed_by(signer_type):
            raise ValidationError("이미 서명한 계약서입니다")
        if not str(signature_data or "").strip():
            raise ValidationError("서명 데이터가 없습니다")

        now = now or now_local()
        signature = self._contracts.add_signature(
            contract_id=contract.contract_id,
            signer_user_id=int(signer_id),
            signer_type=signer_type,
            signature_data=str(signature_data),
            signed_at=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        status = next_status(contract, signer_type)
        completed_at = now if status == ContractStatus.COMPLETED else None
        self._contracts.set_status(contract.contract_id, status, completed_at=completed_at)

        if status == ContractStatus.COMPLETED:
            start = parse_iso_date(contract.contract_data["employment_period_start"])
            self._users.set_hire_date(contract.employee_user_id, start)
            logger.info("Contract %s completed, hire date of %s set to %s", contract.contract_id, contract.employee_user_id, start)
        else:
            logger.info("Contract %s signed by %s", contract.contract_id, signer_type.value)

        return replace(
            contract,
            status=status,
            completed_at=completed_at,
            signatures=contract.signatures + (signature,),
        )

    def cancel_contract(
        self,
        *,
        current_role: Role,
        clinic_id: int,
        contract_id: int,
        cancelled_by: int,
        reason: Any,
        now: Optional[datetime] = None,
    ) -> EmploymentContract:
        self._require_manager(current_role)
        contract = self._contracts.get_contract(int(clinic_id), int(contract_id))
        if not contract:
            raise NotFoundError("근로계약서를 찾을 수 없습니다")
        if contract.status in CLOSED_STATUSES:
            raise ValidationError("완료되었거나 이미 취소된 계약서입니다")

        reason = str(reason or "").strip()
        if not reason:
            raise ValidationError("취소 사유를 입력해주세요")

        now = now or now_local()
        self._contracts.cancel(contract.contract_id, cancelled_by=int(cancelled_by), reason=reason, cancelled_at=now)
        logger.info("Contract %s cancelled by %s", contract.contract_id, cancelled_by)
        return replace(
            contract,
            status=ContractStatus.CANCELLED,
            cancelled_at=now,
            cancelled_by=int(cancelled_by),
            cancellation_reason=reason,
        )

    def delete_contract(self, *, current_role: Role, clinic_id: int, contract_id: int) -> None:
        self._require_manager(current_role)
        contract = self._contracts.get_contract(int(clinic_id), int(contract_id))
        if not contract:
            raise NotFoundError("근로계약서를 찾을 수 없습니다")
        if contract.status != ContractStatus.CANCELLED:
            raise ValidationError("취소된 계약서만 삭제할 수 있습니다")
        self._contracts.delete_contract(contract.contract_id)
        logger.info("Contract %s deleted", contract.contract_id)
