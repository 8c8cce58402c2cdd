from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence

from ..core.enums import ContractStatus, SignerType
from .model import ContractSignature, EmploymentContract


class ContractRepository(Protocol):
    def create_contract(self, contract: EmploymentContract) -> int:
        raise NotImplementedError

    def get_contract(self, clinic_id: int, contract_id: int) -> Optional[EmploymentContract]:
        """Contract with its signatures, or None when it is not in this clinic."""
        raise NotImplementedError

    def list_contracts(
        self,
        clinic_id: int,
        *,
        status: Optional[ContractStatus] = None,
        employee_user_id: Optional[int] = None,
    ) -> Sequence[EmploymentContract]:
        raise NotImplementedError

    def update_terms(self, contract_id: int, contract_data: Dict[str, Any], *, notes: Optional[str], version: int) -> bool:
        raise NotImplementedError

    def set_status(self, contract_id: int, status: ContractStatus, *, completed_at: Optional[datetime] = None) -> bool:
        raise NotImplementedError

    def cancel(self, contract_id: int, *, cancelled_by: int, reason: str, cancelled_at: datetime) -> bool:
        raise NotImplementedError

    def delete_contract(self, contract_id: int) -> bool:
        raise NotImplementedError

    def add_signature(
        self,
        *,
        contract_id: int,
        signer_user_id: int,
        signer_type: SignerType,
        signature_data: str,
        signed_at: datetime,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> ContractSignature:
        raise NotImplementedError
