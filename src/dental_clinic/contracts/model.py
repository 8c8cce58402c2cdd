from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..core.enums import ContractStatus, SignerType


@dataclass(frozen=True)
class ContractSignature:
    signature_id: int
    contract_id: int
    signer_user_id: int
    signer_type: SignerType
    signature_data: str  # data URL of the signature image
    signed_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class EmploymentContract:
    """근로계약서: contract terms as a JSON document plus the signing lifecycle."""

    contract_id: int
    clinic_id: int
    employee_user_id: int
    employer_user_id: int
    contract_data: Dict[str, Any]
    status: ContractStatus = ContractStatus.DRAFT
    version: int = 1
    created_by: Optional[int] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    employee_name: Optional[str] = None
    signatures: Tuple[ContractSignature, ...] = field(default_factory=tuple)

    def signed_by(self, signer_type: SignerType) -> bool:
        return any(s.signer_type == signer_type for s in self.signatures)

    @property
    def is_editable(self) -> bool:
        return self.status == ContractStatus.DRAFT and not self.signatures
