from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..core.enums import ContractStatus, SignerType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import ContractSignature, EmploymentContract
from .repository import ContractRepository


def _to_signature(r: Dict[str, Any]) -> ContractSignature:
    return ContractSignature(
        signature_id=int(r["signature_id"]),
        contract_id=int(r["contract_id"]),
        signer_user_id=int(r["signer_user_id"]),
        signer_type=SignerType(r["signer_type"]),
        signature_data=r["signature_data"],
        signed_at=r["signed_at"],
        ip_address=r.get("ip_address"),
        user_agent=r.get("user_agent"),
    )


def _to_contract(r: Dict[str, Any], signatures: Sequence[ContractSignature] = ()) -> EmploymentContract:
    return EmploymentContract(
        contract_id=int(r["contract_id"]),
        clinic_id=int(r["clinic_id"]),
        employee_user_id=int(r["employee_user_id"]),
        employer_user_id=int(r["employer_user_id"]),
        contract_data=from_json(r["contract_data"], {}),
        status=ContractStatus(r["status"]),
        version=int(r["version"]),
        created_by=r.get("created_by"),
        completed_at=r.get("completed_at"),
        cancelled_at=r.get("cancelled_at"),
        cancelled_by=r.get("cancelled_by"),
        cancellation_reason=r.get("cancellation_reason"),
        notes=r.get("notes"),
        employee_name=r.get("employee_name"),
        signatures=tuple(signatures),
    )


class MySQLContractRepository(ContractRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_contract(self, contract: EmploymentContract) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employment_contracts(
                    clinic_id, employee_user_id, employer_user_id, contract_data, status, version, notes, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    contract.clinic_id,
                    contract.employee_user_id,
                    contract.employer_user_id,
                    to_json(contract.contract_data),
                    contract.status.value,
                    contract.version,
                    contract.notes,
                    contract.created_by,
                ),
            )
            return int(cur.lastrowid)

    def get_contract(self, clinic_id: int, contract_id: int) -> Optional[EmploymentContract]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ec.*, u.name AS employee_name
                FROM employment_contracts ec
                JOIN users u ON u.user_id = ec.employee_user_id
                WHERE ec.clinic_id=%s AND ec.contract_id=%s
                """,
                (int(clinic_id), int(contract_id)),
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute(
                "SELECT * FROM contract_signatures WHERE contract_id=%s ORDER BY signed_at ASC",
                (int(contract_id),),
            )
            return _to_contract(r, [_to_signature(s) for s in fetchall(cur)])

    def list_contracts(
        self,
        clinic_id: int,
        *,
        status: Optional[ContractStatus] = None,
        employee_user_id: Optional[int] = None,
    ) -> Sequence[EmploymentContract]:
        sql = """
            SELECT ec.*, u.name AS employee_name
            FROM employment_contracts ec
            JOIN users u ON u.user_id = ec.employee_user_id
            WHERE ec.clinic_id=%s
        """
        params: List[Any] = [int(clinic_id)]
        if status is not None:
            sql += " AND ec.status=%s"
            params.append(status.value)
        if employee_user_id is not None:
            sql += " AND ec.employee_user_id=%s"
            params.append(int(employee_user_id))
        sql += " ORDER BY ec.created_at DESC, ec.contract_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_contract(r) for r in fetchall(cur)]

    def update_terms(self, contract_id: int, contract_data: Dict[str, Any], *, notes: Optional[str], version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employment_contracts SET contract_data=%s, notes=%s, version=%s WHERE contract_id=%s",
                (to_json(contract_data), notes, int(version), int(contract_id)),
            )
            return cur.rowcount > 0

    def set_status(self, contract_id: int, status: ContractStatus, *, completed_at: Optional[datetime] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employment_contracts SET status=%s, completed_at=%s WHERE contract_id=%s",
                (status.value, completed_at, int(contract_id)),
            )
            return cur.rowcount > 0

    def cancel(self, contract_id: int, *, cancelled_by: int, reason: str, cancelled_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employment_contracts
                SET status=%s, cancelled_at=%s, cancelled_by=%s, cancellation_reason=%s
                WHERE contract_id=%s
                """,
                (ContractStatus.CANCELLED.value, cancelled_at, int(cancelled_by), reason, int(contract_id)),
            )
            return cur.rowcount > 0

    def delete_contract(self, contract_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employment_contracts WHERE contract_id=%s", (int(contract_id),))
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO contract_signatures(
                    contract_id, signer_user_id, signer_type, signature_data, signed_at, ip_address, user_agent
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(contract_id),
                    int(signer_user_id),
                    signer_type.value,
                    signature_data,
                    signed_at,
                    ip_address,
                    (user_agent or "")[:255] or None,
                ),
            )
            signature_id = int(cur.lastrowid)

        return ContractSignature(
            signature_id=signature_id,
            contract_id=int(contract_id),
            signer_user_id=int(signer_user_id),
            signer_type=signer_type,
            signature_data=signature_data,
            signed_at=signed_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
