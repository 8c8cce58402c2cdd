from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import Flask, request

from ..common.web import current_identity, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from ..core.enums import ContractStatus
from ..core.exceptions import ValidationError
from .model import ContractSignature, EmploymentContract
from .terms import salary_total


def _stamp(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else None


def _signature_view(s: ContractSignature) -> dict:
    return {
        "signature_id": s.signature_id,
        "signer_user_id": s.signer_user_id,
        "signer_type": s.signer_type.value,
        "signature_data": s.signature_data,
        "signed_at": _stamp(s.signed_at),
    }


def _contract_view(c: EmploymentContract, *, detail: bool = False) -> dict:
    data = {
        "contract_id": c.contract_id,
        "employee_user_id": c.employee_user_id,
        "employee_name": c.employee_name,
        "employer_user_id": c.employer_user_id,
        "status": c.status.value,
        "version": c.version,
        "employment_period_start": c.contract_data.get("employment_period_start"),
        "employment_period_end": c.contract_data.get("employment_period_end"),
        "salary_total": salary_total(c.contract_data),
        "completed_at": _stamp(c.completed_at),
        "cancelled_at": _stamp(c.cancelled_at),
    }
    if detail:
        data.update(
            {
                "contract_data": c.contract_data,
                "notes": c.notes,
                "cancelled_by": c.cancelled_by,
                "cancellation_reason": c.cancellation_reason,
                "signatures": [_signature_view(s) for s in c.signatures],
            }
        )
    return data


def _status_arg(value):
    if not value:
        return None
    try:
        return ContractStatus(value)
    except ValueError:
        raise ValidationError("계약서 상태 값이 올바르지 않습니다")


def register(app: Flask, container: Container) -> None:
    service = container.contract_service

    @app.route("/api/contracts", methods=["GET"], endpoint="contracts_list")
    @login_required
    @json_endpoint
    def list_contracts():
        ident = current_identity()
        contracts = service.list_contracts(
            ident.clinic_id,
            viewer_id=ident.user_id,
            viewer_role=ident.role,
            status=_status_arg(request.args.get("status")),
            employee_user_id=request.args.get("employee_id", type=int),
        )
        return ok([_contract_view(c) for c in contracts])

    @app.route("/api/contracts", methods=["POST"], endpoint="contracts_create")
    @manager_required
    @json_endpoint
    def create_contract():
        body = json_body()
        ident = current_identity()
        contract = service.create_contract(
            current_role=ident.role,
            clinic_id=ident.clinic_id,
            created_by=ident.user_id,
            employee_user_id=body.get("employee_user_id"),
            data=body.get("contract_data") or {},
        )
        return ok(_contract_view(contract, detail=True), message="근로계약서가 작성되었습니다", status=201)

    @app.route("/api/contracts/<int:contract_id>", methods=["GET"], endpoint="contracts_get")
    @login_required
    @json_endpoint
    def get_contract(contract_id: int):
        ident = current_identity()
        contract = service.get_contract(ident.clinic_id, contract_id, viewer_id=ident.user_id, viewer_role=ident.role)
        return ok(_contract_view(contract, detail=True))

    @app.route("/api/contracts/<int:contract_id>", methods=["PUT"], endpoint="contracts_update")
    @manager_required
    @json_endpoint
    def update_contract(contract_id: int):
        ident = current_identity()
        contract = service.update_contract(
            current_role=ident.role, clinic_id=ident.clinic_id, contract_id=contract_id, data=json_body()
        )
        return ok(_contract_view(contract, detail=True), message="근로계약서가 수정되었습니다")

    @app.route("/api/contracts/<int:contract_id>/sign", methods=["POST"], endpoint="contracts_sign")
    @login_required
    @json_endpoint
    def sign_contract(contract_id: int):
        ident = current_identity()
        contract = service.sign_contract(
            clinic_id=ident.clinic_id,
            contract_id=contract_id,
            signer_id=ident.user_id,
            signer_role=ident.role,
            signature_data=json_body().get("signature_data"),
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return ok(_contract_view(contract, detail=True), message="서명이 완료되었습니다")

    @app.route("/api/contracts/<int:contract_id>/cancel", methods=["POST"], endpoint="contracts_cancel")
    @manager_required
    @json_endpoint
    def cancel_contract(contract_id: int):
        ident = current_identity()
        contract = service.cancel_contract(
            current_role=ident.role,
            clinic_id=ident.clinic_id,
            contract_id=contract_id,
            cancelled_by=ident.user_id,
            reason=json_body().get("reason"),
        )
        return ok(_contract_view(contract, detail=True), message="근로계약서가 취소되었습니다")

    @app.route("/api/contracts/<int:contract_id>", methods=["DELETE"], endpoint="contracts_delete")
    @manager_required
    @json_endpoint
    def delete_contract(contract_id: int):
        ident = current_identity()
        service.delete_contract(current_role=ident.role, clinic_id=ident.clinic_id, contract_id=contract_id)
        return ok(message="근로계약서가 삭제되었습니다")
