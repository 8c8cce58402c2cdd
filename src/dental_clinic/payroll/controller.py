from __future__ import annotations

from dataclasses import asdict

from flask import Flask, request, send_file

from ..common.validators import require_month
from ..common.web import current_identity, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from ..core.enums import StatementStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import PayrollCalculation, PayrollSetting
from .service import extra_earnings_from_payload, other_deductions_from_payload, setting_from_payload, statement_row

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _setting_view(s: PayrollSetting) -> dict:
    data = asdict(s)
    data["salary_type"] = s.salary_type.value
    return data


def _calculation_view(c: PayrollCalculation) -> dict:
    d = c.deductions
    return {
        "salary_type": c.salary_type.value,
        "base_salary": c.base_salary,
        "allowances": c.allowances,
        "total_earnings": c.total_earnings,
        "non_taxable": c.non_taxable,
        "deductions": {
            **asdict(d),
            "insurance_total": d.insurance_total,
            "tax_total": d.tax_total,
            "total": d.total,
        },
        "net_pay": c.net_pay,
    }


def _status_arg(value):
    if not value:
        return None
    try:
        return StatementStatus(value)
    except ValueError:
        raise ValidationError("명세서 상태 값이 올바르지 않습니다")


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @app.route("/api/payroll/settings", methods=["GET"], endpoint="payroll_settings")
    @manager_required
    @json_endpoint
    def list_settings():
        return ok([_setting_view(s) for s in service.list_settings(current_identity().clinic_id)])

    @app.route("/api/payroll/settings/<int:employee_id>", methods=["GET"], endpoint="payroll_setting_get")
    @manager_required
    @json_endpoint
    def get_setting(employee_id: int):
        return ok(_setting_view(service.get_setting(current_identity().clinic_id, employee_id)))

    @app.route("/api/payroll/settings/<int:employee_id>", methods=["PUT"], endpoint="payroll_setting_save")
    @manager_required
    @json_endpoint
    def save_setting(employee_id: int):
        ident = current_identity()
        setting = service.save_setting(
            current_role=ident.role,
            clinic_id=ident.clinic_id,
            updated_by=ident.user_id,
            employee_user_id=employee_id,
            data=json_body(),
        )
        return ok(_setting_view(setting), message="급여 설정이 저장되었습니다")

    @app.route("/api/payroll/settings/<int:employee_id>", methods=["DELETE"], endpoint="payroll_setting_delete")
    @manager_required
    @json_endpoint
    def delete_setting(employee_id: int):
        ident = current_identity()
        service.delete_setting(current_role=ident.role, clinic_id=ident.clinic_id, employee_user_id=employee_id)
        return ok(message="급여 설정이 삭제되었습니다")

    @app.route("/api/payroll/calculate", methods=["POST"], endpoint="payroll_calculate")
    @login_required
    @json_endpoint
    def calculate():
        """Calculator preview: gross->net or net->gross without saving anything."""
        body = json_body()
        setting = setting_from_payload(current_identity().clinic_id, 0, body)
        calc = service.calculate(
            setting,
            other_deductions=other_deductions_from_payload(body.get("other_deductions")),
            extra_earnings=sum(extra_earnings_from_payload(body).values()),
        )
        return ok(_calculation_view(calc))

    @app.route("/api/payroll/statements/generate", methods=["POST"], endpoint="payroll_generate")
    @manager_required
    @json_endpoint
    def generate():
        body = json_body()
        ident = current_identity()
        result = service.generate_statements(
            clinic_id=ident.clinic_id,
            year=body.get("year"),
            month=body.get("month"),
            created_by=ident.user_id,
            current_role=ident.role,
        )
        return ok({"created": result.created, "skipped": result.skipped}, message=result.message)

    @app.route("/api/payroll/statements", methods=["POST"], endpoint="payroll_statement_create")
    @manager_required
    @json_endpoint
    def create_statement():
        ident = current_identity()
        statement = service.save_statement(
            current_role=ident.role, clinic_id=ident.clinic_id, created_by=ident.user_id, data=json_body()
        )
        return ok(statement_row(statement), message="급여명세서가 저장되었습니다", status=201)

    @app.route("/api/payroll/statements/<int:statement_id>", methods=["PUT"], endpoint="payroll_statement_save")
    @manager_required
    @json_endpoint
    def update_statement(statement_id: int):
        ident = current_identity()
        statement = service.save_statement(
            current_role=ident.role,
            clinic_id=ident.clinic_id,
            created_by=ident.user_id,
            data=json_body(),
            statement_id=statement_id,
        )
        return ok(statement_row(statement), message="급여명세서가 수정되었습니다")

    @app.route("/api/payroll/statements", methods=["GET"], endpoint="payroll_statements")
    @login_required
    @json_endpoint
    def list_statements():
        ident = current_identity()
        employee_id = request.args.get("employee_id", type=int)
        if not ident.role.is_manager:
            employee_id = ident.user_id

        statements = service.list_statements(
            ident.clinic_id,
            year=request.args.get("year", type=int),
            month=request.args.get("month", type=int),
            employee_user_id=employee_id,
            status=_status_arg(request.args.get("status")),
        )
        return ok([statement_row(s) for s in statements])

    @app.route("/api/payroll/statements/<int:statement_id>", methods=["GET"], endpoint="payroll_statement_get")
    @login_required
    @json_endpoint
    def get_statement(statement_id: int):
        ident = current_identity()
        statement = service.get_statement(ident.clinic_id, statement_id)
        if not ident.role.is_manager and statement.employee_user_id != ident.user_id:
            raise NotFoundError("급여명세서를 찾을 수 없습니다")
        return ok(statement_row(statement))

    @app.route("/api/payroll/statements/<int:statement_id>/status", methods=["POST"], endpoint="payroll_statement_status")
    @manager_required
    @json_endpoint
    def change_status(statement_id: int):
        status = _status_arg(json_body().get("status"))
        if status is None:
            raise ValidationError("변경할 상태를 입력해주세요")
        ident = current_identity()
        statement = service.change_status(
            current_role=ident.role, clinic_id=ident.clinic_id, statement_id=statement_id, status=status
        )
        return ok(statement_row(statement), message="상태가 변경되었습니다")

    @app.route("/api/payroll/statements/<int:statement_id>", methods=["DELETE"], endpoint="payroll_statement_delete")
    @manager_required
    @json_endpoint
    def delete_statement(statement_id: int):
        ident = current_identity()
        service.delete_statement(current_role=ident.role, clinic_id=ident.clinic_id, statement_id=statement_id)
        return ok(message="급여명세서가 삭제되었습니다")

    @app.route("/api/payroll/statements/export.xlsx", methods=["GET"], endpoint="payroll_export")
    @manager_required
    @json_endpoint
    def export_excel():
        year, month = require_month(request.args.get("year"), request.args.get("month"))
        output = service.export_excel(current_identity().clinic_id, year, month)
        return send_file(
            output,
            download_name=f"payroll_{year}{month:02d}.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )
