from __future__ import annotations

from dataclasses import asdict
from datetime import date

from flask import Flask, request

from ..common.web import current_identity, json_body, json_endpoint, login_required, ok
from ..container import Container
from ..core.exceptions import ValidationError
from .model import ReportBundle


def _plain(obj) -> dict:
    data = asdict(obj)
    for key, value in data.items():
        if isinstance(value, date):
            data[key] = value.isoformat()
        elif hasattr(value, "value"):
            data[key] = value.value
    return data


def _bundle_view(bundle: ReportBundle) -> dict:
    return {
        "report": _plain(bundle.report) if bundle.report else None,
        "consult_rows": [_plain(c) for c in bundle.consults],
        "gift_rows": [_plain(g) for g in bundle.gifts],
        "happy_call_rows": [_plain(h) for h in bundle.happy_calls],
        "special_notes": [_plain(n) for n in bundle.special_notes],
    }


def _range_args():
    start, end = request.args.get("start"), request.args.get("end")
    if not start or not end:
        raise ValidationError("조회 기간(start, end)을 입력해주세요")
    return start, end


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    @app.route("/api/reports", methods=["POST"], endpoint="report_save")
    @login_required
    @json_endpoint
    def save_report():
        ident = current_identity()
        report = service.save_report(
            clinic_id=ident.clinic_id,
            author_id=ident.user_id,
            author_name=ident.name,
            data=json_body(),
        )
        return ok(_plain(report), message="보고서가 저장되었습니다")

    @app.route("/api/reports", methods=["GET"], endpoint="report_list")
    @login_required
    @json_endpoint
    def list_reports():
        start, end = _range_args()
        return ok([_plain(r) for r in service.list_reports(current_identity().clinic_id, start, end)])

    @app.route("/api/reports/stats", methods=["GET"], endpoint="report_stats")
    @login_required
    @json_endpoint
    def stats():
        start, end = _range_args()
        return ok(asdict(service.stats(current_identity().clinic_id, start, end)))

    @app.route("/api/reports/<report_date>", methods=["GET"], endpoint="report_get")
    @login_required
    @json_endpoint
    def get_report(report_date: str):
        return ok(_bundle_view(service.get_report(current_identity().clinic_id, report_date)))

    @app.route("/api/reports/<report_date>", methods=["DELETE"], endpoint="report_delete")
    @login_required
    @json_endpoint
    def delete_report(report_date: str):
        service.delete_report(clinic_id=current_identity().clinic_id, report_date=report_date)
        return ok(message="보고서가 삭제되었습니다")

    @app.route("/api/reports/<report_date>/recalculate", methods=["POST"], endpoint="report_recalculate")
    @login_required
    @json_endpoint
    def recalculate(report_date: str):
        report = service.recalculate_stats(current_identity().clinic_id, report_date)
        return ok(_plain(report), message="통계가 재계산되었습니다")

    @app.route("/api/consults/<int:log_id>/complete", methods=["POST"], endpoint="consult_complete")
    @login_required
    @json_endpoint
    def complete_consult(log_id: int):
        consult = service.complete_consult(clinic_id=current_identity().clinic_id, log_id=log_id)
        return ok(_plain(consult), message="상담이 진행으로 변경되었습니다")
