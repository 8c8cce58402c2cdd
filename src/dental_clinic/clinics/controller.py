from __future__ import annotations

from flask import Flask

from ..common.web import current_identity, json_body, json_endpoint, login_required, manager_required, ok
from ..container import Container
from . import hours as hours_rules


def register(app: Flask, container: Container) -> None:
    @app.route("/api/clinic", methods=["GET"], endpoint="clinic_profile")
    @login_required
    @json_endpoint
    def clinic_profile():
        me = current_identity()
        clinic = container.clinic_service.get_clinic(me.clinic_id)
        return ok({"clinic_id": clinic.clinic_id, "name": clinic.name, "owner_name": clinic.owner_name, "status": clinic.status})

    @app.route("/api/clinic/hours", methods=["GET"], endpoint="clinic_hours")
    @login_required
    @json_endpoint
    def clinic_hours():
        hours = container.clinic_service.get_operating_hours(current_identity().clinic_id)
        return ok({"hours": hours_rules.to_dict(hours), "summary": hours_rules.summarize(hours)})

    @app.route("/api/clinic/hours", methods=["PUT"], endpoint="save_clinic_hours")
    @manager_required
    @json_endpoint
    def save_clinic_hours():
        me = current_identity()
        hours = container.clinic_service.save_operating_hours(
            current_role=me.role,
            clinic_id=me.clinic_id,
            raw=json_body().get("hours"),
        )
        return ok({"hours": hours_rules.to_dict(hours)}, message="진료시간이 저장되었습니다")
