from datetime import date, time

import pytest

from dental_clinic.clinics import hours as hours_rules
from dental_clinic.clinics.model import DayHours
from dental_clinic.clinics.service import ClinicService
from dental_clinic.core.enums import Role
from dental_clinic.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_defaults_open_weekdays_and_close_weekends():
    hours = hours_rules.merge_operating_hours(None)

    assert hours["monday"] == DayHours(enabled=True)
    assert hours["saturday"].enabled is False
    assert hours["saturday"].note == "휴무"
    assert not hours_rules.has_configured_hours(hours)


def test_merge_overlays_only_the_given_fields():
    hours = hours_rules.merge_operating_hours(
        {"saturday": {"enabled": True, "start_time": "09:00", "end_time": "13:00"}, "sunday": "garbage"}
    )

    assert hours["saturday"].enabled is True
    assert hours["saturday"].start_time == time(9, 0)
    assert hours["saturday"].end_time == time(13, 0)
    assert hours["sunday"].enabled is False
    assert hours["monday"].enabled is True


def test_merge_coerces_stored_note_to_text():
    hours = hours_rules.merge_operating_hours({"saturday": {"enabled": True, "start_time": "09:00", "end_time": "13:00", "note": 5}})

    assert hours["saturday"].note == "5"
    assert hours_rules.summarize(hours)[5] == "토요일: 09:00 ~ 13:00 - 5"


def test_scheduled_work_days_follow_enabled_weekdays():
    hours = hours_rules.default_operating_hours()

    assert len(hours_rules.scheduled_work_days(hours, 2024, 3)) == 21
    assert hours_rules.scheduled_work_days(hours, 2024, 3, until=date(2024, 3, 8)) == [
        date(2024, 3, 1),
        date(2024, 3, 4),
        date(2024, 3, 5),
        date(2024, 3, 6),
        date(2024, 3, 7),
        date(2024, 3, 8),
    ]


def test_break_minutes():
    entry = DayHours(enabled=True, break_start=time(13, 0), break_end=time(14, 0))

    assert hours_rules.break_minutes(entry) == 60
    assert hours_rules.break_minutes(DayHours(enabled=True)) == 0


def test_summary_lines(clinics_repo):
    hours = ClinicService(clinics_repo).get_operating_hours(1)

    lines = hours_rules.summarize(hours)

    assert lines[0] == "월요일: 09:00 ~ 18:00 (점심 13:00 ~ 14:00)"
    assert lines[5] == "토요일: 휴무"


def test_staff_cannot_change_hours(clinics_repo):
    with pytest.raises(AuthorizationError):
        ClinicService(clinics_repo).save_operating_hours(current_role=Role.STAFF, clinic_id=1, raw={})


def test_end_before_start_is_rejected(clinics_repo):
    service = ClinicService(clinics_repo)

    with pytest.raises(ValidationError):
        service.save_operating_hours(
            current_role=Role.OWNER,
            clinic_id=1,
            raw={"monday": {"enabled": True, "start_time": "18:00", "end_time": "09:00"}},
        )


def test_saved_hours_are_read_back(clinics_repo):
    service = ClinicService(clinics_repo)

    service.save_operating_hours(
        current_role=Role.MANAGER,
        clinic_id=1,
        raw={"saturday": {"enabled": True, "start_time": "09:00", "end_time": "14:00"}},
    )

    assert clinics_repo.hours[1]["saturday"]["end_time"] == "14:00"
    assert clinics_repo.hours[1]["sunday"]["note"] == "휴무"
    assert service.get_operating_hours(1)["saturday"].enabled is True


def test_unknown_clinic(clinics_repo):
    with pytest.raises(NotFoundError):
        ClinicService(clinics_repo).get_clinic(42)
