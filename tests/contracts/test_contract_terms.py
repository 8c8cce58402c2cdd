from datetime import date

import pytest

from conftest import WEEKDAY_HOURS, make_user
from dental_clinic.clinics import hours as hours_rules
from dental_clinic.clinics.model import Clinic
from dental_clinic.contracts.terms import build_contract_data, revise_contract_data, validate_terms
from dental_clinic.core.exceptions import ValidationError

FORM = {
    "employment_period_start": "2024-03-01",
    "salary_base": 2_500_000,
    "salary_allowances": {"식대": 200_000},
    "job_description": "치과위생사 업무",
}


def test_defaults_for_open_ended_contract():
    terms = validate_terms(FORM)

    assert terms["is_permanent"] is True
    assert terms["employment_period_end"] is None
    assert terms["salary_payment_day"] == 25
    assert terms["annual_leave_days"] == 15
    assert terms["probation_period"] is None
    assert terms["salary_total"] == 2_700_000
    assert terms["health_insurance"] is True
    assert terms["non_compete_agreement"] is False


def test_fixed_term_contract():
    terms = validate_terms({**FORM, "employment_period_end": "2025-02-28", "salary_bonus": 300_000, "probation_period": "3"})

    assert terms["is_permanent"] is False
    assert terms["employment_period_end"] == "2025-02-28"
    assert terms["probation_period"] == 3
    assert terms["salary_total"] == 3_000_000


@pytest.mark.parametrize(
    "form",
    [
        {**FORM, "employment_period_start": ""},
        {**FORM, "employment_period_start": "2024/03/01"},
        {**FORM, "employment_period_end": "2024-02-01"},
        {**FORM, "salary_base": -1},
        {**FORM, "salary_allowances": ["식대"]},
        {**FORM, "salary_allowances": {"식대": "많이"}},
        {**FORM, "salary_payment_day": 0},
        {**FORM, "salary_payment_day": 32},
    ],
)
def test_invalid_terms(form):
    with pytest.raises(ValidationError):
        validate_terms(form)


def test_parties_and_schedule_are_filled_from_clinic_records():
    employee = make_user(2, name="이위생사", phone="010-1234-5678")
    clinic = Clinic(clinic_id=1, name="하얀치과", owner_name="김원장")

    data = build_contract_data(
        FORM, employee=employee, clinic=clinic, hours=hours_rules.merge_operating_hours(WEEKDAY_HOURS), today=date(2024, 2, 20)
    )

    assert data["employee_name"] == "이위생사"
    assert data["employee_phone"] == "010-1234-5678"
    assert data["employer_name"] == "김원장"
    assert data["work_location"] == "하얀치과"
    assert data["contract_date"] == "2024-02-20"
    assert data["weekly_work_hours"]["monday"]["start_time"] == "09:00"
    assert data["weekly_work_hours"]["sunday"]["enabled"] is False


def test_revision_keeps_filled_fields_and_recomputes_total():
    employee = make_user(2, name="이위생사")
    clinic = Clinic(clinic_id=1, name="하얀치과")
    draft = build_contract_data(
        FORM, employee=employee, clinic=clinic, hours=hours_rules.merge_operating_hours(WEEKDAY_HOURS), today=date(2024, 2, 20)
    )

    revised = revise_contract_data(draft, {"salary_base": 2_800_000})

    assert revised["salary_total"] == 3_000_000
    assert revised["employee_name"] == "이위생사"
    assert revised["job_description"] == "치과위생사 업무"
    assert revised["contract_date"] == "2024-02-20"
