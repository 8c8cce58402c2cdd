"""Employment contract terms (근로계약 조건).

The terms are stored as one JSON document. Employee, employer and clinic
details plus the weekly schedule are filled in from the clinic's records;
the rest comes from the form and is validated here.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping, Optional

from ..clinics import hours as hours_rules
from ..clinics.model import Clinic, OperatingHours
from ..common.datetime_utils import parse_iso_date
from ..common.validators import as_flag, require_non_negative
from ..core.constants import DEFAULT_ANNUAL_LEAVE_DAYS, DEFAULT_PAYMENT_DAY
from ..core.exceptions import ValidationError
from ..users.model import User

TEXT_FIELDS = ("work_location", "job_description", "probation_terms", "additional_terms")

# insurance and agreement checkboxes with their defaults
FLAG_FIELDS = {
    "pension_insurance": True,
    "health_insurance": True,
    "employment_insurance": True,
    "workers_compensation": True,
    "confidentiality_agreement": False,
    "non_compete_agreement": False,
}


def _optional_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    return parse_iso_date(str(value))


def salary_total(terms: Mapping[str, Any]) -> int:
    allowances = terms.get("salary_allowances") or {}
    return int(terms.get("salary_base") or 0) + int(terms.get("salary_bonus") or 0) + sum(allowances.values())


def validate_terms(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Form fields -> normalized terms (dates as ISO strings, amounts as ints)."""
    start = _optional_date(form.get("employment_period_start"))
    if start is None:
        raise ValidationError("근로 시작일을 입력해주세요")
    end = _optional_date(form.get("employment_period_end"))
    if end is not None and end < start:
        raise ValidationError("근로 종료일은 시작일 이후여야 합니다")

    raw_allowances = form.get("salary_allowances") or {}
    if not isinstance(raw_allowances, Mapping):
        raise ValidationError("수당 형식이 올바르지 않습니다")
    allowances = {
        str(name).strip(): require_non_negative(amount, f"수당({name})")
        for name, amount in raw_allowances.items()
        if str(name).strip()
    }

    payment_day = require_non_negative(form.get("salary_payment_day", DEFAULT_PAYMENT_DAY), "급여일")
    if not 1 <= payment_day <= 31:
        raise ValidationError("급여일은 1~31 사이여야 합니다")

    probation = form.get("probation_period")
    terms: Dict[str, Any] = {
        "employment_period_start": start.isoformat(),
        "employment_period_end": end.isoformat() if end else None,
        "is_permanent": end is None,
        "salary_base": require_non_negative(form.get("salary_base"), "기본급"),
        "salary_bonus": require_non_negative(form.get("salary_bonus"), "상여금"),
        "salary_allowances": allowances,
        "salary_payment_day": payment_day,
        "annual_leave_days": require_non_negative(
            form.get("annual_leave_days", DEFAULT_ANNUAL_LEAVE_DAYS), "연차 일수"
        ),
        "probation_period": None if probation in (None, "") else require_non_negative(probation, "수습 기간"),
    }
    for key in TEXT_FIELDS:
        terms[key] = str(form.get(key) or "").strip()
    for key, default in FLAG_FIELDS.items():
        terms[key] = as_flag(form, key, default)

    terms["salary_total"] = salary_total(terms)
    return terms


def build_contract_data(
    form: Mapping[str, Any],
    *,
    employee: User,
    clinic: Clinic,
    hours: OperatingHours,
    today: date,
) -> Dict[str, Any]:
    """Validated terms plus the auto-filled parties and weekly schedule."""
    data = validate_terms(form)
    data.update(
        {
            "employee_name": employee.name,
            "employee_phone": employee.phone or "",
            "employer_name": clinic.owner_name or "",
            "clinic_name": clinic.name,
            "weekly_work_hours": hours_rules.to_dict(hours),
            "contract_date": today.isoformat(),
        }
    )
    if not data["work_location"]:
        data["work_location"] = clinic.name
    return data


def revise_contract_data(current: Mapping[str, Any], form: Mapping[str, Any]) -> Dict[str, Any]:
    """Re-validate edited terms; the auto-filled fields are kept from the draft."""
    merged = {**current, **form}
    data = dict(current)
    data.update(validate_terms(merged))
    return data
