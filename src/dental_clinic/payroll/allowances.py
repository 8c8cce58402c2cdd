"""Allowances and their non-taxable (비과세) monthly limits."""
from __future__ import annotations

from typing import Mapping, Optional

MEAL = "meal"
VEHICLE = "vehicle"
CHILDCARE = "childcare"

NON_TAXABLE_LIMITS = {
    MEAL: 200_000,
    VEHICLE: 200_000,
    CHILDCARE: 200_000,
}

# allowance name (as entered on the payroll setting) -> non-taxable kind
ALLOWANCE_KINDS = {
    "meal": MEAL,
    "meal_allowance": MEAL,
    "식대": MEAL,
    "vehicle": VEHICLE,
    "vehicle_allowance": VEHICLE,
    "자가운전보조금": VEHICLE,
    "childcare": CHILDCARE,
    "childcare_allowance": CHILDCARE,
    "자녀보육수당": CHILDCARE,
}


def allowance_kind(name: str) -> Optional[str]:
    return ALLOWANCE_KINDS.get((name or "").strip().lower()) or ALLOWANCE_KINDS.get((name or "").strip())


def non_taxable_part(name: str, amount: float) -> int:
    kind = allowance_kind(name)
    if kind is None or amount <= 0:
        return 0
    return int(min(amount, NON_TAXABLE_LIMITS[kind]))


def non_taxable_amount(allowances: Mapping[str, float] | None) -> int:
    return sum(non_taxable_part(name, amount) for name, amount in (allowances or {}).items())


def allowances_total(allowances: Mapping[str, float] | None) -> int:
    return int(sum(int(v or 0) for v in (allowances or {}).values()))
