"""Gross <-> net salary conversion.

Net contracts (세후 계약) are grossed up by binary search over the taxable
gross, since the withholding table is not invertible in closed form.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional

from ..common.money import round_won
from .allowances import allowances_total, non_taxable_amount, non_taxable_part
from .calculator import DeductionBreakdown, DeductionOptions, PayrollCalculator, SimplifiedTableCalculator

MAX_ITERATIONS = 50
TOLERANCE_WON = 1


@dataclass(frozen=True)
class SalaryResult:
    total_earnings: int
    non_taxable: int
    deductions: DeductionBreakdown
    net_pay: int


def net_from_gross(
    total_earnings: int,
    allowances: Mapping[str, float] | None,
    options: DeductionOptions,
    *,
    other_deductions: int = 0,
    calculator: Optional[PayrollCalculator] = None,
) -> SalaryResult:
    calculator = calculator or SimplifiedTableCalculator()
    non_taxable = min(non_taxable_amount(allowances), max(int(total_earnings), 0))

    deductions = replace(calculator.deductions(int(total_earnings), non_taxable, options), other_deductions=int(other_deductions))
    return SalaryResult(
        total_earnings=int(total_earnings),
        non_taxable=non_taxable,
        deductions=deductions,
        net_pay=int(total_earnings) - deductions.total,
    )


def gross_from_net(
    target_net: int,
    allowances: Mapping[str, float] | None,
    options: DeductionOptions,
    *,
    calculator: Optional[PayrollCalculator] = None,
) -> SalaryResult:
    """Find the gross whose net pay is closest to `target_net` (within 1 won when reachable)."""
    calculator = calculator or SimplifiedTableCalculator()
    target_net = int(target_net)
    if target_net <= 0:
        return SalaryResult(total_earnings=0, non_taxable=0, deductions=DeductionBreakdown(), net_pay=0)

    non_taxable = min(non_taxable_amount(allowances), target_net)
    target_taxable = target_net - non_taxable

    def taxable_net(gross: int) -> tuple[int, DeductionBreakdown]:
        d = calculator.deductions(gross, 0, options)
        return gross - d.statutory_total, d

    low = target_taxable
    high = round_won(target_taxable * 1.5)
    # widen until the upper bound reaches the target
    while high > 0 and taxable_net(high)[0] < target_taxable:
        low, high = high, high * 2

    best_gross = target_taxable
    best_net, best_deductions = taxable_net(best_gross)

    for _ in range(MAX_ITERATIONS):
        if low > high:
            break
        mid = round_won((low + high) / 2)
        net, deductions = taxable_net(mid)

        if abs(net - target_taxable) < abs(best_net - target_taxable):
            best_gross, best_net, best_deductions = mid, net, deductions

        if abs(net - target_taxable) <= TOLERANCE_WON:
            break
        if net < target_taxable:
            low = mid + 1
        else:
            high = mid - 1

    return SalaryResult(
        total_earnings=best_gross + non_taxable,
        non_taxable=non_taxable,
        deductions=best_deductions,
        net_pay=best_net + non_taxable,
    )


def distribute_gross(
    base_salary: int,
    allowances: Mapping[str, float] | None,
    gross: int,
    non_taxable: int,
) -> tuple[int, dict[str, int]]:
    """Split a grossed-up total back over base salary and allowances.

    Non-taxable parts of allowances stay as entered; the base salary and the
    taxable parts are scaled so that everything sums to `gross`.
    """
    allowances = dict(allowances or {})
    taxable_gross = int(gross) - int(non_taxable)
    taxable_allowances = allowances_total(allowances) - int(non_taxable)
    taxable_input = int(base_salary) + taxable_allowances

    if taxable_input <= 0:
        return taxable_gross, {k: int(v or 0) for k, v in allowances.items()}

    ratio = taxable_gross / taxable_input
    distributed: dict[str, int] = {}
    for name, value in allowances.items():
        amount = int(value or 0)
        kept = non_taxable_part(name, amount)
        distributed[name] = kept + round_won((amount - kept) * ratio)
    return round_won(int(base_salary) * ratio), distributed
