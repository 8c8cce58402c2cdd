from __future__ import annotations

from ...common.money import round_won
from ..insurance import estimate_insurance
from ..tax import calculate_local_income_tax
from .base import DeductionBreakdown, DeductionOptions, PayrollCalculator

FLAT_INCOME_TAX_RATE = 0.033
DEPENDENT_MONTHLY_ALLOWANCE = 125_000


class FlatRateCalculator(PayrollCalculator):
    """Legacy rule: 3.3% of taxable earnings after 125,000 won per dependent."""

    def deductions(self, total_earnings: int, non_taxable: int, options: DeductionOptions) -> DeductionBreakdown:
        taxable = max(0, int(total_earnings) - int(non_taxable))
        ins = estimate_insurance(taxable, options.insurance)

        income_tax = 0
        if options.income_tax_enabled:
            base = max(0, taxable - int(options.dependents_count) * DEPENDENT_MONTHLY_ALLOWANCE)
            income_tax = round_won(base * FLAT_INCOME_TAX_RATE)

        return DeductionBreakdown(
            national_pension=ins.national_pension,
            health_insurance=ins.health_insurance,
            long_term_care=ins.long_term_care,
            employment_insurance=ins.employment_insurance,
            income_tax=income_tax,
            local_income_tax=calculate_local_income_tax(income_tax),
        )
