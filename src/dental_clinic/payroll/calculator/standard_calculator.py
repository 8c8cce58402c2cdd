from __future__ import annotations

from ..insurance import estimate_insurance
from ..tax import calculate_total_tax
from .base import DeductionBreakdown, DeductionOptions, PayrollCalculator


class SimplifiedTableCalculator(PayrollCalculator):
    """Standard rule: insurance on taxable earnings + simplified withholding table."""

    def deductions(self, total_earnings: int, non_taxable: int, options: DeductionOptions) -> DeductionBreakdown:
        taxable = max(0, int(total_earnings) - int(non_taxable))
        ins = estimate_insurance(taxable, options.insurance)

        income_tax = local_tax = 0
        if options.income_tax_enabled:
            tax = calculate_total_tax(taxable, options.dependents_count, options.child_count)
            income_tax, local_tax = tax.income_tax, tax.local_income_tax

        return DeductionBreakdown(
            national_pension=ins.national_pension,
            health_insurance=ins.health_insurance,
            long_term_care=ins.long_term_care,
            employment_insurance=ins.employment_insurance,
            income_tax=income_tax,
            local_income_tax=local_tax,
        )
