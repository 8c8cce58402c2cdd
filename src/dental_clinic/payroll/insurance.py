from __future__ import annotations

from dataclasses import dataclass

from ..common.money import round_won

NATIONAL_PENSION_RATE = 0.045
NATIONAL_PENSION_MAX_BASE = 5_900_000
HEALTH_INSURANCE_RATE = 0.03545
LONG_TERM_CARE_RATE = 0.1295  # of the health insurance premium
EMPLOYMENT_INSURANCE_RATE = 0.009


@dataclass(frozen=True)
class InsuranceOptions:
    """Which social insurances are withheld for an employee."""

    national_pension: bool = True
    health_insurance: bool = True
    long_term_care: bool = True
    employment_insurance: bool = True


@dataclass(frozen=True)
class InsuranceBreakdown:
    national_pension: int = 0
    health_insurance: int = 0
    long_term_care: int = 0
    employment_insurance: int = 0

    @property
    def total(self) -> int:
        return self.national_pension + self.health_insurance + self.long_term_care + self.employment_insurance


def estimate_insurance(taxable_earnings: float, options: InsuranceOptions | None = None) -> InsuranceBreakdown:
    """Employee share of the four social insurances for one month."""
    options = options or InsuranceOptions()
    earnings = max(float(taxable_earnings), 0.0)

    pension = round_won(min(earnings, NATIONAL_PENSION_MAX_BASE) * NATIONAL_PENSION_RATE) if options.national_pension else 0
    health = round_won(earnings * HEALTH_INSURANCE_RATE) if options.health_insurance else 0
    care = round_won(health * LONG_TERM_CARE_RATE) if options.long_term_care and health else 0
    employment = round_won(earnings * EMPLOYMENT_INSURANCE_RATE) if options.employment_insurance else 0

    return InsuranceBreakdown(
        national_pension=pension,
        health_insurance=health,
        long_term_care=care,
        employment_insurance=employment,
    )
