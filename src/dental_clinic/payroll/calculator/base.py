from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..insurance import InsuranceOptions


@dataclass(frozen=True)
class DeductionOptions:
    insurance: InsuranceOptions = field(default_factory=InsuranceOptions)
    income_tax_enabled: bool = True
    dependents_count: int = 1
    child_count: int = 0


@dataclass(frozen=True)
class DeductionBreakdown:
    national_pension: int = 0
    health_insurance: int = 0
    long_term_care: int = 0
    employment_insurance: int = 0
    income_tax: int = 0
    local_income_tax: int = 0
    attendance_deduction: int = 0
    other_deductions: int = 0

    @property
    def insurance_total(self) -> int:
        return self.national_pension + self.health_insurance + self.long_term_care + self.employment_insurance

    @property
    def tax_total(self) -> int:
        return self.income_tax + self.local_income_tax

    @property
    def statutory_total(self) -> int:
        """Insurance + taxes (what the gross-up has to cover)."""
        return self.insurance_total + self.tax_total

    @property
    def total(self) -> int:
        return self.statutory_total + self.attendance_deduction + self.other_deductions


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll deductions)."""

    @abstractmethod
    def deductions(self, total_earnings: int, non_taxable: int, options: DeductionOptions) -> DeductionBreakdown:
        raise NotImplementedError
