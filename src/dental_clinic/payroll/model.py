from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional

from ..core.enums import SalaryType, StatementStatus
from .calculator import DeductionBreakdown, DeductionOptions
from .insurance import InsuranceOptions


@dataclass(frozen=True)
class PayrollSetting:
    """Salary basis of one employee (one row per employee per clinic)."""

    setting_id: int
    clinic_id: int
    employee_user_id: int
    salary_type: SalaryType
    base_salary: int
    allowances: Dict[str, int] = field(default_factory=dict)
    payment_day: int = 25
    national_pension: bool = True
    health_insurance: bool = True
    long_term_care: bool = True
    employment_insurance: bool = True
    income_tax_enabled: bool = True
    dependents_count: int = 1
    child_count: int = 0
    deduct_tardiness: bool = False
    notes: Optional[str] = None
    employee_name: Optional[str] = None

    @property
    def deduction_options(self) -> DeductionOptions:
        return DeductionOptions(
            insurance=InsuranceOptions(
                national_pension=self.national_pension,
                health_insurance=self.health_insurance,
                long_term_care=self.long_term_care,
                employment_insurance=self.employment_insurance,
            ),
            income_tax_enabled=self.income_tax_enabled,
            dependents_count=self.dependents_count,
            child_count=self.child_count,
        )


@dataclass(frozen=True)
class PayrollCalculation:
    """Result of the pay pipeline for one employee and month."""

    salary_type: SalaryType
    base_salary: int
    allowances: Dict[str, int]
    total_earnings: int
    non_taxable: int
    deductions: DeductionBreakdown
    net_pay: int


@dataclass(frozen=True)
class PayrollStatement:
    statement_id: int
    clinic_id: int
    employee_user_id: int
    payment_year: int
    payment_month: int
    payment_date: date
    salary_type: SalaryType
    base_salary: int
    allowances: Dict[str, int]
    total_earnings: int
    non_taxable_total: int
    deductions: DeductionBreakdown
    total_deductions: int
    net_pay: int
    status: StatementStatus = StatementStatus.DRAFT
    payroll_setting_id: Optional[int] = None
    work_days: Optional[int] = None
    absent_days: Optional[int] = None
    overtime_pay: int = 0
    bonus: int = 0
    other_earnings: int = 0
    other_deduction_items: Dict[str, int] = field(default_factory=dict)
    notes: Optional[str] = None
    created_by: Optional[int] = None
    employee_name: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    created: int
    skipped: int

    @property
    def message(self) -> str:
        msg = f"{self.created}건의 급여명세서가 생성되었습니다"
        if self.skipped:
            msg += f" ({self.skipped}건은 이미 존재하여 건너뜀)"
        return msg
