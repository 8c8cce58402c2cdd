from __future__ import annotations

import io
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd

from ..attendance.model import AttendanceSummary
from ..attendance.service import AttendanceService
from ..common.datetime_utils import last_day_of_month, parse_iso_date
from ..common.logger import get_logger
from ..common.validators import as_flag, require_month, require_non_negative
from ..core.constants import DEFAULT_PAYMENT_DAY
from ..core.enums import Role, SalaryType, StatementStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .allowances import allowances_total
from .attendance_deduction import calculate_attendance_deduction
from .calculator import PayrollCalculator, SimplifiedTableCalculator
from .conversion import distribute_gross, gross_from_net, net_from_gross
from .model import GenerationResult, PayrollCalculation, PayrollSetting, PayrollStatement
from .repository import PayrollRepository

logger = get_logger(__name__)

# allowed status changes: draft -> confirmed -> sent, confirmed may return to draft
STATUS_TRANSITIONS = {
    StatementStatus.DRAFT: frozenset({StatementStatus.CONFIRMED}),
    StatementStatus.CONFIRMED: frozenset({StatementStatus.SENT, StatementStatus.DRAFT}),
    StatementStatus.SENT: frozenset(),
}

EXCEL_COLUMNS = {
    "employee_name": "직원명",
    "payment_date": "지급일",
    "base_salary": "기본급",
    "allowances_total": "수당 합계",
    "overtime_pay": "연장근로수당",
    "bonus": "상여금",
    "other_earnings": "기타지급",
    "total_earnings": "지급액계",
    "national_pension": "국민연금",
    "health_insurance": "건강보험",
    "long_term_care": "장기요양보험",
    "employment_insurance": "고용보험",
    "income_tax": "소득세",
    "local_income_tax": "지방소득세",
    "attendance_deduction": "근태공제",
    "other_deductions": "기타공제",
    "total_deductions": "공제액계",
    "net_pay": "실수령액",
    "status": "상태",
}


def setting_from_payload(clinic_id: int, employee_user_id: int, data: Mapping[str, Any]) -> PayrollSetting:
    """Validate an API payload into a PayrollSetting (setting_id 0 = not saved yet)."""
    try:
        salary_type = SalaryType(data.get("salary_type") or SalaryType.GROSS.value)
    except ValueError:
        raise ValidationError("급여 유형은 gross 또는 net 이어야 합니다")

    raw_allowances = data.get("allowances") or {}
    if not isinstance(raw_allowances, Mapping):
        raise ValidationError("수당 형식이 올바르지 않습니다")
    allowances = {
        str(name).strip(): require_non_negative(amount, f"수당({name})")
        for name, amount in raw_allowances.items()
        if str(name).strip()
    }

    payment_day = require_non_negative(data.get("payment_day", DEFAULT_PAYMENT_DAY), "급여일")
    if not 1 <= payment_day <= 31:
        raise ValidationError("급여일은 1~31 사이여야 합니다")

    dependents = require_non_negative(data.get("dependents_count", 1), "부양가족 수")
    if dependents < 1:
        raise ValidationError("부양가족 수는 본인 포함 1명 이상이어야 합니다")

    return PayrollSetting(
        setting_id=0,
        clinic_id=int(clinic_id),
        employee_user_id=int(employee_user_id),
        salary_type=salary_type,
        base_salary=require_non_negative(data.get("base_salary"), "기본급"),
        allowances=allowances,
        payment_day=payment_day,
        national_pension=as_flag(data, "national_pension", True),
        health_insurance=as_flag(data, "health_insurance", True),
        long_term_care=as_flag(data, "long_term_care", True),
        employment_insurance=as_flag(data, "employment_insurance", True),
        income_tax_enabled=as_flag(data, "income_tax_enabled", True),
        dependents_count=dependents,
        child_count=require_non_negative(data.get("child_count", 0), "자녀 수"),
        deduct_tardiness=as_flag(data, "deduct_tardiness", False),
        notes=(str(data.get("notes") or "").strip() or None),
    )


def other_deductions_from_payload(raw: Any) -> Dict[str, int]:
    """{"대출상환": 100000, ...} -> validated amounts (blank names dropped)."""
    if not raw:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError("기타 공제 형식이 올바르지 않습니다")
    return {
        str(name).strip(): require_non_negative(amount, f"기타공제({name})")
        for name, amount in raw.items()
        if str(name).strip()
    }


def extra_earnings_from_payload(data: Mapping[str, Any]) -> Dict[str, int]:
    return {
        "overtime_pay": require_non_negative(data.get("overtime_pay"), "연장근로수당"),
        "bonus": require_non_negative(data.get("bonus"), "상여금"),
        "other_earnings": require_non_negative(data.get("other_earnings"), "기타 지급액"),
    }


class PayrollService:
    """Payroll settings, the pay pipeline and monthly statements."""

    def __init__(
        self,
        payroll: PayrollRepository,
        users: UserRepository,
        *,
        attendance: Optional[AttendanceService] = None,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payroll = payroll
        self._users = users
        self._attendance = attendance
        self._calculator = calculator or SimplifiedTableCalculator()

    @staticmethod
    def _require_manager(role: Role) -> None:
        if not role.is_manager:
            raise AuthorizationError("급여 관리는 관리자만 할 수 있습니다")

    # ----- settings -----

    def list_settings(self, clinic_id: int) -> Sequence[PayrollSetting]:
        return self._payroll.list_settings(int(clinic_id))

    def get_setting(self, clinic_id: int, employee_user_id: int) -> PayrollSetting:
        setting = self._payroll.get_setting(int(clinic_id), int(employee_user_id))
        if not setting:
            raise NotFoundError("급여 설정을 찾을 수 없습니다")
        return setting

    def save_setting(
        self,
        *,
        current_role: Role,
        clinic_id: int,
        updated_by: int,
        employee_user_id: int,
        data: Mapping[str, Any],
    ) -> PayrollSetting:
        self._require_manager(current_role)

        employee = self._users.get_by_id(int(employee_user_id))
        if not employee or employee.clinic_id != int(clinic_id):
            raise NotFoundError("직원을 찾을 수 없습니다")

        setting = setting_from_payload(clinic_id, employee.user_id, data)
        setting_id = self._payroll.upsert_setting(setting, updated_by=int(updated_by))
        logger.info("Payroll setting saved clinic=%s employee=%s", clinic_id, employee.user_id)
        return replace(setting, setting_id=setting_id, employee_name=employee.name)

    def delete_setting(self, *, current_role: Role, clinic_id: int, employee_user_id: int) -> None:
        self._require_manager(current_role)
        if not self._payroll.delete_setting(int(clinic_id), int(employee_user_id)):
            raise NotFoundError("급여 설정을 찾을 수 없습니다")
        logger.info("Payroll setting deleted clinic=%s employee=%s", clinic_id, employee_user_id)

    # ----- pipeline -----

    def calculate(
        self,
        setting: PayrollSetting,
        summary: Optional[AttendanceSummary] = None,
        other_deductions: Optional[Mapping[str, Any]] = None,
        *,
        extra_earnings: int = 0,
    ) -> PayrollCalculation:
        """Attendance summary + salary basis -> gross/net -> insurance and tax -> statement figures.

        `extra_earnings` (overtime, bonus, other earnings) is taxable and added
        on top of the contract gross; for net contracts after the gross-up.
        """
        options = setting.deduction_options
        contract_total = setting.base_salary + allowances_total(setting.allowances)
        extra = require_non_negative(extra_earnings, "추가 지급액")

        if setting.salary_type == SalaryType.NET:
            result = gross_from_net(contract_total, setting.allowances, options, calculator=self._calculator)
            base_salary, allowances = distribute_gross(
                setting.base_salary, setting.allowances, result.total_earnings, result.non_taxable
            )
            if extra:
                result = net_from_gross(
                    result.total_earnings + extra, setting.allowances, options, calculator=self._calculator
                )
        else:
            result = net_from_gross(contract_total + extra, setting.allowances, options, calculator=self._calculator)
            base_salary, allowances = setting.base_salary, dict(setting.allowances)

        attendance = calculate_attendance_deduction(summary, base_salary, deduct_tardiness=setting.deduct_tardiness)
        other = sum(other_deductions_from_payload(other_deductions).values())
        deductions = replace(result.deductions, attendance_deduction=attendance.total, other_deductions=other)

        return PayrollCalculation(
            salary_type=setting.salary_type,
            base_salary=base_salary,
            allowances=allowances,
            total_earnings=result.total_earnings,
            non_taxable=result.non_taxable,
            deductions=deductions,
            net_pay=result.total_earnings - deductions.total,
        )

    # ----- statements -----

    def generate_statements(
        self,
        *,
        clinic_id: int,
        year: int,
        month: int,
        created_by: int,
        current_role: Role,
        as_of: Optional[date] = None,
    ) -> GenerationResult:
        self._require_manager(current_role)
        year, month = require_month(year, month)

        settings = self._payroll.list_settings(int(clinic_id))
        if not settings:
            raise ValidationError("등록된 급여 설정이 없습니다")

        created = skipped = 0
        for setting in settings:
            if self._payroll.statement_exists(int(clinic_id), setting.employee_user_id, year, month):
                skipped += 1
                continue

            summary = None
            if self._attendance is not None:
                summary = self._attendance.monthly_summary(setting.employee_user_id, year, month, as_of=as_of)

            calc = self.calculate(setting, summary)
            payment_day = min(setting.payment_day, last_day_of_month(year, month))
            self._payroll.create_statement(
                PayrollStatement(
                    statement_id=0,
                    clinic_id=int(clinic_id),
                    employee_user_id=setting.employee_user_id,
                    payroll_setting_id=setting.setting_id,
                    payment_year=year,
                    payment_month=month,
                    payment_date=date(year, month, payment_day),
                    salary_type=setting.salary_type,
                    base_salary=calc.base_salary,
                    allowances=calc.allowances,
                    total_earnings=calc.total_earnings,
                    non_taxable_total=calc.non_taxable,
                    deductions=calc.deductions,
                    total_deductions=calc.deductions.total,
                    net_pay=calc.net_pay,
                    status=StatementStatus.DRAFT,
                    work_days=summary.present_days if summary else None,
                    absent_days=summary.absent_days if summary else None,
                    created_by=int(created_by),
                )
            )
            created += 1

        result = GenerationResult(created=created, skipped=skipped)
        logger.info("Statements generated clinic=%s %04d-%02d created=%s skipped=%s", clinic_id, year, month, created, skipped)
        return result

    def save_statement(
        self,
        *,
        current_role: Role,
        clinic_id: int,
        created_by: int,
        data: Mapping[str, Any],
        statement_id: Optional[int] = None,
    ) -> PayrollStatement:
        """Create a statement by hand, or rewrite a draft one.

        Figures are taken as entered (gross basis); insurance and tax options
        follow the employee's payroll setting when there is one.
        """
        self._require_manager(current_role)
        clinic_id = int(clinic_id)

        existing = None
        if statement_id is not None:
            existing = self.get_statement(clinic_id, statement_id)
            if existing.status != StatementStatus.DRAFT:
                raise ValidationError("작성 중(draft)인 명세서만 수정할 수 있습니다")
            employee_id = existing.employee_user_id
            year, month = existing.payment_year, existing.payment_month
            employee_name = existing.employee_name
        else:
            if not data.get("employee_user_id"):
                raise ValidationError("직원을 선택해주세요")
            employee = self._users.get_by_id(require_non_negative(data.get("employee_user_id"), "직원"))
            if not employee or employee.clinic_id != clinic_id:
                raise NotFoundError("직원을 찾을 수 없습니다")
            employee_id, employee_name = employee.user_id, employee.name
            year, month = require_month(data.get("payment_year"), data.get("payment_month"))
            if self._payroll.statement_exists(clinic_id, employee_id, year, month):
                raise ValidationError(f"{year}년 {month}월 급여명세서가 이미 있습니다")

        entered = setting_from_payload(
            clinic_id, employee_id, {"base_salary": data.get("base_salary"), "allowances": data.get("allowances")}
        )
        setting = self._payroll.get_setting(clinic_id, employee_id)
        basis = entered
        if setting:
            basis = replace(
                setting, salary_type=SalaryType.GROSS, base_salary=entered.base_salary, allowances=entered.allowances
            )

        extras = extra_earnings_from_payload(data)
        other = other_deductions_from_payload(data.get("other_deductions"))
        calc = self.calculate(basis, other_deductions=other, extra_earnings=sum(extras.values()))

        if data.get("payment_date"):
            payment_date = parse_iso_date(str(data["payment_date"]))
        else:
            payment_day = setting.payment_day if setting else DEFAULT_PAYMENT_DAY
            payment_date = date(year, month, min(payment_day, last_day_of_month(year, month)))

        work_days = data.get("work_days")
        statement = PayrollStatement(
            statement_id=existing.statement_id if existing else 0,
            clinic_id=clinic_id,
            employee_user_id=employee_id,
            payroll_setting_id=setting.setting_id if setting else None,
            payment_year=year,
            payment_month=month,
            payment_date=payment_date,
            salary_type=SalaryType.GROSS,
            base_salary=calc.base_salary,
            allowances=calc.allowances,
            total_earnings=calc.total_earnings,
            non_taxable_total=calc.non_taxable,
            deductions=calc.deductions,
            total_deductions=calc.deductions.total,
            net_pay=calc.net_pay,
            status=StatementStatus.DRAFT,
            work_days=None if work_days in (None, "") else require_non_negative(work_days, "근무일수"),
            absent_days=existing.absent_days if existing else None,
            other_deduction_items=other,
            notes=(str(data.get("notes") or "").strip() or None),
            created_by=existing.created_by if existing else int(created_by),
            employee_name=employee_name,
            **extras,
        )

        if existing:
            self._payroll.update_statement(statement)
            logger.info("Statement %s updated by hand", statement.statement_id)
            return statement

        new_id = self._payroll.create_statement(statement)
        logger.info("Statement %s created by hand clinic=%s employee=%s", new_id, clinic_id, employee_id)
        return replace(statement, statement_id=new_id)

    def list_statements(
        self,
        clinic_id: int,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_user_id: Optional[int] = None,
        status: Optional[StatementStatus] = None,
    ) -> Sequence[PayrollStatement]:
        return self._payroll.list_statements(
            int(clinic_id), year=year, month=month, employee_user_id=employee_user_id, status=status
        )

    def get_statement(self, clinic_id: int, statement_id: int) -> PayrollStatement:
        statement = self._payroll.get_statement(int(clinic_id), int(statement_id))
        if not statement:
            raise NotFoundError("급여명세서를 찾을 수 없습니다")
        return statement

    def change_status(
        self, *, current_role: Role, clinic_id: int, statement_id: int, status: StatementStatus
    ) -> PayrollStatement:
        self._require_manager(current_role)
        statement = self.get_statement(clinic_id, statement_id)
        if status not in STATUS_TRANSITIONS[statement.status]:
            raise ValidationError(f"'{statement.status.value}' 상태에서 '{status.value}'(으)로 변경할 수 없습니다")

        self._payroll.set_statement_status(statement.statement_id, status)
        logger.info("Statement %s: %s -> %s", statement.statement_id, statement.status.value, status.value)
        return replace(statement, status=status)

    def delete_statement(self, *, current_role: Role, clinic_id: int, statement_id: int) -> None:
        self._require_manager(current_role)
        statement = self.get_statement(clinic_id, statement_id)
        if statement.status != StatementStatus.DRAFT:
            raise ValidationError("작성 중(draft)인 명세서만 삭제할 수 있습니다")
        self._payroll.delete_statement(statement.statement_id)
        logger.info("Statement %s deleted", statement.statement_id)

    def export_excel(self, clinic_id: int, year: int, month: int) -> io.BytesIO:
        year, month = require_month(year, month)
        rows = [statement_row(s) for s in self.list_statements(clinic_id, year=year, month=month)]

        df = pd.DataFrame(rows, columns=list(EXCEL_COLUMNS))
        df = df.rename(columns=EXCEL_COLUMNS)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=f"{year}-{month:02d}")
        output.seek(0)
        return output


def statement_row(s: PayrollStatement) -> dict:
    d = s.deductions
    return {
        "statement_id": s.statement_id,
        "employee_user_id": s.employee_user_id,
        "employee_name": s.employee_name or "",
        "payment_year": s.payment_year,
        "payment_month": s.payment_month,
        "payment_date": s.payment_date.isoformat(),
        "salary_type": s.salary_type.value,
        "base_salary": s.base_salary,
        "allowances": dict(s.allowances),
        "allowances_total": allowances_total(s.allowances),
        "overtime_pay": s.overtime_pay,
        "bonus": s.bonus,
        "other_earnings": s.other_earnings,
        "total_earnings": s.total_earnings,
        "non_taxable_total": s.non_taxable_total,
        "national_pension": d.national_pension,
        "health_insurance": d.health_insurance,
        "long_term_care": d.long_term_care,
        "employment_insurance": d.employment_insurance,
        "income_tax": d.income_tax,
        "local_income_tax": d.local_income_tax,
        "attendance_deduction": d.attendance_deduction,
        "other_deductions": d.other_deductions,
        "other_deduction_items": dict(s.other_deduction_items),
        "total_deductions": s.total_deductions,
        "net_pay": s.net_pay,
        "work_days": s.work_days,
        "absent_days": s.absent_days,
        "notes": s.notes,
        "status": s.status.value,
    }
