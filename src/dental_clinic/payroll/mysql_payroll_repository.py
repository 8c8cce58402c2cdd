from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import SalaryType, StatementStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, normalize_mysql_date, to_json
from .calculator import DeductionBreakdown
from .model import PayrollSetting, PayrollStatement
from .repository import PayrollRepository

_SETTING_FLAGS = (
    "national_pension",
    "health_insurance",
    "long_term_care",
    "employment_insurance",
    "income_tax_enabled",
    "deduct_tardiness",
)

STATEMENT_COLUMNS = (
    "clinic_id",
    "employee_user_id",
    "payroll_setting_id",
    "payment_year",
    "payment_month",
    "payment_date",
    "salary_type",
    "base_salary",
    "allowances",
    "overtime_pay",
    "bonus",
    "other_earnings",
    "total_earnings",
    "non_taxable_total",
    "national_pension",
    "health_insurance",
    "long_term_care",
    "employment_insurance",
    "income_tax",
    "local_income_tax",
    "attendance_deduction",
    "other_deductions",
    "other_deduction_items",
    "total_deductions",
    "net_pay",
    "work_days",
    "absent_days",
    "notes",
    "status",
    "created_by",
)


def _statement_values(s: PayrollStatement) -> tuple:
    d = s.deductions
    return (
        s.clinic_id,
        s.employee_user_id,
        s.payroll_setting_id,
        s.payment_year,
        s.payment_month,
        s.payment_date,
        s.salary_type.value,
        s.base_salary,
        to_json(s.allowances),
        s.overtime_pay,
        s.bonus,
        s.other_earnings,
        s.total_earnings,
        s.non_taxable_total,
        d.national_pension,
        d.health_insurance,
        d.long_term_care,
        d.employment_insurance,
        d.income_tax,
        d.local_income_tax,
        d.attendance_deduction,
        d.other_deductions,
        to_json(s.other_deduction_items),
        s.total_deductions,
        s.net_pay,
        s.work_days,
        s.absent_days,
        s.notes,
        s.status.value,
        s.created_by,
    )


def _amounts(value: Any) -> Dict[str, int]:
    return {str(k): int(v or 0) for k, v in (from_json(value, {}) or {}).items()}


def _to_setting(r: Dict[str, Any]) -> PayrollSetting:
    return PayrollSetting(
        setting_id=int(r["setting_id"]),
        clinic_id=int(r["clinic_id"]),
        employee_user_id=int(r["employee_user_id"]),
        salary_type=SalaryType(r["salary_type"]),
        base_salary=int(r["base_salary"]),
        allowances=_amounts(r.get("allowances")),
        payment_day=int(r["payment_day"]),
        dependents_count=int(r["dependents_count"]),
        child_count=int(r["child_count"]),
        notes=r.get("notes"),
        employee_name=r.get("employee_name"),
        **{flag: bool(r[flag]) for flag in _SETTING_FLAGS},
    )


def _to_statement(r: Dict[str, Any]) -> PayrollStatement:
    return PayrollStatement(
        statement_id=int(r["statement_id"]),
        clinic_id=int(r["clinic_id"]),
        employee_user_id=int(r["employee_user_id"]),
        payment_year=int(r["payment_year"]),
        payment_month=int(r["payment_month"]),
        payment_date=normalize_mysql_date(r["payment_date"]),
        salary_type=SalaryType(r["salary_type"]),
        base_salary=int(r["base_salary"]),
        allowances=_amounts(r.get("allowances")),
        total_earnings=int(r["total_earnings"]),
        non_taxable_total=int(r.get("non_taxable_total") or 0),
        deductions=DeductionBreakdown(
            national_pension=int(r["national_pension"]),
            health_insurance=int(r["health_insurance"]),
            long_term_care=int(r["long_term_care"]),
            employment_insurance=int(r["employment_insurance"]),
            income_tax=int(r["income_tax"]),
            local_income_tax=int(r["local_income_tax"]),
            attendance_deduction=int(r.get("attendance_deduction") or 0),
            other_deductions=int(r.get("other_deductions") or 0),
        ),
        total_deductions=int(r["total_deductions"]),
        net_pay=int(r["net_pay"]),
        status=StatementStatus(r["status"]),
        payroll_setting_id=r.get("payroll_setting_id"),
        work_days=r.get("work_days"),
        absent_days=r.get("absent_days"),
        overtime_pay=int(r.get("overtime_pay") or 0),
        bonus=int(r.get("bonus") or 0),
        other_earnings=int(r.get("other_earnings") or 0),
        other_deduction_items=_amounts(r.get("other_deduction_items")),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
        employee_name=r.get("employee_name"),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_settings(self, clinic_id: int) -> Sequence[PayrollSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ps.*, u.name AS employee_name
                FROM payroll_settings ps
                JOIN users u ON u.user_id = ps.employee_user_id
                WHERE ps.clinic_id=%s
                ORDER BY u.name ASC
                """,
                (int(clinic_id),),
            )
            return [_to_setting(r) for r in fetchall(cur)]

    def get_setting(self, clinic_id: int, employee_user_id: int) -> Optional[PayrollSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ps.*, u.name AS employee_name
                FROM payroll_settings ps
                JOIN users u ON u.user_id = ps.employee_user_id
                WHERE ps.clinic_id=%s AND ps.employee_user_id=%s
                """,
                (int(clinic_id), int(employee_user_id)),
            )
            r = fetchone(cur)
            return _to_setting(r) if r else None

    def upsert_setting(self, setting: PayrollSetting, *, updated_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_settings(
                    clinic_id, employee_user_id, salary_type, base_salary, allowances, payment_day,
                    national_pension, health_insurance, long_term_care, employment_insurance,
                    income_tax_enabled, dependents_count, child_count, deduct_tardiness, notes,
                    created_by, updated_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    salary_type=VALUES(salary_type), base_salary=VALUES(base_salary),
                    allowances=VALUES(allowances), payment_day=VALUES(payment_day),
                    national_pension=VALUES(national_pension), health_insurance=VALUES(health_insurance),
                    long_term_care=VALUES(long_term_care), employment_insurance=VALUES(employment_insurance),
                    income_tax_enabled=VALUES(income_tax_enabled), dependents_count=VALUES(dependents_count),
                    child_count=VALUES(child_count), deduct_tardiness=VALUES(deduct_tardiness),
                    notes=VALUES(notes), updated_by=VALUES(updated_by),
                    setting_id=LAST_INSERT_ID(setting_id)
                """,
                (
                    setting.clinic_id,
                    setting.employee_user_id,
                    setting.salary_type.value,
                    setting.base_salary,
                    to_json(setting.allowances),
                    setting.payment_day,
                    int(setting.national_pension),
                    int(setting.health_insurance),
                    int(setting.long_term_care),
                    int(setting.employment_insurance),
                    int(setting.income_tax_enabled),
                    setting.dependents_count,
                    setting.child_count,
                    int(setting.deduct_tardiness),
                    setting.notes,
                    int(updated_by),
                    int(updated_by),
                ),
            )
            return int(cur.lastrowid)

    def delete_setting(self, clinic_id: int, employee_user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM payroll_settings WHERE clinic_id=%s AND employee_user_id=%s",
                (int(clinic_id), int(employee_user_id)),
            )
            return cur.rowcount > 0

    def statement_exists(self, clinic_id: int, employee_user_id: int, year: int, month: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT statement_id FROM payroll_statements
                WHERE clinic_id=%s AND employee_user_id=%s AND payment_year=%s AND payment_month=%s
                """,
                (int(clinic_id), int(employee_user_id), int(year), int(month)),
            )
            return fetchone(cur) is not None

    def create_statement(self, statement: PayrollStatement) -> int:
        columns = ", ".join(STATEMENT_COLUMNS)
        placeholders = ",".join(["%s"] * len(STATEMENT_COLUMNS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO payroll_statements({columns}) VALUES({placeholders})",
                _statement_values(statement),
            )
            return int(cur.lastrowid)

    def update_statement(self, statement: PayrollStatement) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in STATEMENT_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payroll_statements SET {assignments} WHERE statement_id=%s AND clinic_id=%s",
                _statement_values(statement) + (statement.statement_id, statement.clinic_id),
            )
            return cur.rowcount > 0

    def list_statements(
        self,
        clinic_id: int,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_user_id: Optional[int] = None,
        status: Optional[StatementStatus] = None,
    ) -> Sequence[PayrollStatement]:
        clauses = ["s.clinic_id=%s"]
        params: list[object] = [int(clinic_id)]

        if year is not None:
            clauses.append("s.payment_year=%s")
            params.append(int(year))
        if month is not None:
            clauses.append("s.payment_month=%s")
            params.append(int(month))
        if employee_user_id is not None:
            clauses.append("s.employee_user_id=%s")
            params.append(int(employee_user_id))
        if status is not None:
            clauses.append("s.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.*, u.name AS employee_name
                FROM payroll_statements s
                JOIN users u ON u.user_id = s.employee_user_id
                WHERE {where}
                ORDER BY s.payment_year DESC, s.payment_month DESC, u.name ASC
                """,
                tuple(params),
            )
            return [_to_statement(r) for r in fetchall(cur)]

    def get_statement(self, clinic_id: int, statement_id: int) -> Optional[PayrollStatement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.*, u.name AS employee_name
                FROM payroll_statements s
                JOIN users u ON u.user_id = s.employee_user_id
                WHERE s.clinic_id=%s AND s.statement_id=%s
                """,
                (int(clinic_id), int(statement_id)),
            )
            r = fetchone(cur)
            return _to_statement(r) if r else None

    def set_statement_status(self, statement_id: int, status: StatementStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll_statements SET status=%s WHERE statement_id=%s",
                (status.value, int(statement_id)),
            )
            return cur.rowcount > 0

    def delete_statement(self, statement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payroll_statements WHERE statement_id=%s", (int(statement_id),))
            return cur.rowcount > 0
