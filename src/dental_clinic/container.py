from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLQRCodeRepository
from .attendance.qr import QRCodeService
from .attendance.service import AttendanceService
from .bulletin.mysql_bulletin_repository import MySQLBulletinRepository
from .bulletin.service import BulletinService
from .clinics.mysql_clinic_repository import MySQLClinicRepository
from .clinics.service import ClinicService
from .contracts.mysql_contract_repository import MySQLContractRepository
from .contracts.service import ContractService
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, DEFAULT_PAYROLL_CALCULATOR, DEFAULT_QR_RADIUS_METERS
from .database.connection import DatabaseConnection, DBConfig
from .inventory.mysql_inventory_repository import MySQLInventoryRepository
from .inventory.service import InventoryService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.calculator import get_calculator
from .payroll.service import PayrollService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.service import ReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, StaffService


@dataclass(frozen=True)
class Container:
    # None when the container is built from in-memory repositories (tests)
    conn: Optional[DatabaseConnection]

    users_repo: Any
    clinics_repo: Any
    attendance_repo: Any
    qr_repo: Any
    payroll_repo: Any
    reports_repo: Any
    inventory_repo: Any
    contracts_repo: Any
    bulletin_repo: Any

    auth_service: AuthService
    staff_service: StaffService
    clinic_service: ClinicService
    qr_service: QRCodeService
    attendance_service: AttendanceService
    payroll_service: PayrollService
    inventory_service: InventoryService
    report_service: ReportService
    contract_service: ContractService
    bulletin_service: BulletinService


def wire(
    *,
    users_repo,
    clinics_repo,
    attendance_repo,
    qr_repo,
    payroll_repo,
    reports_repo,
    inventory_repo,
    contracts_repo,
    bulletin_repo,
    conn: Optional[DatabaseConnection] = None,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    qr_radius: int = DEFAULT_QR_RADIUS_METERS,
    payroll_calculator: str = DEFAULT_PAYROLL_CALCULATOR,
) -> Container:
    """Build every service on top of the given repositories."""
    qr_service = QRCodeService(qr_repo, default_radius=qr_radius)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        clinics_repo,
        qr_codes=qr_service,
        strategy_factory=AttendanceStrategyFactory(),
        grace_minutes=grace_minutes,
    )
    inventory_service = InventoryService(inventory_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        clinics_repo=clinics_repo,
        attendance_repo=attendance_repo,
        qr_repo=qr_repo,
        payroll_repo=payroll_repo,
        reports_repo=reports_repo,
        inventory_repo=inventory_repo,
        contracts_repo=contracts_repo,
        bulletin_repo=bulletin_repo,
        auth_service=AuthService(users_repo),
        staff_service=StaffService(users_repo),
        clinic_service=ClinicService(clinics_repo),
        qr_service=qr_service,
        attendance_service=attendance_service,
        payroll_service=PayrollService(
            payroll_repo, users_repo, attendance=attendance_service, calculator=get_calculator(payroll_calculator)
        ),
        inventory_service=inventory_service,
        report_service=ReportService(reports_repo, inventory_service),
        contract_service=ContractService(contracts_repo, users_repo, clinics_repo),
        bulletin_service=BulletinService(bulletin_repo),
    )


def build_container(
    *,
    db_config: dict,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    qr_radius: int = DEFAULT_QR_RADIUS_METERS,
    payroll_calculator: str = DEFAULT_PAYROLL_CALCULATOR,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        clinics_repo=MySQLClinicRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        qr_repo=MySQLQRCodeRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        inventory_repo=MySQLInventoryRepository(conn),
        contracts_repo=MySQLContractRepository(conn),
        bulletin_repo=MySQLBulletinRepository(conn),
        grace_minutes=grace_minutes,
        qr_radius=qr_radius,
        payroll_calculator=payroll_calculator,
    )
