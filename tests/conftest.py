from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from dental_clinic.attendance.model import AttendanceRecord, AttendanceReportRow, DailyQRCode
from dental_clinic.bulletin.model import Announcement
from dental_clinic.clinics.model import Clinic
from dental_clinic.container import wire
from dental_clinic.contracts.model import ContractSignature, EmploymentContract
from dental_clinic.core.enums import (
    AnnouncementCategory,
    AttendanceStatus,
    ContractStatus,
    Role,
    StatementStatus,
    UserStatus,
)
from dental_clinic.inventory.model import GiftCategory, GiftItem, InventoryLog
from dental_clinic.payroll.model import PayrollSetting, PayrollStatement
from dental_clinic.reports.model import ConsultLog, DailyReport, GiftLog, HappyCallLog, SpecialNote
from dental_clinic.users.model import User

WEEKDAY_HOURS = {
    day: {"enabled": True, "start_time": "09:00", "end_time": "18:00", "break_start": "13:00", "break_end": "14:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


def make_user(user_id: int, *, clinic_id: int = 1, role: Role = Role.STAFF, status=UserStatus.ACTIVE, **kw) -> User:
    return User(
        user_id=user_id,
        clinic_id=clinic_id,
        name=kw.pop("name", f"직원{user_id}"),
        email=kw.pop("email", f"user{user_id}@clinic.kr"),
        password_hash=kw.pop("password_hash", "x"),
        role=role,
        status=status,
        **kw,
    )


class InMemoryUsers:
    def __init__(self, users=()):
        self.users: dict[int, User] = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def list_by_clinic(self, clinic_id: int, *, status=None):
        return [u for u in self.users.values() if u.clinic_id == clinic_id and (status is None or u.status == status)]

    def create_user(self, *, clinic_id, name, email, password_hash, role, phone, hire_date) -> int:
        user_id = max(self.users, default=0) + 1
        self.users[user_id] = User(
            user_id=user_id,
            clinic_id=clinic_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            status=UserStatus.PENDING,
            phone=phone,
            hire_date=hire_date,
        )
        return user_id

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, status=status)
        return True

    def set_hire_date(self, user_id: int, hire_date: date) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, hire_date=hire_date)
        return True


class InMemoryClinics:
    def __init__(self, hours: Optional[dict] = None):
        self.clinics = {1: Clinic(clinic_id=1, name="하얀치과", owner_name="김원장")}
        self.hours: dict[int, dict] = {1: hours} if hours is not None else {}

    def get_by_id(self, clinic_id: int) -> Optional[Clinic]:
        return self.clinics.get(int(clinic_id))

    def get_hours(self, clinic_id: int) -> Optional[dict]:
        return self.hours.get(int(clinic_id))

    def save_hours(self, clinic_id: int, hours: dict) -> None:
        self.hours[int(clinic_id)] = hours


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.names: dict[int, str] = {}

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self._id = max(self._id, record.attendance_id)
        self.records[record.attendance_id] = record
        return record

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.records.get(int(attendance_id))

    def get_recent_for_user(self, user_id: int, limit: int):
        items = [r for r in self.records.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self.records.values() if r.user_id == user_id and r.work_date == work_date), None)

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date):
        return [r for r in self.records.values() if r.user_id == user_id and start_date <= r.work_date <= end_date]

    def list_for_clinic_on(self, clinic_id: int, work_date: date):
        return [r for r in self.records.values() if r.clinic_id == clinic_id and r.work_date == work_date]

    def create_checkin(self, *, clinic_id, user_id, work_date, check_in_time, status, scheduled_start, scheduled_end, break_minutes, note=None) -> int:
        self._id += 1
        self.records[self._id] = AttendanceRecord(
            attendance_id=self._id,
            clinic_id=clinic_id,
            user_id=user_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            status=status,
            note=note,
            scheduled_start=scheduled_start,
            scheduled_end=scheduled_end,
            break_minutes=break_minutes,
        )
        return self._id

    def update_checkout(self, *, attendance_id, check_out_time, status, note=None) -> bool:
        record = self.records[int(attendance_id)]
        self.records[record.attendance_id] = replace(record, check_out_time=check_out_time, status=status, note=note)
        return True

    def admin_update_record(self, *, attendance_id, check_in_time, check_out_time, status, note, edited_by) -> bool:
        record = self.records[int(attendance_id)]
        self.records[record.attendance_id] = replace(
            record,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            status=status,
            note=note,
            is_manually_edited=True,
            edited_by=edited_by,
        )
        return True

    def get_report_rows(self, *, clinic_id, start_date, end_date, user_id=None):
        rows = [
            AttendanceReportRow(user_id=r.user_id, name=self.names.get(r.user_id, f"직원{r.user_id}"), record=r)
            for r in self.records.values()
            if r.clinic_id == clinic_id
            and start_date <= r.work_date <= end_date
            and (user_id is None or r.user_id == user_id)
        ]
        return sorted(rows, key=lambda row: (row.record.work_date, row.user_id))


class InMemoryQRCodes:
    def __init__(self):
        self.codes: list[DailyQRCode] = []

    def get_for_date(self, clinic_id: int, valid_date: date) -> Optional[DailyQRCode]:
        return next((c for c in self.codes if c.clinic_id == clinic_id and c.valid_date == valid_date), None)

    def get_by_code(self, qr_code: str) -> Optional[DailyQRCode]:
        return next((c for c in self.codes if c.qr_code == qr_code), None)

    def create(self, *, clinic_id, qr_code, valid_date, latitude, longitude, radius_meters) -> DailyQRCode:
        code = DailyQRCode(
            qr_id=len(self.codes) + 1,
            clinic_id=clinic_id,
            qr_code=qr_code,
            valid_date=valid_date,
            latitude=latitude,
            longitude=longitude,
            radius_meters=radius_meters,
        )
        self.codes = [c for c in self.codes if not (c.clinic_id == clinic_id and c.valid_date == valid_date)]
        self.codes.append(code)
        return code


class InMemoryPayroll:
    def __init__(self):
        self.settings: dict[tuple[int, int], PayrollSetting] = {}
        self.statements: dict[int, PayrollStatement] = {}

    def list_settings(self, clinic_id: int):
        return [s for (c, _), s in sorted(self.settings.items()) if c == clinic_id]

    def get_setting(self, clinic_id: int, employee_user_id: int):
        return self.settings.get((clinic_id, employee_user_id))

    def upsert_setting(self, setting: PayrollSetting, *, updated_by: int) -> int:
        key = (setting.clinic_id, setting.employee_user_id)
        existing = self.settings.get(key)
        setting_id = existing.setting_id if existing else len(self.settings) + 1
        self.settings[key] = replace(setting, setting_id=setting_id)
        return setting_id

    def delete_setting(self, clinic_id: int, employee_user_id: int) -> bool:
        return self.settings.pop((clinic_id, employee_user_id), None) is not None

    def statement_exists(self, clinic_id, employee_user_id, year, month) -> bool:
        return any(
            s.clinic_id == clinic_id
            and s.employee_user_id == employee_user_id
            and (s.payment_year, s.payment_month) == (year, month)
            for s in self.statements.values()
        )

    def create_statement(self, statement: PayrollStatement) -> int:
        statement_id = max(self.statements, default=0) + 1
        self.statements[statement_id] = replace(statement, statement_id=statement_id)
        return statement_id

    def list_statements(self, clinic_id, *, year=None, month=None, employee_user_id=None, status=None):
        return [
            s
            for s in self.statements.values()
            if s.clinic_id == clinic_id
            and (year is None or s.payment_year == year)
            and (month is None or s.payment_month == month)
            and (employee_user_id is None or s.employee_user_id == employee_user_id)
            and (status is None or s.status == status)
        ]

    def get_statement(self, clinic_id: int, statement_id: int):
        s = self.statements.get(int(statement_id))
        return s if s and s.clinic_id == clinic_id else None

    def update_statement(self, statement: PayrollStatement) -> bool:
        self.statements[statement.statement_id] = statement
        return True

    def set_statement_status(self, statement_id: int, status: StatementStatus) -> bool:
        self.statements[statement_id] = replace(self.statements[statement_id], status=status)
        return True

    def delete_statement(self, statement_id: int) -> bool:
        return self.statements.pop(statement_id, None) is not None


class InMemoryContracts:
    def __init__(self, users: Optional[InMemoryUsers] = None):
        self._users = users
        self.contracts: dict[int, EmploymentContract] = {}

    def _named(self, c: EmploymentContract) -> EmploymentContract:
        user = self._users.get_by_id(c.employee_user_id) if self._users else None
        return replace(c, employee_name=user.name if user else None)

    def create_contract(self, contract: EmploymentContract) -> int:
        contract_id = max(self.contracts, default=0) + 1
        self.contracts[contract_id] = replace(contract, contract_id=contract_id)
        return contract_id

    def get_contract(self, clinic_id: int, contract_id: int):
        c = self.contracts.get(int(contract_id))
        return self._named(c) if c and c.clinic_id == clinic_id else None

    def list_contracts(self, clinic_id: int, *, status=None, employee_user_id=None):
        return [
            self._named(c)
            for _, c in sorted(self.contracts.items(), reverse=True)
            if c.clinic_id == clinic_id
            and (status is None or c.status == status)
            and (employee_user_id is None or c.employee_user_id == employee_user_id)
        ]

    def update_terms(self, contract_id: int, contract_data, *, notes, version) -> bool:
        self.contracts[contract_id] = replace(
            self.contracts[contract_id], contract_data=contract_data, notes=notes, version=version
        )
        return True

    def set_status(self, contract_id: int, status: ContractStatus, *, completed_at=None) -> bool:
        self.contracts[contract_id] = replace(self.contracts[contract_id], status=status, completed_at=completed_at)
        return True

    def cancel(self, contract_id: int, *, cancelled_by: int, reason: str, cancelled_at: datetime) -> bool:
        self.contracts[contract_id] = replace(
            self.contracts[contract_id],
            status=ContractStatus.CANCELLED,
            cancelled_by=cancelled_by,
            cancellation_reason=reason,
            cancelled_at=cancelled_at,
        )
        return True

    def delete_contract(self, contract_id: int) -> bool:
        return self.contracts.pop(contract_id, None) is not None

    def add_signature(self, *, contract_id, signer_user_id, signer_type, signature_data, signed_at, ip_address, user_agent):
        contract = self.contracts[contract_id]
        signature = ContractSignature(
            signature_id=sum(len(c.signatures) for c in self.contracts.values()) + 1,
            contract_id=contract_id,
            signer_user_id=signer_user_id,
            signer_type=signer_type,
            signature_data=signature_data,
            signed_at=signed_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.contracts[contract_id] = replace(contract, signatures=contract.signatures + (signature,))
        return signature


class InMemoryBulletin:
    def __init__(self):
        self.announcements: dict[int, Announcement] = {}

    def list_announcements(self, clinic_id: int, *, category=None, search=None, limit: int, offset: int):
        matches = [
            a
            for a in self.announcements.values()
            if a.clinic_id == clinic_id
            and (category is None or a.category == category)
            and (not search or search in a.title or search in a.content)
        ]
        matches.sort(key=lambda a: (a.is_pinned, a.announcement_id), reverse=True)
        return matches[offset : offset + limit], len(matches)

    def get_announcement(self, clinic_id: int, announcement_id: int):
        a = self.announcements.get(int(announcement_id))
        return a if a and a.clinic_id == clinic_id else None

    def create_announcement(self, announcement: Announcement) -> int:
        announcement_id = max(self.announcements, default=0) + 1
        self.announcements[announcement_id] = replace(announcement, announcement_id=announcement_id)
        return announcement_id

    def update_announcement(self, announcement: Announcement) -> bool:
        self.announcements[announcement.announcement_id] = announcement
        return True

    def delete_announcement(self, announcement_id: int) -> bool:
        return self.announcements.pop(announcement_id, None) is not None

    def increment_view_count(self, announcement_id: int) -> None:
        a = self.announcements[announcement_id]
        self.announcements[announcement_id] = replace(a, view_count=a.view_count + 1)

    def list_upcoming(self, clinic_id: int, *, since: date, limit: int):
        dated = [
            a
            for a in self.announcements.values()
            if a.clinic_id == clinic_id
            and a.category in (AnnouncementCategory.SCHEDULE, AnnouncementCategory.HOLIDAY)
            and a.start_date
            and a.start_date >= since
        ]
        return sorted(dated, key=lambda a: a.start_date)[:limit]


class InMemoryInventory:
    def __init__(self):
        self.items: dict[int, GiftItem] = {}
        self.categories: dict[int, GiftCategory] = {}
        self.logs: list[InventoryLog] = []

    def list_items(self, clinic_id: int):
        return sorted((i for i in self.items.values() if i.clinic_id == clinic_id), key=lambda i: i.name)

    def get_item(self, clinic_id: int, item_id: int):
        item = self.items.get(int(item_id))
        return item if item and item.clinic_id == clinic_id else None

    def get_item_by_name(self, clinic_id: int, name: str):
        return next((i for i in self.items.values() if i.clinic_id == clinic_id and i.name == name), None)

    def create_item(self, *, clinic_id, name, stock, category_id) -> int:
        item_id = max(self.items, default=0) + 1
        self.items[item_id] = GiftItem(item_id=item_id, clinic_id=clinic_id, name=name, stock=stock, category_id=category_id)
        return item_id

    def set_stock(self, item_id: int, stock: int) -> bool:
        self.items[item_id] = replace(self.items[item_id], stock=stock)
        return True

    def set_category(self, item_id: int, category_id) -> bool:
        self.items[item_id] = replace(self.items[item_id], category_id=category_id)
        return True

    def delete_item(self, item_id: int) -> bool:
        return self.items.pop(item_id, None) is not None

    def add_log(self, *, clinic_id, logged_at, name, reason, change_amount, old_stock, new_stock) -> int:
        log_id = len(self.logs) + 1
        self.logs.append(
            InventoryLog(
                log_id=log_id,
                clinic_id=clinic_id,
                logged_at=logged_at,
                name=name,
                reason=reason,
                change_amount=change_amount,
                old_stock=old_stock,
                new_stock=new_stock,
            )
        )
        return log_id

    def list_logs(self, clinic_id: int, *, limit: int):
        return [log for log in reversed(self.logs) if log.clinic_id == clinic_id][:limit]

    def list_categories(self, clinic_id: int):
        return sorted(
            (c for c in self.categories.values() if c.clinic_id == clinic_id), key=lambda c: (c.display_order, c.name)
        )

    def get_category(self, clinic_id: int, category_id: int):
        c = self.categories.get(int(category_id))
        return c if c and c.clinic_id == clinic_id else None

    def create_category(self, *, clinic_id, name, color, display_order) -> int:
        category_id = max(self.categories, default=0) + 1
        self.categories[category_id] = GiftCategory(
            category_id=category_id, clinic_id=clinic_id, name=name, color=color, display_order=display_order
        )
        return category_id

    def delete_category(self, category_id: int) -> bool:
        for item in list(self.items.values()):
            if item.category_id == category_id:
                self.items[item.item_id] = replace(item, category_id=None)
        return self.categories.pop(category_id, None) is not None


class InMemoryReports:
    def __init__(self):
        self.reports: dict[tuple[int, date], DailyReport] = {}
        self.consults: dict[int, ConsultLog] = {}
        self.gifts: dict[int, GiftLog] = {}
        self.happy_calls: dict[int, HappyCallLog] = {}
        self.notes: list[SpecialNote] = []
        self._id = 0

    def _next(self) -> int:
        self._id += 1
        return self._id

    def get_report(self, clinic_id, report_date):
        return self.reports.get((clinic_id, report_date))

    def list_reports(self, clinic_id, start, end):
        return sorted(
            (r for (c, d), r in self.reports.items() if c == clinic_id and start <= d <= end),
            key=lambda r: r.report_date,
        )

    @staticmethod
    def _between(rows, clinic_id, start, end):
        return sorted(
            (r for r in rows.values() if r.clinic_id == clinic_id and start <= r.log_date <= end),
            key=lambda r: (r.log_date, r.log_id),
        )

    def list_consults(self, clinic_id, start, end):
        return self._between(self.consults, clinic_id, start, end)

    def list_gifts(self, clinic_id, start, end):
        return self._between(self.gifts, clinic_id, start, end)

    def list_happy_calls(self, clinic_id, start, end):
        return self._between(self.happy_calls, clinic_id, start, end)

    def _drop_logs(self, clinic_id, day):
        for rows in (self.consults, self.gifts, self.happy_calls):
            for log_id in [k for k, r in rows.items() if r.clinic_id == clinic_id and r.log_date == day]:
                del rows[log_id]

    def replace_report(self, report, consults, gifts, happy_calls) -> int:
        self._drop_logs(report.clinic_id, report.report_date)
        self.save_counts(report)
        for rows, new in ((self.consults, consults), (self.gifts, gifts), (self.happy_calls, happy_calls)):
            for row in new:
                log_id = self._next()
                rows[log_id] = replace(row, log_id=log_id)
        return self.reports[(report.clinic_id, report.report_date)].report_id

    def save_counts(self, report) -> None:
        key = (report.clinic_id, report.report_date)
        existing = self.reports.get(key)
        report_id = existing.report_id if existing else self._next()
        self.reports[key] = replace(report, report_id=report_id)

    def delete_report(self, clinic_id, report_date) -> bool:
        self._drop_logs(clinic_id, report_date)
        return self.reports.pop((clinic_id, report_date), None) is not None

    def get_consult(self, clinic_id, log_id):
        c = self.consults.get(int(log_id))
        return c if c and c.clinic_id == clinic_id else None

    def set_consult_status(self, log_id, status) -> bool:
        self.consults[log_id] = replace(self.consults[log_id], consult_status=status)
        return True

    def add_consult(self, log) -> int:
        log_id = self._next()
        self.consults[log_id] = replace(log, log_id=log_id)
        return log_id

    def add_special_note(self, note) -> int:
        self.notes.append(replace(note, note_id=len(self.notes) + 1))
        return len(self.notes)

    def list_special_notes(self, clinic_id, report_date):
        return [n for n in reversed(self.notes) if n.clinic_id == clinic_id and n.report_date == report_date]


# ----- fixtures -----


@pytest.fixture
def owner() -> User:
    return make_user(1, role=Role.OWNER, name="김원장", email="owner@clinic.kr", password_hash=generate_password_hash("owner123"))


@pytest.fixture
def staff() -> User:
    return make_user(2, name="이위생사", email="staff@clinic.kr", hire_date=date(2024, 1, 1))


@pytest.fixture
def users_repo(owner, staff) -> InMemoryUsers:
    return InMemoryUsers([owner, staff])


@pytest.fixture
def clinics_repo() -> InMemoryClinics:
    return InMemoryClinics(WEEKDAY_HOURS)


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def inventory_repo() -> InMemoryInventory:
    return InMemoryInventory()


@pytest.fixture
def reports_repo() -> InMemoryReports:
    return InMemoryReports()


@pytest.fixture
def payroll_repo() -> InMemoryPayroll:
    return InMemoryPayroll()


@pytest.fixture
def contracts_repo(users_repo) -> InMemoryContracts:
    return InMemoryContracts(users_repo)


@pytest.fixture
def bulletin_repo() -> InMemoryBulletin:
    return InMemoryBulletin()


@pytest.fixture
def container(
    users_repo, clinics_repo, attendance_repo, payroll_repo, reports_repo, inventory_repo, contracts_repo, bulletin_repo
):
    return wire(
        users_repo=users_repo,
        clinics_repo=clinics_repo,
        attendance_repo=attendance_repo,
        qr_repo=InMemoryQRCodes(),
        payroll_repo=payroll_repo,
        reports_repo=reports_repo,
        inventory_repo=inventory_repo,
        contracts_repo=contracts_repo,
        bulletin_repo=bulletin_repo,
    )


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    from dental_clinic.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


def login_as(client, user: User) -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user.user_id
        sess["clinic_id"] = user.clinic_id
        sess["role"] = user.role.value
        sess["name"] = user.name


@pytest.fixture
def as_owner(client, owner):
    login_as(client, owner)
    return client


@pytest.fixture
def as_staff(client, staff):
    login_as(client, staff)
    return client


def record(attendance_id, user_id, day, check_in, check_out, status=AttendanceStatus.ON_TIME, clinic_id=1):
    """AttendanceRecord on the 09:00-18:00 schedule with a one hour break."""
    return AttendanceRecord(
        attendance_id=attendance_id,
        clinic_id=clinic_id,
        user_id=user_id,
        work_date=day,
        check_in_time=datetime.combine(day, check_in) if check_in else None,
        check_out_time=datetime.combine(day, check_out) if check_out else None,
        status=status,
        scheduled_start=time(9, 0),
        scheduled_end=time(18, 0),
        break_minutes=60,
    )
