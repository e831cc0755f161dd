"""In-memory repositories shared by service and controller tests."""

from __future__ import annotations

from dataclasses import replace
from itertools import count
from datetime import date, datetime, time
from typing import Optional, Sequence

from src.hr_console.hr_console.activity.model import ActivityLog
from src.hr_console.hr_console.attendance.model import TimeLog
from src.hr_console.hr_console.core.enums import (
    AttendanceTicketStatus,
    AttendanceType,
    LeaveStatus,
    LeaveType,
    Role,
    TicketKind,
    TicketStatus,
)
from src.hr_console.hr_console.leaves.model import LeaveApplication
from src.hr_console.hr_console.payroll.model import PayrollRecord
from src.hr_console.hr_console.tickets.model import AttendanceTicket, Ticket
from src.hr_console.hr_console.users.model import (
    BankAccountDetails,
    ContactDetails,
    Education,
    EmergencyContact,
    PersonalDetails,
    SalaryDetails,
    User,
)
from src.hr_console.hr_console.vehicles.model import Invoice, Vehicle, registration_key

CREATED_AT = datetime(2025, 1, 1, 9, 0)


class InMemoryUsers:
    def __init__(self, users: Sequence[User] = ()):
        self.users: dict[int, User] = {u.id: u for u in users}
        self.contacts: dict[int, ContactDetails] = {}
        self.education: dict[int, list[Education]] = {}
        self.emergency: dict[int, list[EmergencyContact]] = {}
        self.banks: dict[int, BankAccountDetails] = {}
        self.documents: dict[int, dict[str, str]] = {}

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def list_all(self, *, active_only: bool = False) -> Sequence[User]:
        return [u for u in self.users.values() if u.is_active or not active_only]

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        personal: PersonalDetails,
        salary: SalaryDetails,
        manager_id: Optional[int] = None,
    ) -> int:
        user_id = max(self.users, default=0) + 1
        self.users[user_id] = User(
            id=user_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            manager_id=manager_id,
            personal=personal,
            salary=salary,
            created_at=CREATED_AT,
        )
        return user_id

    def _change(self, user_id: int, **changes) -> bool:
        if user_id not in self.users:
            return False
        self.users[user_id] = replace(self.users[user_id], **changes)
        return True

    def update_personal_details(self, user_id: int, details: PersonalDetails) -> bool:
        return self._change(user_id, personal=details)

    def update_salary_details(self, user_id: int, salary: SalaryDetails) -> bool:
        return self._change(user_id, salary=salary)

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        return self._change(user_id, is_active=is_active)

    def update_password(self, user_id: int, password_hash: str) -> bool:
        return self._change(user_id, password_hash=password_hash)

    def set_manager(self, user_id: int, manager_id: Optional[int]) -> bool:
        return self._change(user_id, manager_id=manager_id)

    def set_profile_picture(self, user_id: int, path: str) -> bool:
        return self._change(user_id, profile_picture=path)

    def set_resume(self, user_id: int, path: str) -> bool:
        return self._change(user_id, resume=path)

    def get_contact_details(self, user_id: int) -> Optional[ContactDetails]:
        return self.contacts.get(user_id)

    def save_contact_details(self, user_id: int, details: ContactDetails) -> None:
        self.contacts[user_id] = details

    def list_education(self, user_id: int) -> Sequence[Education]:
        return list(self.education.get(user_id, []))

    def replace_education(self, user_id: int, items: Sequence[Education]) -> None:
        self.education[user_id] = list(items)

    def list_emergency_contacts(self, user_id: int) -> Sequence[EmergencyContact]:
        return list(self.emergency.get(user_id, []))

    def replace_emergency_contacts(self, user_id: int, items: Sequence[EmergencyContact]) -> None:
        self.emergency[user_id] = list(items)

    def get_bank_details(self, user_id: int) -> Optional[BankAccountDetails]:
        return self.banks.get(user_id)

    def save_bank_details(self, user_id: int, details: BankAccountDetails) -> None:
        self.banks[user_id] = details

    def get_documents(self, user_id: int) -> dict[str, str]:
        return dict(self.documents.get(user_id, {}))

    def save_document(self, user_id: int, doc_type: str, path: str) -> None:
        self.documents.setdefault(user_id, {})[doc_type] = path


class InMemoryAttendance:
    def __init__(self):
        self.logs: dict[int, TimeLog] = {}
        self._id = 0

    def get(self, log_id: int) -> Optional[TimeLog]:
        return self.logs.get(log_id)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[TimeLog]:
        return next((l for l in self.logs.values() if l.user_id == user_id and l.work_date == work_date), None)

    def list_for_user(self, user_id: int, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[TimeLog]:
        items = [
            l
            for l in self.logs.values()
            if l.user_id == user_id and (start is None or l.work_date >= start) and (end is None or l.work_date <= end)
        ]
        return sorted(items, key=lambda l: (l.work_date, l.id), reverse=True)

    def list_between(self, start: date, end: date) -> Sequence[TimeLog]:
        return [l for l in self.logs.values() if start <= l.work_date <= end]

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        type: AttendanceType,
        time_in: Optional[time] = None,
        time_out: Optional[time] = None,
        duration: int = 0,
        remarks: Optional[str] = None,
        leave_application_id: Optional[int] = None,
    ) -> int:
        if self.get_for_user_and_date(user_id, work_date):
            raise AssertionError(f"duplicate time log for {user_id} on {work_date}")
        self._id += 1
        self.logs[self._id] = TimeLog(
            id=self._id,
            user_id=user_id,
            work_date=work_date,
            type=type,
            time_in=time_in,
            time_out=time_out,
            duration=duration,
            remarks=remarks,
            leave_application_id=leave_application_id,
        )
        return self._id

    def update(self, log: TimeLog) -> bool:
        if log.id not in self.logs:
            return False
        self.logs[log.id] = log
        return True

    def delete(self, log_id: int) -> bool:
        return self.logs.pop(log_id, None) is not None


class InMemoryLeaves:
    def __init__(self):
        self.applications: dict[int, LeaveApplication] = {}
        self._id = 0

    def create(self, *, user_id: int, leave_type: LeaveType, start_date: date, end_date: date, last_day_to_work: date,
               return_to_work: date, total_days: int, reason: str, handover_document: Optional[str]) -> int:
        self._id += 1
        self.applications[self._id] = LeaveApplication(
            id=self._id,
            user_id=user_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            last_day_to_work=last_day_to_work,
            return_to_work=return_to_work,
            total_days=total_days,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=CREATED_AT,
            handover_document=handover_document,
        )
        return self._id

    def get(self, application_id: int) -> Optional[LeaveApplication]:
        return self.applications.get(application_id)

    def list_for_users(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[LeaveApplication]:
        items = [a for a in self.applications.values() if user_ids is None or a.user_id in user_ids]
        return sorted(items, key=lambda a: a.id, reverse=True)

    def update_dates(self, application_id: int, **changes) -> bool:
        app = self.applications.get(application_id)
        if not app or app.status != LeaveStatus.PENDING:
            return False
        self.applications[application_id] = replace(app, **changes)
        return True

    def decide(self, application_id: int, *, status: LeaveStatus, decided_by: int, decided_at: datetime,
               comments: Optional[str]) -> bool:
        app = self.applications.get(application_id)
        if not app or app.status != LeaveStatus.PENDING:
            return False
        self.applications[application_id] = replace(
            app, status=status, decided_by=decided_by, decided_at=decided_at, comments=comments
        )
        return True


class InMemoryTickets:
    def __init__(self):
        self.tickets: dict[int, Ticket] = {}
        self.attendance_tickets: dict[int, AttendanceTicket] = {}
        self._ticket_ids = count(1)
        self._attendance_ticket_ids = count(1)

    def create_ticket(self, *, user_id: int, kind: TicketKind, category: str, subject: str, message: str) -> int:
        ticket_id = next(self._ticket_ids)
        self.tickets[ticket_id] = Ticket(
            id=ticket_id,
            user_id=user_id,
            kind=kind,
            category=category,
            subject=subject,
            message=message,
            status=TicketStatus.OPEN,
            created_at=CREATED_AT,
        )
        return ticket_id

    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        return self.tickets.get(ticket_id)

    def list_tickets(self, *, user_id=None, kind=None, status=None) -> Sequence[Ticket]:
        return [
            t
            for t in sorted(self.tickets.values(), key=lambda t: t.id, reverse=True)
            if (user_id is None or t.user_id == user_id)
            and (kind is None or t.kind == kind)
            and (status is None or t.status == status)
        ]

    def update_ticket_status(self, ticket_id: int, *, status: TicketStatus, updated_at: datetime) -> bool:
        ticket = self.tickets.get(ticket_id)
        if not ticket or ticket.status != TicketStatus.OPEN:
            return False
        self.tickets[ticket_id] = replace(ticket, status=status, updated_at=updated_at)
        return True

    def create_attendance_ticket(self, *, user_id: int, date: date, time_in, time_out, total_time: int,
                                 work_location: str, comments, file) -> int:
        ticket_id = next(self._attendance_ticket_ids)
        self.attendance_tickets[ticket_id] = AttendanceTicket(
            id=ticket_id,
            user_id=user_id,
            date=date,
            work_location=work_location,
            status=AttendanceTicketStatus.OPEN,
            created_at=CREATED_AT,
            time_in=time_in,
            time_out=time_out,
            total_time=total_time,
            comments=comments,
            file=file,
        )
        return ticket_id

    def get_attendance_ticket(self, ticket_id: int) -> Optional[AttendanceTicket]:
        return self.attendance_tickets.get(ticket_id)

    def list_attendance_tickets(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[AttendanceTicket]:
        return [t for t in self.attendance_tickets.values() if user_ids is None or t.user_id in user_ids]

    def decide_attendance_ticket(self, ticket_id: int, *, status, decided_by: int, decided_at: datetime) -> bool:
        ticket = self.attendance_tickets.get(ticket_id)
        if not ticket or ticket.status != AttendanceTicketStatus.OPEN:
            return False
        self.attendance_tickets[ticket_id] = replace(
            ticket, status=status, decided_by=decided_by, decided_at=decided_at
        )
        return True


class InMemoryVehicles:
    def __init__(self, users: Optional[InMemoryUsers] = None):
        self.vehicles: dict[int, Vehicle] = {}
        self.invoices: dict[int, Invoice] = {}
        self._users = users
        self._vehicle_ids = count(1)
        self._invoice_ids = count(1)

    def _with_name(self, vehicle: Vehicle) -> Vehicle:
        user = self._users.get_by_id(vehicle.assigned_to) if self._users and vehicle.assigned_to else None
        return replace(vehicle, assigned_name=user.name if user else None)

    def create(self, *, make: str, model: str, registration_no: str, vehicle_picture, vehicle_documents) -> int:
        if self.get_by_registration(registration_no):
            raise AssertionError("duplicate registration key")
        vehicle_id = next(self._vehicle_ids)
        self.vehicles[vehicle_id] = Vehicle(
            id=vehicle_id,
            make=make,
            model=model,
            registration_no=registration_no,
            created_at=CREATED_AT,
            vehicle_picture=vehicle_picture,
            vehicle_documents=tuple(vehicle_documents),
        )
        return vehicle_id

    def get(self, vehicle_id: int) -> Optional[Vehicle]:
        vehicle = self.vehicles.get(vehicle_id)
        return self._with_name(vehicle) if vehicle else None

    def get_by_registration(self, registration_no: str) -> Optional[Vehicle]:
        key = registration_key(registration_no)
        return next((v for v in self.vehicles.values() if registration_key(v.registration_no) == key), None)

    def get_assigned_to(self, user_id: int) -> Optional[Vehicle]:
        vehicle = next((v for v in self.vehicles.values() if v.assigned_to == user_id), None)
        return self._with_name(vehicle) if vehicle else None

    def list_all(self) -> Sequence[Vehicle]:
        return [self._with_name(v) for v in sorted(self.vehicles.values(), key=lambda v: v.id, reverse=True)]

    def update(self, vehicle: Vehicle) -> bool:
        self.vehicles[vehicle.id] = vehicle
        return True

    def delete(self, vehicle_id: int) -> bool:
        if self.vehicles.pop(vehicle_id, None) is None:
            return False
        self.invoices = {k: i for k, i in self.invoices.items() if i.vehicle_id != vehicle_id}
        return True

    def set_assignee(self, vehicle_id: int, user_id: Optional[int]) -> bool:
        held = self.get_assigned_to(user_id) if user_id is not None else None
        if held and held.id != vehicle_id:
            raise AssertionError("a user holds at most one vehicle")
        self.vehicles[vehicle_id] = replace(self.vehicles[vehicle_id], assigned_to=user_id)
        return True

    def add_invoice(self, *, vehicle_id: int, date: date, amount, description, invoice_image) -> int:
        invoice_id = next(self._invoice_ids)
        self.invoices[invoice_id] = Invoice(
            id=invoice_id,
            vehicle_id=vehicle_id,
            date=date,
            amount=amount,
            description=description,
            invoice_image=invoice_image,
        )
        return invoice_id

    def list_invoices(self, vehicle_id: Optional[int] = None) -> Sequence[Invoice]:
        return [i for i in self.invoices.values() if vehicle_id is None or i.vehicle_id == vehicle_id]


class InMemoryPayrolls:
    def __init__(self):
        self.records: dict[int, PayrollRecord] = {}
        self._id = 0

    def create(self, record: PayrollRecord) -> int:
        if self.find(record.user_id, record.month, record.year):
            raise AssertionError("one payroll per employee and period")
        self._id += 1
        self.records[self._id] = replace(record, id=self._id)
        return self._id

    def get(self, payroll_id: int) -> Optional[PayrollRecord]:
        return self.records.get(payroll_id)

    def find(self, user_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        return next(
            (r for r in self.records.values() if (r.user_id, r.month, r.year) == (user_id, month, year)),
            None,
        )

    def list_all(self, *, month: Optional[int] = None, year: Optional[int] = None) -> Sequence[PayrollRecord]:
        return [
            r
            for r in self.records.values()
            if (month is None or r.month == month) and (year is None or r.year == year)
        ]

    def update(self, record: PayrollRecord) -> bool:
        if record.id not in self.records:
            return False
        self.records[record.id] = record
        return True

    def delete(self, payroll_id: int) -> bool:
        return self.records.pop(payroll_id, None) is not None


class InMemoryActivity:
    def __init__(self):
        self.logs: list[ActivityLog] = []

    def add(self, *, user_id, action, module, target_id, description, status, ip_address, user_agent,
            created_at: datetime) -> int:
        log_id = len(self.logs) + 1
        self.logs.append(
            ActivityLog(
                id=log_id,
                user_id=user_id,
                action=action,
                module=module,
                created_at=created_at,
                target_id=target_id,
                description=description,
                status=status,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        return log_id

    def list_all(self) -> Sequence[ActivityLog]:
        return sorted(self.logs, key=lambda l: (l.created_at, l.id), reverse=True)
