from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from werkzeug.datastructures import FileStorage
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.access import require_admin, require_self_or_admin
from ..common.datetime_utils import next_anniversary
from ..common.pagination import Page, paginate
from ..common.uploads import save_upload
from ..common.validators import (
    optional_str,
    parse_hhmm,
    parse_int,
    parse_optional_date,
    require_email,
    require_min_length,
    require_non_empty,
    require_non_negative,
)
from ..core.constants import (
    DEFAULT_UPCOMING_DAYS,
    DOCUMENT_MIME_TYPES,
    DOCUMENT_TYPES,
    IMAGE_MIME_TYPES,
    MAX_DOCUMENT_BYTES,
    MAX_EDUCATION_YEARS_AHEAD,
    MAX_IBAN_LENGTH,
    MIN_EDUCATION_YEAR,
    MIN_PASSWORD_LENGTH,
)
from ..core.enums import APPROVER_ROLES, JobStatus, Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from .model import (
    BankAccountDetails,
    ContactDetails,
    Education,
    EmergencyContact,
    PersonalDetails,
    SalaryDetails,
    SessionUser,
    UpcomingDate,
    User,
    UserProfile,
)
from .repository import UserRepository

logger = logging.getLogger(__name__)

_IBAN_RE = re.compile(r"^[A-Za-z0-9]+$")
_SELF_EDITABLE_PERSONAL = frozenset({"gender", "date_of_birth"})


def _is_filter(value: Optional[str]) -> bool:
    return bool(value) and value != "All"


def _personal_from_fields(base: PersonalDetails, fields: Mapping[str, Any]) -> PersonalDetails:
    changes: dict[str, Any] = {}
    for key in ("department", "job_category", "job_title", "full_job_title", "abbreviated_job_title", "job_type", "gender"):
        if key in fields:
            changes[key] = optional_str(fields[key])
    if "job_status" in fields:
        try:
            changes["job_status"] = JobStatus(fields["job_status"])
        except ValueError:
            raise ValidationError("Job status must be Probation or Permanent.")
    for key, label in (("date_of_birth", "Date of birth"), ("joining_date", "Joining date")):
        if key in fields:
            changes[key] = parse_optional_date(fields[key], label)
    for key, label in (("shift_start_time", "Shift start time"), ("shift_end_time", "Shift end time")):
        if key in fields:
            changes[key] = parse_hhmm(fields[key], label)
    return replace(base, **changes)


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password.")

        logger.info("User %s logged in", user.id)
        return SessionUser(user_id=user.id, name=user.name, email=user.email, role=user.role)


class UserService:
    """Use cases HR runs on employee accounts."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found.")
        return user

    def register_employee(
        self,
        *,
        current_role: Role,
        name: str,
        email: str,
        password: str,
        role: Role | str = Role.NORMAL,
        fields: Optional[Mapping[str, Any]] = None,
    ) -> int:
        require_admin(current_role)

        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError("Role is not valid.")
        if role == Role.SUPER_ADMIN:
            raise ValidationError("A SuperAdmin account cannot be created from this screen.")
        if self._users.get_by_email(email):
            raise ValidationError("A user with this email already exists.")

        fields = dict(fields or {})
        personal = _personal_from_fields(PersonalDetails(), fields)
        salary = self._salary_from_fields(SalaryDetails(), fields)
        manager_id = fields.get("manager_id")
        if manager_id:
            self._require_manager(int(manager_id))

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            personal=personal,
            salary=salary,
            manager_id=int(manager_id) if manager_id else None,
        )
        logger.info("Registered employee %s (%s)", user_id, role.value)
        return user_id

    def list_users(
        self,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        job_title: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[User]:
        users: Sequence[User] = self._users.list_all()
        needle = (search or "").strip().lower()
        if needle:
            users = [u for u in users if needle in u.name.lower()]
        if _is_filter(department):
            users = [u for u in users if u.personal.department == department]
        if _is_filter(job_title):
            users = [u for u in users if u.personal.job_title == job_title]
        return paginate(list(users), page, limit)

    def list_managers(self) -> list[User]:
        return [u for u in self._users.list_all(active_only=True) if u.role in APPROVER_ROLES]

    @staticmethod
    def _salary_from_fields(base: SalaryDetails, fields: Mapping[str, Any]) -> SalaryDetails:
        changes = {}
        for key, label in (
            ("basic_salary", "Basic salary"),
            ("medical_allowance", "Medical allowance"),
            ("mobile_allowance", "Mobile allowance"),
            ("fuel_allowance", "Fuel allowance"),
        ):
            if key in fields:
                changes[key] = require_non_negative(fields[key], label)
        return replace(base, **changes)

    def update_salary_details(self, *, current_role: Role, user_id: int, fields: Mapping[str, Any]) -> SalaryDetails:
        require_admin(current_role)
        user = self.get_user(user_id)
        salary = self._salary_from_fields(user.salary, fields)
        self._users.update_salary_details(user.id, salary)
        logger.info("Salary details updated for user %s", user.id)
        return salary

    def set_status(self, *, current_role: Role, user_id: int, is_active: bool) -> None:
        require_admin(current_role)
        user = self.get_user(user_id)
        if user.role == Role.SUPER_ADMIN and not is_active:
            raise ValidationError("A SuperAdmin account cannot be deactivated.")
        self._users.set_active(user.id, is_active=bool(is_active))
        logger.info("User %s set %s", user.id, "active" if is_active else "inactive")

    def reset_password(self, *, current_role: Role, user_id: int, new_password: str) -> None:
        require_admin(current_role)
        user = self.get_user(user_id)
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        self._users.update_password(user.id, generate_password_hash(new_password))
        logger.info("Password reset for user %s", user.id)

    def update_shift(self, *, current_role: Role, user_id: int, start: str, end: str) -> PersonalDetails:
        require_admin(current_role)
        user = self.get_user(user_id)
        start_t = parse_hhmm(start, "Shift start time")
        end_t = parse_hhmm(end, "Shift end time")
        if not start_t or not end_t:
            raise ValidationError("Shift start and end times are required.")
        if end_t <= start_t:
            raise ValidationError("Shift end time must be after start time.")
        personal = replace(user.personal, shift_start_time=start_t, shift_end_time=end_t)
        self._users.update_personal_details(user.id, personal)
        return personal

    def _require_manager(self, manager_id: int) -> User:
        manager = self._users.get_by_id(manager_id)
        if not manager:
            raise NotFoundError("Manager not found.")
        if manager.role not in APPROVER_ROLES:
            raise ValidationError("Selected user cannot act as a manager.")
        return manager

    def assign_manager(self, *, current_role: Role, user_id: int, manager_id: int) -> None:
        require_admin(current_role)
        user = self.get_user(user_id)
        if int(manager_id) == user.id:
            raise ValidationError("An employee cannot manage themselves.")
        manager = self._require_manager(int(manager_id))
        self._users.set_manager(user.id, manager.id)
        logger.info("User %s assigned to manager %s", user.id, manager.id)

    def unassign_manager(self, *, current_role: Role, user_id: int) -> None:
        require_admin(current_role)
        user = self.get_user(user_id)
        self._users.set_manager(user.id, None)

    def _upcoming(self, *, today: date, days: int, anniversary: bool) -> list[UpcomingDate]:
        out: list[UpcomingDate] = []
        for user in self._users.list_all(active_only=True):
            origin = user.personal.joining_date if anniversary else user.personal.date_of_birth
            if not origin:
                continue
            on = next_anniversary(origin, today)
            days_until = (on - today).days
            if days_until > days:
                continue
            years = on.year - origin.year if anniversary else None
            if anniversary and not years:
                continue
            out.append(UpcomingDate(user=user, on=on, days_until=days_until, years=years))
        out.sort(key=lambda x: (x.days_until, x.user.name))
        return out

    def upcoming_birthdays(self, *, today: date, days: int = DEFAULT_UPCOMING_DAYS) -> list[UpcomingDate]:
        return self._upcoming(today=today, days=int(days), anniversary=False)

    def work_anniversaries(self, *, today: date, days: int = DEFAULT_UPCOMING_DAYS) -> list[UpcomingDate]:
        return self._upcoming(today=today, days=int(days), anniversary=True)


class ProfileService:
    """Use cases behind the profile screen; each section is saved independently."""

    def __init__(self, users: UserRepository, *, upload_root: str | Path):
        self._users = users
        self._upload_root = Path(upload_root)

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found.")
        return user

    def get_profile(self, *, current_role: Role, actor_id: int, user_id: int) -> UserProfile:
        user = self._get(user_id)
        if user.manager_id != int(actor_id):
            require_self_or_admin(current_role, actor_id, user.id)
        manager = self._users.get_by_id(user.manager_id) if user.manager_id else None
        return UserProfile(
            user=user,
            contact=self._users.get_contact_details(user.id),
            education=list(self._users.list_education(user.id)),
            emergency_contacts=list(self._users.list_emergency_contacts(user.id)),
            bank=self._users.get_bank_details(user.id),
            documents=self._users.get_documents(user.id),
            manager=manager,
        )

    def update_personal_details(
        self, *, current_role: Role, actor_id: int, user_id: int, fields: Mapping[str, Any]
    ) -> PersonalDetails:
        require_self_or_admin(current_role, actor_id, user_id)
        user = self._get(user_id)
        if current_role not in (Role.SUPER_ADMIN, Role.HR):
            fields = {k: v for k, v in fields.items() if k in _SELF_EDITABLE_PERSONAL}
        personal = _personal_from_fields(user.personal, fields)
        if personal.shift_start_time and personal.shift_end_time and personal.shift_end_time <= personal.shift_start_time:
            raise ValidationError("Shift end time must be after start time.")
        self._users.update_personal_details(user.id, personal)
        return personal

    def update_contact_details(self, *, user_id: int, fields: Mapping[str, Any]) -> ContactDetails:
        user = self._get(user_id)
        details = ContactDetails(
            phone_number1=require_non_empty(fields.get("phone_number1"), "Phone number"),
            email=require_email(fields.get("email")),
            phone_number2=optional_str(fields.get("phone_number2")),
            current_city=optional_str(fields.get("current_city")),
            current_address=optional_str(fields.get("current_address")),
            permanent_city=optional_str(fields.get("permanent_city")),
            permanent_address=optional_str(fields.get("permanent_address")),
        )
        self._users.save_contact_details(user.id, details)
        return details

    def replace_education(self, *, user_id: int, items: Sequence[Mapping[str, Any]], today: date) -> list[Education]:
        user = self._get(user_id)
        max_year = today.year + MAX_EDUCATION_YEARS_AHEAD
        out: list[Education] = []
        for raw in items:
            year = parse_int(raw.get("year_of_completion"), "Year of completion")
            if not MIN_EDUCATION_YEAR <= year <= max_year:
                raise ValidationError(f"Year of completion must be between {MIN_EDUCATION_YEAR} and {max_year}.")
            out.append(
                Education(
                    institute=require_non_empty(raw.get("institute"), "Institute"),
                    degree=require_non_empty(raw.get("degree"), "Degree"),
                    year_of_completion=year,
                    field_of_study=optional_str(raw.get("field_of_study")),
                    gpa=optional_str(raw.get("gpa")),
                )
            )
        self._users.replace_education(user.id, out)
        return out

    def replace_emergency_contacts(self, *, user_id: int, items: Sequence[Mapping[str, Any]]) -> list[EmergencyContact]:
        user = self._get(user_id)
        out = [
            EmergencyContact(
                name1=require_non_empty(raw.get("name1"), "Contact name"),
                relation1=require_non_empty(raw.get("relation1"), "Relation"),
                contact_number1=require_non_empty(raw.get("contact_number1"), "Contact number"),
                name2=optional_str(raw.get("name2")),
                relation2=optional_str(raw.get("relation2")),
                contact_number2=optional_str(raw.get("contact_number2")),
            )
            for raw in items
        ]
        self._users.replace_emergency_contacts(user.id, out)
        return out

    def update_bank_details(self, *, user_id: int, fields: Mapping[str, Any]) -> BankAccountDetails:
        user = self._get(user_id)
        iban = optional_str(fields.get("iban_number"))
        if iban and (len(iban) > MAX_IBAN_LENGTH or not _IBAN_RE.match(iban)):
            raise ValidationError(f"IBAN must be alphanumeric and at most {MAX_IBAN_LENGTH} characters.")
        details = BankAccountDetails(
            bank_name=require_non_empty(fields.get("bank_name"), "Bank name"),
            account_title=require_non_empty(fields.get("account_title"), "Account title"),
            account_number=require_non_empty(fields.get("account_number"), "Account number"),
            branch_name=optional_str(fields.get("branch_name")),
            iban_number=iban.upper() if iban else None,
        )
        self._users.save_bank_details(user.id, details)
        return details

    def upload_document(self, *, user_id: int, doc_type: str, file: Optional[FileStorage]) -> str:
        user = self._get(user_id)
        if doc_type not in DOCUMENT_TYPES:
            raise ValidationError("Document type is not valid.")
        path = save_upload(
            file,
            root=self._upload_root,
            folder=f"documents/{user.id}",
            allowed=DOCUMENT_MIME_TYPES,
            max_bytes=MAX_DOCUMENT_BYTES,
            label=doc_type,
        )
        self._users.save_document(user.id, doc_type, path)
        return path

    def upload_resume(self, *, user_id: int, file: Optional[FileStorage]) -> str:
        user = self._get(user_id)
        path = save_upload(
            file,
            root=self._upload_root,
            folder=f"resumes/{user.id}",
            allowed=DOCUMENT_MIME_TYPES,
            max_bytes=MAX_DOCUMENT_BYTES,
            label="Resume",
        )
        self._users.set_resume(user.id, path)
        return path

    def upload_profile_picture(self, *, user_id: int, file: Optional[FileStorage]) -> str:
        user = self._get(user_id)
        path = save_upload(
            file,
            root=self._upload_root,
            folder="profile-pictures",
            allowed=IMAGE_MIME_TYPES,
            max_bytes=MAX_DOCUMENT_BYTES,
            label="Profile picture",
        )
        self._users.set_profile_picture(user.id, path)
        return path

    def update_password(self, *, user_id: int, current_password: str, new_password: str, confirm_password: str) -> None:
        user = self._get(user_id)
        if not check_password_hash(user.password_hash, current_password or ""):
            raise ValidationError("Current password is incorrect.")
        if new_password != confirm_password:
            raise ValidationError("New password and confirmation do not match.")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        self._users.update_password(user.id, generate_password_hash(new_password))
        logger.info("User %s changed password", user.id)
