from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_datetime, fmt_time
from ..core.enums import JobStatus, Role


@dataclass(frozen=True)
class PersonalDetails:
    department: Optional[str] = None
    job_category: Optional[str] = None
    job_title: Optional[str] = None
    full_job_title: Optional[str] = None
    abbreviated_job_title: Optional[str] = None
    job_type: Optional[str] = None
    job_status: JobStatus = JobStatus.PROBATION
    shift_start_time: Optional[time] = None
    shift_end_time: Optional[time] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    joining_date: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "jobCategory": self.job_category,
            "jobTitle": self.job_title,
            "fullJobTitle": self.full_job_title,
            "abbreviatedJobTitle": self.abbreviated_job_title,
            "jobType": self.job_type,
            "jobStatus": self.job_status.value,
            "shiftStartTime": fmt_time(self.shift_start_time),
            "shiftEndTime": fmt_time(self.shift_end_time),
            "gender": self.gender,
            "dateOfBirth": fmt_date(self.date_of_birth),
            "joiningDate": fmt_date(self.joining_date),
        }


@dataclass(frozen=True)
class SalaryDetails:
    basic_salary: Decimal = Decimal("0")
    medical_allowance: Decimal = Decimal("0")
    mobile_allowance: Decimal = Decimal("0")
    fuel_allowance: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "basicSalary": float(self.basic_salary),
            "medicalAllowance": float(self.medical_allowance),
            "mobileAllowance": float(self.mobile_allowance),
            "fuelAllowance": float(self.fuel_allowance),
        }


@dataclass(frozen=True)
class User:
    """Employee account with the personal/salary sections stored alongside it."""

    id: int
    name: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True
    manager_id: Optional[int] = None
    profile_picture: Optional[str] = None
    resume: Optional[str] = None
    personal: PersonalDetails = field(default_factory=PersonalDetails)
    salary: SalaryDetails = field(default_factory=SalaryDetails)
    created_at: Optional[datetime] = None

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "department": self.personal.department,
            "jobTitle": self.personal.job_title,
        }

    def to_dict(self, *, include_salary: bool = False) -> dict:
        data = {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "isActive": self.is_active,
            "manager": self.manager_id,
            "profilePicture": self.profile_picture,
            "resume": self.resume,
            "personalDetails": self.personal.to_dict(),
            "createdAt": fmt_datetime(self.created_at),
        }
        if include_salary:
            data["salaryDetails"] = self.salary.to_dict()
        return data


@dataclass(frozen=True)
class ContactDetails:
    phone_number1: str
    email: str
    phone_number2: Optional[str] = None
    current_city: Optional[str] = None
    current_address: Optional[str] = None
    permanent_city: Optional[str] = None
    permanent_address: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "phoneNumber1": self.phone_number1,
            "phoneNumber2": self.phone_number2,
            "email": self.email,
            "currentCity": self.current_city,
            "currentAddress": self.current_address,
            "permanentCity": self.permanent_city,
            "permanentAddress": self.permanent_address,
        }


@dataclass(frozen=True)
class Education:
    institute: str
    degree: str
    year_of_completion: int
    field_of_study: Optional[str] = None
    gpa: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "institute": self.institute,
            "degree": self.degree,
            "fieldOfStudy": self.field_of_study,
            "gpa": self.gpa,
            "yearOfCompletion": self.year_of_completion,
        }


@dataclass(frozen=True)
class EmergencyContact:
    name1: str
    relation1: str
    contact_number1: str
    name2: Optional[str] = None
    relation2: Optional[str] = None
    contact_number2: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name1": self.name1,
            "relation1": self.relation1,
            "contactNumber1": self.contact_number1,
            "name2": self.name2,
            "relation2": self.relation2,
            "contactNumber2": self.contact_number2,
        }


@dataclass(frozen=True)
class BankAccountDetails:
    bank_name: str
    account_title: str
    account_number: str
    branch_name: Optional[str] = None
    iban_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "bankName": self.bank_name,
            "branchName": self.branch_name,
            "accountTitle": self.account_title,
            "accountNumber": self.account_number,
            "ibanNumber": self.iban_number,
        }


@dataclass(frozen=True)
class UserProfile:
    """Everything the profile screen shows, loaded section by section."""

    user: User
    contact: Optional[ContactDetails]
    education: list[Education]
    emergency_contacts: list[EmergencyContact]
    bank: Optional[BankAccountDetails]
    documents: dict[str, str]
    manager: Optional[User] = None

    def to_dict(self, *, include_salary: bool = True) -> dict:
        data = self.user.to_dict(include_salary=include_salary)
        data.update(
            {
                "contactDetails": self.contact.to_dict() if self.contact else None,
                "education": [e.to_dict() for e in self.education],
                "emergencyContacts": [c.to_dict() for c in self.emergency_contacts],
                "bankAccountDetails": self.bank.to_dict() if self.bank else None,
                "documents": dict(self.documents),
                "managerDetails": self.manager.summary() if self.manager else None,
            }
        )
        return data


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role

    def to_dict(self) -> dict:
        return {"_id": self.user_id, "name": self.name, "email": self.email, "role": self.role.value}


@dataclass(frozen=True)
class UpcomingDate:
    """Birthday or work anniversary falling inside the look-ahead window."""

    user: User
    on: date
    days_until: int
    years: Optional[int] = None

    def to_dict(self) -> dict:
        data = self.user.summary()
        data.update({"date": fmt_date(self.on), "daysUntil": self.days_until})
        if self.years is not None:
            data["years"] = self.years
        return data
