from __future__ import annotations

import os
import sys
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("APP_ENV", "testing")

from src.hr_console.hr_console.container import Container, assemble  # noqa: E402
from src.hr_console.hr_console.core.enums import JobStatus, Role  # noqa: E402
from src.hr_console.hr_console.users.model import PersonalDetails, SalaryDetails, User  # noqa: E402
from tests.fakes import (  # noqa: E402
    InMemoryActivity,
    InMemoryAttendance,
    InMemoryLeaves,
    InMemoryPayrolls,
    InMemoryTickets,
    InMemoryUsers,
    InMemoryVehicles,
)

PASSWORD = "secret123"


def make_user(
    user_id: int,
    role: Role = Role.NORMAL,
    *,
    name: str | None = None,
    job_status: JobStatus = JobStatus.PERMANENT,
    manager_id: int | None = None,
    is_active: bool = True,
    department: str = "Engineering",
    basic_salary: str = "100000",
    date_of_birth: date | None = None,
    joining_date: date | None = None,
) -> User:
    name = name or f"User {user_id}"
    return User(
        id=user_id,
        name=name,
        email=f"user{user_id}@hrconsole.local",
        password_hash=generate_password_hash(PASSWORD),
        role=role,
        is_active=is_active,
        manager_id=manager_id,
        personal=PersonalDetails(
            department=department,
            job_title="Engineer",
            job_status=job_status,
            shift_start_time=time(9, 0),
            shift_end_time=time(18, 0),
            date_of_birth=date_of_birth,
            joining_date=joining_date,
        ),
        salary=SalaryDetails(
            basic_salary=Decimal(basic_salary),
            medical_allowance=Decimal("5000"),
            mobile_allowance=Decimal("2000"),
            fuel_allowance=Decimal("8000"),
        ),
    )


def default_users() -> list[User]:
    """1 SuperAdmin, 2 HR, 3 manager, 4 employee reporting to 3, 5 on probation."""

    return [
        make_user(1, Role.SUPER_ADMIN, name="Super Admin"),
        make_user(2, Role.HR, name="Hana HR"),
        make_user(3, Role.MANAGER, name="Milo Manager"),
        make_user(4, Role.NORMAL, name="Eve Employee", manager_id=3),
        make_user(5, Role.NORMAL, name="Pat Probation", job_status=JobStatus.PROBATION),
    ]


def build_fake_container(*, now: datetime, upload_root: Path, users=None, settings=None) -> Container:
    users_repo = InMemoryUsers(default_users() if users is None else users)
    return assemble(
        users_repo=users_repo,
        attendance_repo=InMemoryAttendance(),
        leaves_repo=InMemoryLeaves(),
        tickets_repo=InMemoryTickets(),
        vehicles_repo=InMemoryVehicles(users_repo),
        payroll_repo=InMemoryPayrolls(),
        activity_repo=InMemoryActivity(),
        upload_root=upload_root,
        settings=settings,
        clock=lambda: now,
    )


@pytest.fixture
def fixed_now() -> datetime:
    # a Wednesday
    return datetime(2025, 3, 12, 9, 0)


@pytest.fixture
def make_container(fixed_now, tmp_path):
    def _make(**kwargs) -> Container:
        kwargs.setdefault("now", fixed_now)
        kwargs.setdefault("upload_root", tmp_path / "uploads")
        return build_fake_container(**kwargs)

    return _make


@pytest.fixture
def container(make_container) -> Container:
    return make_container()
