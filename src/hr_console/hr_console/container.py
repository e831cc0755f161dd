from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .activity.mysql_activity_repository import MySQLActivityRepository
from .activity.repository import ActivityRepository
from .activity.service import ActivityService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .core.constants import (
    DEFAULT_EOBI_EMPLOYEE_CONTRIBUTION,
    DEFAULT_HALF_DAY_MINUTES,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_PF_RATE,
    DEFAULT_TAX_RATE,
)
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator, default_rates
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .tickets.mysql_ticket_repository import MySQLTicketRepository
from .tickets.repository import TicketRepository
from .tickets.service import TicketService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, ProfileService, UserService
from .vehicles.mysql_vehicle_repository import MySQLVehicleRepository
from .vehicles.repository import VehicleRepository
from .vehicles.service import VehicleService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    clock: Callable[[], datetime]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    tickets_repo: TicketRepository
    vehicles_repo: VehicleRepository
    payroll_repo: PayrollRepository
    activity_repo: ActivityRepository

    auth_service: AuthService
    user_service: UserService
    profile_service: ProfileService
    attendance_service: AttendanceService
    leave_service: LeaveService
    ticket_service: TicketService
    vehicle_service: VehicleService
    payroll_service: PayrollService
    activity_service: ActivityService


def assemble(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    tickets_repo: TicketRepository,
    vehicles_repo: VehicleRepository,
    payroll_repo: PayrollRepository,
    activity_repo: ActivityRepository,
    upload_root: str | Path,
    settings: Optional[Mapping[str, Any]] = None,
    clock: Callable[[], datetime] = now_local,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, fakes in tests)."""

    settings = settings or {}
    strategy_factory = AttendanceStrategyFactory(
        grace_minutes=int(settings.get("LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
        half_day_minutes=int(settings.get("HALF_DAY_MINUTES", DEFAULT_HALF_DAY_MINUTES)),
    )
    calculator = StandardPayrollCalculator(
        default_rates(
            settings.get("EOBI_EMPLOYEE_CONTRIBUTION", DEFAULT_EOBI_EMPLOYEE_CONTRIBUTION),
            settings.get("PF_RATE", DEFAULT_PF_RATE),
            settings.get("TAX_RATE", DEFAULT_TAX_RATE),
        )
    )

    return Container(
        conn=conn,
        clock=clock,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        tickets_repo=tickets_repo,
        vehicles_repo=vehicles_repo,
        payroll_repo=payroll_repo,
        activity_repo=activity_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        profile_service=ProfileService(users_repo, upload_root=upload_root),
        attendance_service=AttendanceService(attendance_repo, users_repo, strategy_factory=strategy_factory),
        leave_service=LeaveService(leaves_repo, attendance_repo, users_repo, upload_root=upload_root),
        ticket_service=TicketService(tickets_repo, attendance_repo, users_repo, upload_root=upload_root),
        vehicle_service=VehicleService(vehicles_repo, users_repo, upload_root=upload_root),
        payroll_service=PayrollService(payroll_repo, users_repo, attendance_repo, calculator=calculator),
        activity_service=ActivityService(activity_repo, clock=clock),
    )


def build_container(
    *,
    db_config: dict,
    upload_root: str | Path,
    settings: Optional[Mapping[str, Any]] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return assemble(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        tickets_repo=MySQLTicketRepository(conn),
        vehicles_repo=MySQLVehicleRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        activity_repo=MySQLActivityRepository(conn),
        upload_root=upload_root,
        settings=settings,
        conn=conn,
    )
