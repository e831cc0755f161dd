from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from ...attendance.model import TimeLog
from ...common.datetime_utils import is_weekday, iter_days, month_bounds
from ...core.constants import LATE_INS_PER_HALF_DAY
from ...core.enums import LATE_TYPES, UNPAID_TYPES, WORKED_TYPES, AttendanceType, JobStatus, LeaveType
from ...users.model import User
from ..model import ZERO, AttendanceSummary, Deductions, Earnings, money
from .base import PayrollCalculator, PayrollFigures, PayrollRates

_PAID_LEAVE_TYPES = frozenset(t.attendance_type for t in LeaveType) - UNPAID_TYPES


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: weekday month, Public Holidays excluded; every 4 late-ins cost half a day."""

    def __init__(self, rates: PayrollRates):
        self._rates = rates

    def calculate(self, user: User, logs: Sequence[TimeLog], *, month: int, year: int) -> PayrollFigures:
        first, last = month_bounds(year, month)
        logs = [log for log in logs if log.user_id == user.id and first <= log.work_date <= last]

        weekdays = [d for d in iter_days(first, last) if is_weekday(d)]
        holidays = {log.work_date for log in logs if log.type == AttendanceType.PUBLIC_HOLIDAY and is_weekday(log.work_date)}
        working_days = len(weekdays) - len(holidays)

        salary = user.salary
        basic = money(salary.basic_salary)
        per_day = money(basic / working_days) if working_days > 0 else ZERO

        def count(types) -> int:
            return sum(1 for log in logs if log.type in types)

        absent_dates = tuple(sorted(log.work_date for log in logs if log.type == AttendanceType.ABSENT))
        attendance = AttendanceSummary(
            total_working_days=working_days,
            present_days=count(WORKED_TYPES),
            absent_days=len(absent_dates),
            half_days=count({AttendanceType.HALF_DAY}),
            leave_days=count(_PAID_LEAVE_TYPES),
            late_count=count(LATE_TYPES),
            absent_dates=absent_dates,
        )

        earnings = Earnings(
            basic_salary=basic,
            medical_allowance=money(salary.medical_allowance),
            mobile_allowance=money(salary.mobile_allowance),
            fuel_allowance=money(salary.fuel_allowance),
            overtime_pay=ZERO,
        )

        pf = money(basic * self._rates.pf_rate) if user.personal.job_status == JobStatus.PERMANENT else ZERO
        half_day_rate = per_day / 2
        deductions = Deductions(
            tax=money(earnings.total * self._rates.tax_rate),
            eobi=money(self._rates.eobi_employee_contribution),
            pf_employee=pf,
            pf_employer=pf,
            loss_of_pay=money(count(UNPAID_TYPES) * per_day),
            absence_deduction=money(attendance.absent_days * per_day + attendance.half_days * half_day_rate),
            late_deduction=money((attendance.late_count // LATE_INS_PER_HALF_DAY) * half_day_rate),
        )
        return PayrollFigures(earnings=earnings, deductions=deductions, attendance=attendance, per_day_salary=per_day)


def default_rates(eobi: str, pf_rate: str, tax_rate: str) -> PayrollRates:
    return PayrollRates(
        eobi_employee_contribution=Decimal(str(eobi)),
        pf_rate=Decimal(str(pf_rate)),
        tax_rate=Decimal(str(tax_rate)),
    )
