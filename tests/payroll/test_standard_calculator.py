from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.hr_console.hr_console.attendance.model import TimeLog
from src.hr_console.hr_console.core.enums import AttendanceType, JobStatus
from src.hr_console.hr_console.payroll.calculator.standard_calculator import StandardPayrollCalculator, default_rates
from src.hr_console.hr_console.payroll.model import Deductions, Earnings, ExtraPayment, PayrollRecord, EmployeeRef, money

from conftest import make_user

USER_ID = 4


def logs(*entries):
    return [
        TimeLog(id=i, user_id=USER_ID, work_date=day, type=log_type)
        for i, (day, log_type) in enumerate(entries, start=1)
    ]


def march_logs():
    return logs(
        (date(2025, 3, 31), AttendanceType.PUBLIC_HOLIDAY),
        (date(2025, 3, 4), AttendanceType.ABSENT),
        (date(2025, 3, 5), AttendanceType.ABSENT),
        (date(2025, 3, 6), AttendanceType.HALF_DAY),
        (date(2025, 3, 10), AttendanceType.LATE_IN),
        (date(2025, 3, 11), AttendanceType.LATE_IN),
        (date(2025, 3, 12), AttendanceType.LATE_IN_EARLY_OUT),
        (date(2025, 3, 13), AttendanceType.LATE_IN),
        (date(2025, 3, 14), AttendanceType.LATE_IN),
        (date(2025, 3, 17), AttendanceType.ABSENCE_WITHOUT_PAY),
        (date(2025, 3, 18), AttendanceType.CASUAL_LEAVE),
        (date(2025, 3, 19), AttendanceType.PRESENT),
        # outside the month, ignored
        (date(2025, 4, 1), AttendanceType.ABSENT),
    )


@pytest.fixture
def calculator():
    return StandardPayrollCalculator(default_rates("370", "0.05", "0"))


def test_working_days_exclude_weekday_public_holidays(calculator):
    figures = calculator.calculate(make_user(USER_ID), march_logs(), month=3, year=2025)

    assert figures.attendance.total_working_days == 20
    assert figures.per_day_salary == Decimal("5000.00")


def test_attendance_counts(calculator):
    summary = calculator.calculate(make_user(USER_ID), march_logs(), month=3, year=2025).attendance

    assert summary.absent_days == 2
    assert summary.half_days == 1
    assert summary.late_count == 5
    assert summary.present_days == 6
    assert summary.leave_days == 1
    assert summary.absent_dates == (date(2025, 3, 4), date(2025, 3, 5))


def test_march_deductions_and_net(calculator):
    figures = calculator.calculate(make_user(USER_ID), march_logs(), month=3, year=2025)
    d = figures.deductions

    assert figures.earnings.total == Decimal("115000.00")
    assert d.absence_deduction == Decimal("12500.00")
    assert d.late_deduction == Decimal("2500.00")
    assert d.loss_of_pay == Decimal("5000.00")
    assert d.eobi == Decimal("370.00")
    assert d.pf_employee == d.pf_employer == Decimal("5000.00")
    assert d.tax == Decimal("0.00")
    assert d.total == Decimal("25370.00")

    record = PayrollRecord(
        id=1,
        employee=EmployeeRef(id=USER_ID),
        month=3,
        year=2025,
        earnings=figures.earnings,
        deductions=d,
    )
    assert record.net_salary == Decimal("89630.00")


def test_probation_has_no_provident_fund(calculator):
    figures = calculator.calculate(make_user(USER_ID, job_status=JobStatus.PROBATION), [], month=3, year=2025)

    assert figures.deductions.pf_employee == Decimal("0.00")
    assert figures.deductions.pf_employer == Decimal("0.00")


def test_flat_tax_on_gross():
    calculator = StandardPayrollCalculator(default_rates("370", "0.05", "0.1"))

    figures = calculator.calculate(make_user(USER_ID), [], month=3, year=2025)

    assert figures.deductions.tax == Decimal("11500.00")


def test_three_late_ins_cost_nothing(calculator):
    entries = logs(*[(date(2025, 3, d), AttendanceType.LATE_IN) for d in (3, 4, 5)])

    assert calculator.calculate(make_user(USER_ID), entries, month=3, year=2025).deductions.late_deduction == 0


def test_per_day_salary_rounds_half_up(calculator):
    # 21 weekdays in March 2025
    figures = calculator.calculate(make_user(USER_ID, basic_salary="1000"), [], month=3, year=2025)

    assert figures.per_day_salary == Decimal("47.62")


def test_money_rounds_half_up():
    assert money("2.345") == Decimal("2.35")
    assert money(None) == Decimal("0.00")


def test_extras_add_to_net_and_employer_pf_is_not_deducted():
    record = PayrollRecord(
        id=1,
        employee=EmployeeRef(id=USER_ID),
        month=3,
        year=2025,
        earnings=Earnings(basic_salary=Decimal("1000")),
        deductions=Deductions(eobi=Decimal("100"), pf_employer=Decimal("50")),
        extra_payments=(ExtraPayment("Bonus", Decimal("250")), ExtraPayment("Travel", Decimal("50.50"))),
    )

    assert record.total_deductions == Decimal("100.00")
    assert record.extras == Decimal("300.50")
    assert record.net_salary == Decimal("1200.50")
    assert record.to_dict()["netSalary"] == 1200.5
