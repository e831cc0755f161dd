from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

from src.hr_console.hr_console.core.enums import PayrollStatus, Role
from src.hr_console.hr_console.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_console.hr_console.payroll.model import (
    AttendanceSummary,
    Deductions,
    Earnings,
    EmployeeRef,
    ExtraPayment,
    PayrollRecord,
)
from src.hr_console.hr_console.payroll.service import EXPORT_COLUMNS

PROCESSED_AT = datetime(2025, 4, 1, 10, 0)


def generate(container, month=3, year=2025):
    return container.payroll_service.generate(current_role=Role.HR, month=month, year=year)


def record_for(container, user_id, month=3, year=2025):
    return container.payroll_repo.find(user_id, month, year)


def test_generate_creates_one_draft_per_active_employee(container):
    result = generate(container)

    assert len(result["created"]) == 5
    assert result["skipped"] == []
    assert all(r.status == PayrollStatus.DRAFT for r in container.payroll_repo.list_all())


def test_generate_again_skips_existing_records(container):
    generate(container)

    result = generate(container)

    assert result["created"] == []
    assert [s["id"] for s in result["skipped"]] == [1, 2, 3, 4, 5]


def test_generate_uses_attendance_and_job_status(container):
    container.attendance_service.mark_absent(current_role=Role.HR, user_id=4, work_date=date(2025, 3, 10))
    generate(container)

    employee = record_for(container, 4)
    probation = record_for(container, 5)

    assert employee.attendance.absent_dates == (date(2025, 3, 10),)
    assert employee.deductions.absence_deduction == employee.per_day_salary
    assert probation.deductions.pf_employee == 0
    assert float(probation.net_salary) == 115000 - 370


def test_generate_requires_admin(container):
    with pytest.raises(AuthorizationError):
        container.payroll_service.generate(current_role=Role.MANAGER, month=3, year=2025)


def test_process_moves_drafts_once(container):
    generate(container)
    service = container.payroll_service

    assert service.process(current_role=Role.HR, month=3, year=2025, now=PROCESSED_AT) == 5
    assert record_for(container, 4).processed_on == PROCESSED_AT

    with pytest.raises(ValidationError, match="No draft"):
        service.process(current_role=Role.HR, month=3, year=2025, now=PROCESSED_AT)


def test_mark_paid_requires_processed(container):
    generate(container)
    service = container.payroll_service
    payroll_id = record_for(container, 4).id

    with pytest.raises(ValidationError, match="processed"):
        service.mark_paid(current_role=Role.HR, payroll_id=payroll_id)

    service.process(current_role=Role.HR, month=3, year=2025, now=PROCESSED_AT)
    assert service.mark_paid(current_role=Role.HR, payroll_id=payroll_id).status == PayrollStatus.PAID


def test_paid_record_is_locked(container):
    generate(container)
    service = container.payroll_service
    payroll_id = record_for(container, 4).id
    service.process(current_role=Role.HR, month=3, year=2025, now=PROCESSED_AT)
    service.mark_paid(current_role=Role.HR, payroll_id=payroll_id)

    with pytest.raises(ValidationError, match="cannot be edited"):
        service.update(current_role=Role.HR, payroll_id=payroll_id, fields={"tax": "10"})
    with pytest.raises(ValidationError, match="cannot be deleted"):
        service.delete(current_role=Role.HR, payroll_id=payroll_id)


def test_update_recomputes_net_with_extra_payments(container):
    generate(container)
    service = container.payroll_service
    before = record_for(container, 4)

    updated = service.update(
        current_role=Role.HR,
        payroll_id=before.id,
        fields={"overtime_pay": "3000", "tax": "1000", "remarks": "March adjustments"},
        extra_payments=[{"description": "Bonus", "amount": "2500"}],
    )

    assert updated.net_salary == before.net_salary + 3000 - 1000 + 2500
    assert updated.remarks == "March adjustments"
    assert record_for(container, 4).extras == 2500


def test_update_rejects_bad_values(container):
    generate(container)
    payroll_id = record_for(container, 4).id
    service = container.payroll_service

    with pytest.raises(ValidationError, match="cannot be negative"):
        service.update(current_role=Role.HR, payroll_id=payroll_id, fields={"basic_salary": "-1"})
    with pytest.raises(ValidationError, match="description"):
        service.update(current_role=Role.HR, payroll_id=payroll_id, fields={}, extra_payments=[{"amount": "10"}])
    with pytest.raises(ValidationError, match="greater than zero"):
        service.update(
            current_role=Role.HR, payroll_id=payroll_id, fields={}, extra_payments=[{"description": "x", "amount": 0}]
        )


def test_delete_draft(container):
    generate(container)
    payroll_id = record_for(container, 4).id

    container.payroll_service.delete(current_role=Role.SUPER_ADMIN, payroll_id=payroll_id)

    with pytest.raises(NotFoundError):
        container.payroll_service.get(current_role=Role.HR, actor_id=2, payroll_id=payroll_id)


def test_employees_see_only_their_released_records(container):
    generate(container)
    service = container.payroll_service
    own = record_for(container, 4).id

    with pytest.raises(AuthorizationError):
        service.get(current_role=Role.NORMAL, actor_id=4, payroll_id=own)
    assert service.processed_for_user(current_role=Role.NORMAL, actor_id=4, user_id=4) == []

    service.process(current_role=Role.HR, month=3, year=2025, now=PROCESSED_AT)

    assert service.get(current_role=Role.NORMAL, actor_id=4, payroll_id=own).id == own
    assert [r.id for r in service.processed_for_user(current_role=Role.NORMAL, actor_id=4, user_id=4)] == [own]
    with pytest.raises(AuthorizationError):
        service.processed_for_user(current_role=Role.NORMAL, actor_id=4, user_id=5)
    with pytest.raises(AuthorizationError):
        service.get(current_role=Role.NORMAL, actor_id=5, payroll_id=own)


def test_list_filters(container):
    generate(container)
    generate(container, month=2)
    service = container.payroll_service
    service.process(current_role=Role.HR, month=2, year=2025, now=PROCESSED_AT)

    assert service.list(current_role=Role.HR, month=3, year=2025).total == 5
    assert service.list(current_role=Role.HR, status="Processed").total == 5
    assert service.list(current_role=Role.HR, search="eve", month=3).items[0].employee.name == "Eve Employee"
    assert service.list(current_role=Role.HR, department="Sales").total == 0
    with pytest.raises(ValidationError):
        service.list(current_role=Role.HR, status="Cancelled")


def test_summary_totals(container):
    generate(container)

    summary = container.payroll_service.summary(current_role=Role.HR, month=3, year=2025)

    assert summary["count"] == 5
    assert summary["totalGross"] == 5 * 115000
    assert summary["byStatus"] == {"Draft": 5, "Processed": 0, "Paid": 0}
    assert summary["totalNet"] == summary["totalGross"] - summary["totalDeductions"]


def test_export_writes_payroll_sheet(container):
    container.attendance_service.mark_absent(current_role=Role.HR, user_id=4, work_date=date(2025, 3, 4))
    container.attendance_service.mark_absent(current_role=Role.HR, user_id=4, work_date=date(2025, 3, 10))
    generate(container)

    output = container.payroll_service.export(current_role=Role.HR, month=3, year=2025)
    df = pd.read_excel(output, sheet_name="Payroll", keep_default_na=False)

    assert list(df.columns) == list(EXPORT_COLUMNS)
    assert len(df) == 5
    eve = df[df["Name"] == "Eve Employee"].iloc[0]
    assert eve["Absent Dates"] == "March 4, 2025, March 10, 2025"
    assert eve["Month"] == "March"
    assert df[df["Name"] == "Hana HR"].iloc[0]["Absent Dates"] == "N/A"


def test_export_row_total_earnings_include_extras(container):
    generate(container)
    record = record_for(container, 4)
    container.payroll_service.update(
        current_role=Role.HR,
        payroll_id=record.id,
        fields={},
        extra_payments=[{"description": "Bonus", "amount": "500"}],
    )

    row = container.payroll_service.export_rows([record_for(container, 4)])[0]

    assert row["Total Earnings"] == 115500.0
    assert row["Extra Payments"] == 500.0


def seed_finance_records(container):
    repo = container.payroll_repo
    repo.create(
        PayrollRecord(
            id=0,
            employee=EmployeeRef(id=4, name="Eve Employee"),
            month=3,
            year=2025,
            earnings=Earnings(basic_salary=Decimal("100000"), medical_allowance=Decimal("5000")),
            deductions=Deductions(
                tax=Decimal("5000"),
                eobi=Decimal("370"),
                pf_employee=Decimal("5000"),
                pf_employer=Decimal("5000"),
                absence_deduction=Decimal("7500"),
                late_deduction=Decimal("2500"),
            ),
            extra_payments=(ExtraPayment(description="Bonus", amount=Decimal("1000")),),
            attendance=AttendanceSummary(absent_days=1, half_days=1, late_count=4),
            per_day_salary=Decimal("5000"),
        )
    )
    repo.create(
        PayrollRecord(
            id=0,
            employee=EmployeeRef(id=5, name="Pat Probation"),
            month=1,
            year=2025,
            earnings=Earnings(basic_salary=Decimal("50000")),
            deductions=Deductions(tax=Decimal("2500")),
        )
    )
    repo.create(
        PayrollRecord(
            id=0,
            employee=EmployeeRef(id=4, name="Eve Employee"),
            month=6,
            year=2024,
            earnings=Earnings(basic_salary=Decimal("40000")),
        )
    )


def test_finance_totals_breakdown_and_ratios(container):
    seed_finance_records(container)

    result = container.payroll_service.finance(current_role=Role.HR, period="this_year", today=date(2025, 3, 12))
    data = result["data"]

    assert result["startDate"] == "2025-01-01"
    assert data["totalEmployees"] == 2
    assert data["grossSalary"] == {"total": 155000.0, "average": 77500.0}
    assert data["netSalary"]["total"] == 133130.0
    assert data["allowances"]["total"] == 5000.0
    assert data["deductions"]["total"] == 22870.0
    assert data["deductions"]["average"] == 11435.0
    assert data["deductions"]["breakdown"] == {
        "tax": 7500.0,
        "eobi": 370.0,
        "employeePF": 5000.0,
        "employerPF": 5000.0,
        "lossOfPay": 0.0,
        "lateIns": 2500.0,
        "absents": 5000.0,
        "halfDays": 2500.0,
    }
    assert data["extraPayments"] == 1000.0
    assert data["attendance"] == {"totalAbsentDays": 1, "totalHalfDays": 1, "totalLateIns": 4}
    assert data["metrics"] == {
        "averageDeductionPercentage": 14.75,
        "averageNetToGrossRatio": 85.89,
        "averageTaxPercentage": 4.84,
    }
    assert [m["_id"] for m in result["monthlyBreakdown"]] == [{"year": 2025, "month": 1}, {"year": 2025, "month": 3}]
    assert result["monthlyBreakdown"][1]["totalNetSalary"] == 85630.0


@pytest.mark.parametrize(
    "period, months",
    [
        ("this-month", [(2025, 3)]),
        ("last_six_months", [(2025, 1), (2025, 3)]),
        ("all-time", [(2024, 6), (2025, 1), (2025, 3)]),
    ],
)
def test_finance_filters_by_period(container, period, months):
    seed_finance_records(container)

    result = container.payroll_service.finance(current_role=Role.SUPER_ADMIN, period=period, today=date(2025, 3, 12))

    assert [(m["_id"]["year"], m["_id"]["month"]) for m in result["monthlyBreakdown"]] == months


def test_finance_with_no_records_and_bad_input(container):
    service = container.payroll_service

    empty = service.finance(current_role=Role.HR, period="all-time", today=date(2025, 3, 12))
    assert empty["data"]["grossSalary"] == {"total": 0.0, "average": 0.0}
    assert empty["data"]["metrics"]["averageNetToGrossRatio"] == 0.0
    assert empty["monthlyBreakdown"] == []

    with pytest.raises(ValidationError, match="Period"):
        service.finance(current_role=Role.HR, period="last-week", today=date(2025, 3, 12))
    with pytest.raises(AuthorizationError):
        service.finance(current_role=Role.MANAGER, period="all-time", today=date(2025, 3, 12))
