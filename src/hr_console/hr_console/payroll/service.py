from __future__ import annotations

import io
import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

import pandas as pd

from ..attendance.repository import AttendanceRepository
from ..common.access import require_admin
from ..common.datetime_utils import month_bounds
from ..common.pagination import Page, paginate
from ..common.validators import optional_str, require_non_empty, require_non_negative, require_positive_amount
from ..core.enums import ADMIN_ROLES, PayrollStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from ..vehicles.service import period_bounds
from .calculator.base import PayrollCalculator
from .model import ZERO, EmployeeRef, ExtraPayment, PayrollRecord, money
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = (
    "S.No",
    "Name",
    "Month",
    "Year",
    "Basic Salary",
    "Overtime Pay",
    "Extra Payments",
    "Total Earnings",
    "Tax",
    "EOBI",
    "PF Contribution",
    "Loss of Pay",
    "Total Deductions",
    "Net Salary",
    "Absent Dates",
    "Status",
)

EDITABLE_EARNINGS = ("basic_salary", "medical_allowance", "mobile_allowance", "fuel_allowance", "overtime_pay")
EDITABLE_DEDUCTIONS = ("tax", "eobi", "pf_employee", "pf_employer", "loss_of_pay", "absence_deduction", "late_deduction")


def _label(field_name: str) -> str:
    return field_name.replace("_", " ").capitalize()


def parse_status(value: Any) -> PayrollStatus:
    try:
        return PayrollStatus(value)
    except ValueError:
        raise ValidationError("Payroll status is not valid.")


def parse_extra_payments(items: Iterable[Mapping[str, Any]]) -> tuple[ExtraPayment, ...]:
    payments = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, Mapping):
            raise ValidationError(f"Extra payment {index} is not valid.")
        payments.append(
            ExtraPayment(
                description=require_non_empty(item.get("description"), f"Extra payment {index} description"),
                amount=money(require_positive_amount(item.get("amount"), f"Extra payment {index} amount")),
            )
        )
    return tuple(payments)


class PayrollService:
    def __init__(
        self,
        payrolls: PayrollRepository,
        users: UserRepository,
        attendance: AttendanceRepository,
        *,
        calculator: PayrollCalculator,
    ):
        self._payrolls = payrolls
        self._users = users
        self._attendance = attendance
        self._calculator = calculator

    def _get(self, payroll_id: int) -> PayrollRecord:
        record = self._payrolls.get(int(payroll_id))
        if not record:
            raise NotFoundError("Payroll record not found.")
        return record

    def generate(self, *, current_role: Role, month: int, year: int) -> dict:
        """Draft one record per active employee without one for the period."""

        require_admin(current_role)
        first, last = month_bounds(year, month)
        logs = list(self._attendance.list_between(first, last))

        created: list[int] = []
        skipped: list[dict] = []
        for user in self._users.list_all(active_only=True):
            if self._payrolls.find(user.id, month, year):
                skipped.append(user.summary())
                continue

            figures = self._calculator.calculate(
                user, [log for log in logs if log.user_id == user.id], month=month, year=year
            )
            record = PayrollRecord(
                id=0,
                employee=EmployeeRef(
                    id=user.id,
                    name=user.name,
                    email=user.email,
                    department=user.personal.department,
                    job_title=user.personal.job_title,
                ),
                month=month,
                year=year,
                earnings=figures.earnings,
                deductions=figures.deductions,
                attendance=figures.attendance,
                per_day_salary=figures.per_day_salary,
            )
            created.append(self._payrolls.create(record))

        logger.info("Payroll %02d/%d generated: %d created, %d skipped", month, year, len(created), len(skipped))
        return {"created": created, "skipped": skipped}

    def process(self, *, current_role: Role, month: int, year: int, now: datetime) -> int:
        require_admin(current_role)
        drafts = [r for r in self._payrolls.list_all(month=month, year=year) if r.status == PayrollStatus.DRAFT]
        if not drafts:
            raise ValidationError("No draft payroll records to process for this period.")

        for record in drafts:
            self._payrolls.update(replace(record, status=PayrollStatus.PROCESSED, processed_on=now))
        logger.info("Payroll %02d/%d processed: %d records", month, year, len(drafts))
        return len(drafts)

    def mark_paid(self, *, current_role: Role, payroll_id: int) -> PayrollRecord:
        require_admin(current_role)
        record = self._get(payroll_id)
        if record.status != PayrollStatus.PROCESSED:
            raise ValidationError("Only processed payroll records can be marked as paid.")

        paid = replace(record, status=PayrollStatus.PAID)
        self._payrolls.update(paid)
        logger.info("Payroll %s marked paid", record.id)
        return paid

    def update(
        self,
        *,
        current_role: Role,
        payroll_id: int,
        fields: Mapping[str, Any],
        extra_payments: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> PayrollRecord:
        """Edit earnings, deductions, extra payments and remarks of an unpaid record."""

        require_admin(current_role)
        record = self._get(payroll_id)
        if record.status == PayrollStatus.PAID:
            raise ValidationError("Paid payroll records cannot be edited.")

        earnings = replace(
            record.earnings,
            **{k: money(require_non_negative(fields[k], _label(k))) for k in EDITABLE_EARNINGS if k in fields},
        )
        deductions = replace(
            record.deductions,
            **{k: money(require_non_negative(fields[k], _label(k))) for k in EDITABLE_DEDUCTIONS if k in fields},
        )

        updated = replace(
            record,
            earnings=earnings,
            deductions=deductions,
            extra_payments=parse_extra_payments(extra_payments) if extra_payments is not None else record.extra_payments,
            remarks=optional_str(fields["remarks"]) if "remarks" in fields else record.remarks,
        )
        if not self._payrolls.update(updated):
            raise ValidationError("Failed to update payroll record.")
        logger.info("Payroll %s updated; net salary %s", record.id, updated.net_salary)
        return updated

    def delete(self, *, current_role: Role, payroll_id: int) -> None:
        require_admin(current_role)
        record = self._get(payroll_id)
        if record.status == PayrollStatus.PAID:
            raise ValidationError("Paid payroll records cannot be deleted.")
        if not self._payrolls.delete(record.id):
            raise ValidationError("Failed to delete payroll record.")
        logger.info("Payroll %s deleted", record.id)

    def list(
        self,
        *,
        current_role: Role,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        department: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[PayrollRecord]:
        require_admin(current_role)
        records = list(self._payrolls.list_all(month=month, year=year))

        if status and status != "All":
            wanted = parse_status(status)
            records = [r for r in records if r.status == wanted]
        if department and department != "All":
            records = [r for r in records if (r.employee.department or "") == department]
        term = (search or "").strip().lower()
        if term:
            records = [r for r in records if term in r.employee.name.lower() or term in r.employee.email.lower()]
        return paginate(records, page, limit)

    def get(self, *, current_role: Role, actor_id: int, payroll_id: int) -> PayrollRecord:
        record = self._get(payroll_id)
        if current_role in ADMIN_ROLES:
            return record
        if record.user_id != int(actor_id) or record.status == PayrollStatus.DRAFT:
            raise AuthorizationError("You can only view your own processed payroll records.")
        return record

    def processed_for_user(self, *, current_role: Role, actor_id: int, user_id: int) -> list[PayrollRecord]:
        """Salary slips: only Processed and Paid records are visible."""

        if current_role not in ADMIN_ROLES and int(actor_id) != int(user_id):
            raise AuthorizationError("You can only view your own salary slips.")
        return [
            r
            for r in self._payrolls.list_all()
            if r.user_id == int(user_id) and r.status in (PayrollStatus.PROCESSED, PayrollStatus.PAID)
        ]

    def summary(self, *, current_role: Role, month: int, year: int) -> dict:
        require_admin(current_role)
        records = list(self._payrolls.list_all(month=month, year=year))
        return {
            "month": month,
            "year": year,
            "count": len(records),
            "totalGross": float(sum((r.gross for r in records), ZERO)),
            "totalDeductions": float(sum((r.total_deductions for r in records), ZERO)),
            "totalExtraPayments": float(sum((r.extras for r in records), ZERO)),
            "totalNet": float(sum((r.net_salary for r in records), ZERO)),
            "byStatus": {s.value: sum(1 for r in records if r.status == s) for s in PayrollStatus},
        }

    def finance(self, *, current_role: Role, period: str, today: date) -> dict:
        """Payroll cost analytics for records whose month overlaps the period."""

        require_admin(current_role)
        period = period or "all-time"
        start, end = period_bounds(period, today)

        def in_period(r: PayrollRecord) -> bool:
            first, last = month_bounds(r.year, r.month)
            return (start is None or last >= start) and (end is None or first <= end)

        records = [r for r in self._payrolls.list_all() if in_period(r)]
        count = len(records)

        def total(values) -> Decimal:
            return money(sum(values, ZERO))

        def average(amount: Decimal) -> float:
            return float(money(amount / count)) if count else 0.0

        def percent(part: Decimal, whole: Decimal) -> float:
            return float(money(part * 100 / whole)) if whole else 0.0

        basic = total(r.earnings.basic_salary for r in records)
        gross = total(r.gross for r in records)
        net = total(r.net_salary for r in records)
        allowances = total(
            r.earnings.medical_allowance + r.earnings.mobile_allowance + r.earnings.fuel_allowance for r in records
        )
        deductions = total(r.total_deductions for r in records)
        tax = total(r.deductions.tax for r in records)
        # half days are charged inside absence_deduction at half the day rate
        half_days = total(money(r.per_day_salary * r.attendance.half_days / 2) for r in records)
        absences = max(total(r.deductions.absence_deduction for r in records) - half_days, ZERO)

        monthly: dict[tuple[int, int], list[PayrollRecord]] = {}
        for r in records:
            monthly.setdefault((r.year, r.month), []).append(r)

        return {
            "period": period,
            "startDate": start.isoformat() if start else None,
            "endDate": end.isoformat() if end else None,
            "data": {
                "totalEmployees": len({r.user_id for r in records}),
                "basicSalary": {"total": float(basic), "average": average(basic)},
                "grossSalary": {"total": float(gross), "average": average(gross)},
                "netSalary": {"total": float(net), "average": average(net)},
                "allowances": {"total": float(allowances), "average": average(allowances)},
                "deductions": {
                    "total": float(deductions),
                    "average": average(deductions),
                    "breakdown": {
                        "tax": float(tax),
                        "eobi": float(total(r.deductions.eobi for r in records)),
                        "employeePF": float(total(r.deductions.pf_employee for r in records)),
                        "employerPF": float(total(r.deductions.pf_employer for r in records)),
                        "lossOfPay": float(total(r.deductions.loss_of_pay for r in records)),
                        "lateIns": float(total(r.deductions.late_deduction for r in records)),
                        "absents": float(absences),
                        "halfDays": float(half_days),
                    },
                },
                "extraPayments": float(total(r.extras for r in records)),
                "attendance": {
                    "totalAbsentDays": sum(r.attendance.absent_days for r in records),
                    "totalHalfDays": sum(r.attendance.half_days for r in records),
                    "totalLateIns": sum(r.attendance.late_count for r in records),
                },
                "metrics": {
                    "averageDeductionPercentage": percent(deductions, gross),
                    "averageNetToGrossRatio": percent(net, gross),
                    "averageTaxPercentage": percent(tax, gross),
                },
            },
            "monthlyBreakdown": [
                {
                    "_id": {"year": year, "month": month},
                    "totalGrossSalary": float(total(r.gross for r in items)),
                    "totalNetSalary": float(total(r.net_salary for r in items)),
                    "totalDeductions": float(total(r.total_deductions for r in items)),
                    "employeeCount": len({r.user_id for r in items}),
                }
                for (year, month), items in sorted(monthly.items())
            ],
        }

    def export_rows(self, records: Sequence[PayrollRecord]) -> list[dict]:
        rows = []
        for index, r in enumerate(records, start=1):
            absent = ", ".join(f"{d:%B} {d.day}, {d.year}" for d in r.attendance.absent_dates)
            rows.append(
                {
                    "S.No": index,
                    "Name": r.employee.name or "N/A",
                    "Month": r.month_name,
                    "Year": r.year,
                    "Basic Salary": float(r.earnings.basic_salary),
                    "Overtime Pay": float(r.earnings.overtime_pay),
                    "Extra Payments": float(r.extras),
                    "Total Earnings": float(r.gross + r.extras),
                    "Tax": float(r.deductions.tax),
                    "EOBI": float(r.deductions.eobi),
                    "PF Contribution": float(r.deductions.pf_employee),
                    "Loss of Pay": float(r.deductions.loss_of_pay),
                    "Total Deductions": float(r.total_deductions),
                    "Net Salary": float(r.net_salary),
                    "Absent Dates": absent or "N/A",
                    "Status": r.status.value,
                }
            )
        return rows

    def export(self, *, current_role: Role, month: Optional[int] = None, year: Optional[int] = None) -> io.BytesIO:
        """Excel workbook of the matching records, built in memory."""

        require_admin(current_role)
        records = list(self._payrolls.list_all(month=month, year=year))
        df = pd.DataFrame(self.export_rows(records), columns=list(EXPORT_COLUMNS))

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Payroll")
        output.seek(0)

        logger.info("Exported %d payroll records", len(records))
        return output
