from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from ..common.datetime_utils import fmt_date, fmt_datetime
from ..common.validators import MONTH_NAMES
from ..core.enums import PayrollStatus

_CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value: Any) -> Decimal:
    """Round to cents, half up."""

    return Decimal(str(value or 0)).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Earnings:
    basic_salary: Decimal = ZERO
    medical_allowance: Decimal = ZERO
    mobile_allowance: Decimal = ZERO
    fuel_allowance: Decimal = ZERO
    overtime_pay: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return money(
            self.basic_salary + self.medical_allowance + self.mobile_allowance + self.fuel_allowance + self.overtime_pay
        )

    def to_dict(self) -> dict:
        return {
            "basicSalary": float(self.basic_salary),
            "medicalAllowance": float(self.medical_allowance),
            "mobileAllowance": float(self.mobile_allowance),
            "fuelAllowance": float(self.fuel_allowance),
            "overtimePay": float(self.overtime_pay),
        }


@dataclass(frozen=True)
class Deductions:
    tax: Decimal = ZERO
    eobi: Decimal = ZERO
    pf_employee: Decimal = ZERO
    pf_employer: Decimal = ZERO
    loss_of_pay: Decimal = ZERO
    absence_deduction: Decimal = ZERO
    late_deduction: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        # pf_employer is paid by the company and never leaves the payslip
        return money(
            self.tax + self.eobi + self.pf_employee + self.loss_of_pay + self.absence_deduction + self.late_deduction
        )

    def to_dict(self) -> dict:
        return {
            "tax": float(self.tax),
            "eobi": float(self.eobi),
            "pfEmployee": float(self.pf_employee),
            "pfEmployer": float(self.pf_employer),
            "lossOfPay": float(self.loss_of_pay),
            "absenceDeduction": float(self.absence_deduction),
            "lateDeduction": float(self.late_deduction),
        }


@dataclass(frozen=True)
class ExtraPayment:
    description: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"description": self.description, "amount": float(self.amount)}


@dataclass(frozen=True)
class AttendanceSummary:
    total_working_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    leave_days: int = 0
    late_count: int = 0
    absent_dates: tuple[date, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "totalWorkingDays": self.total_working_days,
            "presentDays": self.present_days,
            "absentDays": self.absent_days,
            "halfDays": self.half_days,
            "leaveDays": self.leave_days,
            "lateCount": self.late_count,
            "absentDates": [fmt_date(d) for d in self.absent_dates],
        }


@dataclass(frozen=True)
class EmployeeRef:
    id: int
    name: str = ""
    email: str = ""
    department: Optional[str] = None
    job_title: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "jobTitle": self.job_title,
        }


@dataclass(frozen=True)
class PayrollRecord:
    """One employee's payroll for one month. Totals are derived, never stored."""

    id: int
    employee: EmployeeRef
    month: int
    year: int
    earnings: Earnings = field(default_factory=Earnings)
    deductions: Deductions = field(default_factory=Deductions)
    extra_payments: tuple[ExtraPayment, ...] = field(default_factory=tuple)
    attendance: AttendanceSummary = field(default_factory=AttendanceSummary)
    per_day_salary: Decimal = ZERO
    status: PayrollStatus = PayrollStatus.DRAFT
    processed_on: Optional[datetime] = None
    remarks: Optional[str] = None

    @property
    def user_id(self) -> int:
        return self.employee.id

    @property
    def gross(self) -> Decimal:
        return self.earnings.total

    @property
    def total_deductions(self) -> Decimal:
        return self.deductions.total

    @property
    def extras(self) -> Decimal:
        return money(sum((p.amount for p in self.extra_payments), ZERO))

    @property
    def net_salary(self) -> Decimal:
        return money(self.gross - self.total_deductions + self.extras)

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month]

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": self.employee.to_dict(),
            "month": self.month,
            "monthName": self.month_name,
            "year": self.year,
            "earnings": self.earnings.to_dict(),
            "deductions": self.deductions.to_dict(),
            "extraPayments": [p.to_dict() for p in self.extra_payments],
            "attendance": self.attendance.to_dict(),
            "perDaySalary": float(self.per_day_salary),
            "grossSalary": float(self.gross),
            "totalDeductions": float(self.total_deductions),
            "totalExtraPayments": float(self.extras),
            "netSalary": float(self.net_salary),
            "status": self.status.value,
            "processedOn": fmt_datetime(self.processed_on),
            "remarks": self.remarks,
        }
