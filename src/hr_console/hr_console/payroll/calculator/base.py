from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ...attendance.model import TimeLog
from ...users.model import User
from ..model import AttendanceSummary, Deductions, Earnings


@dataclass(frozen=True)
class PayrollRates:
    eobi_employee_contribution: Decimal
    pf_rate: Decimal
    tax_rate: Decimal


@dataclass(frozen=True)
class PayrollFigures:
    earnings: Earnings
    deductions: Deductions
    attendance: AttendanceSummary
    per_day_salary: Decimal


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(self, user: User, logs: Sequence[TimeLog], *, month: int, year: int) -> PayrollFigures:
        """Figures for one employee's month from salary details and that month's time logs."""

        raise NotImplementedError
