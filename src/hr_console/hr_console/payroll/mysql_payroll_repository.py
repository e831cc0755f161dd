from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, to_decimal
from .model import AttendanceSummary, Deductions, EmployeeRef, Earnings, ExtraPayment, PayrollRecord, money
from .repository import PayrollRepository

_EARNING_COLUMNS = ("basic_salary", "medical_allowance", "mobile_allowance", "fuel_allowance", "overtime_pay")
_DEDUCTION_COLUMNS = (
    "tax",
    "eobi",
    "pf_employee",
    "pf_employer",
    "loss_of_pay",
    "absence_deduction",
    "late_deduction",
)
_COUNTER_COLUMNS = ("total_working_days", "present_days", "absent_days", "half_days", "leave_days", "late_count")
_WRITE_COLUMNS = (
    _EARNING_COLUMNS
    + _DEDUCTION_COLUMNS
    + _COUNTER_COLUMNS
    + ("extra_payments", "absent_dates", "per_day_salary", "status", "processed_on", "remarks")
)

_SELECT = f"""
    SELECT p.id, p.user_id, p.month, p.year, {", ".join("p." + c for c in _WRITE_COLUMNS)},
           u.name, u.email, pd.department, pd.job_title
    FROM payrolls p
    JOIN users u ON u.id = p.user_id
    LEFT JOIN user_personal_details pd ON pd.user_id = p.user_id
"""


def _row_to_record(r: dict) -> PayrollRecord:
    return PayrollRecord(
        id=int(r["id"]),
        employee=EmployeeRef(
            id=int(r["user_id"]),
            name=r.get("name") or "",
            email=r.get("email") or "",
            department=r.get("department"),
            job_title=r.get("job_title"),
        ),
        month=int(r["month"]),
        year=int(r["year"]),
        earnings=Earnings(**{c: to_decimal(r.get(c)) for c in _EARNING_COLUMNS}),
        deductions=Deductions(**{c: to_decimal(r.get(c)) for c in _DEDUCTION_COLUMNS}),
        extra_payments=tuple(
            ExtraPayment(description=p.get("description", ""), amount=money(p.get("amount")))
            for p in load_json(r.get("extra_payments"), [])
        ),
        attendance=AttendanceSummary(
            **{c: int(r.get(c) or 0) for c in _COUNTER_COLUMNS},
            absent_dates=tuple(date.fromisoformat(d) for d in load_json(r.get("absent_dates"), [])),
        ),
        per_day_salary=to_decimal(r.get("per_day_salary")),
        status=PayrollStatus(r["status"]),
        processed_on=r.get("processed_on"),
        remarks=r.get("remarks"),
    )


def _write_values(record: PayrollRecord) -> tuple:
    values = [getattr(record.earnings, c) for c in _EARNING_COLUMNS]
    values += [getattr(record.deductions, c) for c in _DEDUCTION_COLUMNS]
    values += [getattr(record.attendance, c) for c in _COUNTER_COLUMNS]
    values += [
        dump_json([{"description": p.description, "amount": str(p.amount)} for p in record.extra_payments]),
        dump_json([d.isoformat() for d in record.attendance.absent_dates]),
        record.per_day_salary,
        record.status.value,
        record.processed_on,
        record.remarks,
    ]
    return tuple(values)


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, record: PayrollRecord) -> int:
        columns = ("user_id", "month", "year") + _WRITE_COLUMNS
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO payrolls ({', '.join(columns)}) VALUES ({', '.join(['%s'] * len(columns))})",
                (record.user_id, record.month, record.year) + _write_values(record),
            )
            return int(cur.lastrowid)

    def get(self, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def find(self, user_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE p.user_id=%s AND p.month=%s AND p.year=%s",
                (int(user_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_all(self, *, month: Optional[int] = None, year: Optional[int] = None) -> Sequence[PayrollRecord]:
        clauses, params = [], []
        if month is not None:
            clauses.append("p.month=%s")
            params.append(int(month))
        if year is not None:
            clauses.append("p.year=%s")
            params.append(int(year))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + where + " ORDER BY p.year DESC, p.month DESC, u.name", tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def update(self, record: PayrollRecord) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _WRITE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE payrolls SET {assignments} WHERE id=%s", _write_values(record) + (record.id,))
            return cur.rowcount >= 0

    def delete(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payrolls WHERE id=%s", (int(payroll_id),))
            return cur.rowcount > 0
