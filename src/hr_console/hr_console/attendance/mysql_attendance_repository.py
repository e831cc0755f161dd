from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence

from ..core.enums import AttendanceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import TimeLog
from .repository import AttendanceRepository

_SELECT = """
    SELECT id, user_id, work_date, time_in, time_out, duration, type, remarks, leave_application_id
    FROM time_logs
"""


def _row_to_log(r: dict) -> TimeLog:
    return TimeLog(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        type=AttendanceType(r["type"]),
        time_in=normalize_mysql_time(r.get("time_in")),
        time_out=normalize_mysql_time(r.get("time_out")),
        duration=int(r.get("duration") or 0),
        remarks=r.get("remarks"),
        leave_application_id=r.get("leave_application_id"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, log_id: int) -> Optional[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE id=%s", (int(log_id),))
            r = fetchone(cur)
            return _row_to_log(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE user_id=%s AND work_date=%s", (int(user_id), work_date))
            r = fetchone(cur)
            return _row_to_log(r) if r else None

    def list_for_user(self, user_id: int, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[TimeLog]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if start is not None:
            clauses.append("work_date>=%s")
            params.append(start)
        if end is not None:
            clauses.append("work_date<=%s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY work_date DESC, id DESC", tuple(params))
            return [_row_to_log(r) for r in fetchall(cur)]

    def list_between(self, start: date, end: date) -> Sequence[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE work_date BETWEEN %s AND %s ORDER BY user_id, work_date", (start, end))
            return [_row_to_log(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        type: AttendanceType,
        time_in: Optional[time] = None,
        time_out: Optional[time] = None,
        duration: int = 0,
        remarks: Optional[str] = None,
        leave_application_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_logs (user_id, work_date, time_in, time_out, duration, type, remarks, leave_application_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (int(user_id), work_date, time_in, time_out, int(duration), type.value, remarks, leave_application_id),
            )
            return int(cur.lastrowid)

    def update(self, log: TimeLog) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_logs
                SET time_in=%s, time_out=%s, duration=%s, type=%s, remarks=%s, leave_application_id=%s
                WHERE id=%s
                """,
                (log.time_in, log.time_out, int(log.duration), log.type.value, log.remarks, log.leave_application_id, log.id),
            )
            return cur.rowcount >= 0

    def delete(self, log_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_logs WHERE id=%s", (int(log_id),))
            return cur.rowcount > 0
