from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import LeaveApplication
from .repository import LeaveRepository

_SELECT = """
    SELECT l.id, l.user_id, u.name AS user_name, l.leave_type, l.start_date, l.end_date,
           l.last_day_to_work, l.return_to_work, l.total_days, l.handover_document, l.reason,
           l.status, l.comments, l.decided_by, l.decided_at, l.created_at
    FROM leave_applications l
    JOIN users u ON u.id = l.user_id
"""


def _row_to_application(r: dict) -> LeaveApplication:
    return LeaveApplication(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        user_name=r.get("user_name"),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        last_day_to_work=r["last_day_to_work"],
        return_to_work=r["return_to_work"],
        total_days=int(r["total_days"]),
        handover_document=r.get("handover_document"),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        comments=r.get("comments"),
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        created_at=r["created_at"],
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        last_day_to_work: date,
        return_to_work: date,
        total_days: int,
        reason: str,
        handover_document: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_applications (
                    user_id, leave_type, start_date, end_date, last_day_to_work, return_to_work,
                    total_days, handover_document, reason, status
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    last_day_to_work,
                    return_to_work,
                    int(total_days),
                    handover_document,
                    reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, application_id: int) -> Optional[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE l.id=%s", (int(application_id),))
            r = fetchone(cur)
            return _row_to_application(r) if r else None

    def list_for_users(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[LeaveApplication]:
        if user_ids is not None and not user_ids:
            return []
        where = f" WHERE l.user_id IN ({in_clause(user_ids)})" if user_ids is not None else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + where + " ORDER BY l.created_at DESC, l.id DESC",
                tuple(int(u) for u in user_ids or ()),
            )
            return [_row_to_application(r) for r in fetchall(cur)]

    def update_dates(
        self,
        application_id: int,
        *,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        last_day_to_work: date,
        return_to_work: date,
        total_days: int,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_applications
                SET leave_type=%s, start_date=%s, end_date=%s, last_day_to_work=%s,
                    return_to_work=%s, total_days=%s, reason=%s
                WHERE id=%s AND status=%s
                """,
                (
                    leave_type.value,
                    start_date,
                    end_date,
                    last_day_to_work,
                    return_to_work,
                    int(total_days),
                    reason,
                    int(application_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        application_id: int,
        *,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        comments: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_applications
                SET status=%s, decided_by=%s, decided_at=%s, comments=%s
                WHERE id=%s AND status=%s
                """,
                (status.value, int(decided_by), decided_at, comments, int(application_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0
