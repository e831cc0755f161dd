from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Sequence

from ..core.enums import AttendanceTicketStatus, TicketKind, TicketStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import AttendanceTicket, Ticket
from .repository import TicketRepository

_TICKET_SELECT = """
    SELECT t.id, t.user_id, u.name AS user_name, t.kind, t.category, t.subject, t.message,
           t.status, t.created_at, t.updated_at
    FROM tickets t
    JOIN users u ON u.id = t.user_id
"""

_ATT_SELECT = """
    SELECT a.id, a.user_id, u.name AS user_name, a.date, a.time_in, a.time_out, a.total_time,
           a.work_location, a.comments, a.file, a.status, a.decided_by, a.decided_at, a.created_at
    FROM attendance_tickets a
    JOIN users u ON u.id = a.user_id
"""


def _row_to_ticket(r: dict) -> Ticket:
    return Ticket(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        user_name=r.get("user_name"),
        kind=TicketKind(r["kind"]),
        category=r["category"],
        subject=r["subject"],
        message=r["message"],
        status=TicketStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
    )


def _row_to_attendance_ticket(r: dict) -> AttendanceTicket:
    return AttendanceTicket(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        user_name=r.get("user_name"),
        date=r["date"],
        time_in=normalize_mysql_time(r.get("time_in")),
        time_out=normalize_mysql_time(r.get("time_out")),
        total_time=int(r.get("total_time") or 0),
        work_location=r["work_location"],
        comments=r.get("comments"),
        file=r.get("file"),
        status=AttendanceTicketStatus(r["status"]),
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        created_at=r["created_at"],
    )


class MySQLTicketRepository(TicketRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Support tickets --------
    def create_ticket(self, *, user_id: int, kind: TicketKind, category: str, subject: str, message: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tickets (user_id, kind, category, subject, message, status)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (int(user_id), kind.value, category, subject, message, TicketStatus.OPEN.value),
            )
            return int(cur.lastrowid)

    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_TICKET_SELECT + " WHERE t.id=%s", (int(ticket_id),))
            r = fetchone(cur)
            return _row_to_ticket(r) if r else None

    def list_tickets(
        self,
        *,
        user_id: Optional[int] = None,
        kind: Optional[TicketKind] = None,
        status: Optional[TicketStatus] = None,
    ) -> Sequence[Ticket]:
        clauses = ["1=1"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("t.user_id=%s")
            params.append(int(user_id))
        if kind is not None:
            clauses.append("t.kind=%s")
            params.append(kind.value)
        if status is not None:
            clauses.append("t.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _TICKET_SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY t.created_at DESC, t.id DESC",
                tuple(params),
            )
            return [_row_to_ticket(r) for r in fetchall(cur)]

    def update_ticket_status(self, ticket_id: int, *, status: TicketStatus, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE tickets SET status=%s, updated_at=%s WHERE id=%s AND status=%s",
                (status.value, updated_at, int(ticket_id), TicketStatus.OPEN.value),
            )
            return cur.rowcount > 0

    # -------- Attendance tickets --------
    def create_attendance_ticket(
        self,
        *,
        user_id: int,
        date: date,
        time_in: Optional[time],
        time_out: Optional[time],
        total_time: int,
        work_location: str,
        comments: Optional[str],
        file: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_tickets (user_id, date, time_in, time_out, total_time,
                                                work_location, comments, file, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    date,
                    time_in,
                    time_out,
                    int(total_time),
                    work_location,
                    comments,
                    file,
                    AttendanceTicketStatus.OPEN.value,
                ),
            )
            return int(cur.lastrowid)

    def get_attendance_ticket(self, ticket_id: int) -> Optional[AttendanceTicket]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ATT_SELECT + " WHERE a.id=%s", (int(ticket_id),))
            r = fetchone(cur)
            return _row_to_attendance_ticket(r) if r else None

    def list_attendance_tickets(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[AttendanceTicket]:
        if user_ids is not None and not user_ids:
            return []
        where = f" WHERE a.user_id IN ({in_clause(user_ids)})" if user_ids is not None else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ATT_SELECT + where + " ORDER BY a.created_at DESC, a.id DESC",
                tuple(int(u) for u in user_ids or ()),
            )
            return [_row_to_attendance_ticket(r) for r in fetchall(cur)]

    def decide_attendance_ticket(
        self,
        ticket_id: int,
        *,
        status: AttendanceTicketStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_tickets SET status=%s, decided_by=%s, decided_at=%s
                WHERE id=%s AND status=%s
                """,
                (status.value, int(decided_by), decided_at, int(ticket_id), AttendanceTicketStatus.OPEN.value),
            )
            return cur.rowcount > 0
