from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceTicketStatus, TicketKind, TicketStatus
from .model import AttendanceTicket, Ticket


class TicketRepository(Protocol):
    # Support tickets
    def create_ticket(self, *, user_id: int, kind: TicketKind, category: str, subject: str, message: str) -> int:
        raise NotImplementedError

    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        raise NotImplementedError

    def list_tickets(
        self,
        *,
        user_id: Optional[int] = None,
        kind: Optional[TicketKind] = None,
        status: Optional[TicketStatus] = None,
    ) -> Sequence[Ticket]:
        """Newest first."""

        raise NotImplementedError

    def update_ticket_status(self, ticket_id: int, *, status: TicketStatus, updated_at: datetime) -> bool:
        """Only moves an Open ticket; returns False otherwise."""

        raise NotImplementedError

    # Attendance tickets
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
        raise NotImplementedError

    def get_attendance_ticket(self, ticket_id: int) -> Optional[AttendanceTicket]:
        raise NotImplementedError

    def list_attendance_tickets(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[AttendanceTicket]:
        raise NotImplementedError

    def decide_attendance_ticket(
        self,
        ticket_id: int,
        *,
        status: AttendanceTicketStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> bool:
        raise NotImplementedError
