from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from werkzeug.datastructures import FileStorage

from ..attendance.model import seconds_between
from ..attendance.repository import AttendanceRepository
from ..common.access import require_admin, require_self_or_admin
from ..common.uploads import save_upload
from ..common.validators import optional_str, parse_hhmm, require_non_empty
from ..core.constants import DOCUMENT_MIME_TYPES, HR_TICKET_CATEGORIES, MAX_DOCUMENT_BYTES, NETWORK_TICKET_DEPARTMENTS
from ..core.enums import ADMIN_ROLES, AttendanceTicketStatus, AttendanceType, Role, TicketKind, TicketStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import AttendanceTicket, Ticket
from .repository import TicketRepository

logger = logging.getLogger(__name__)

_CATEGORIES = {
    TicketKind.HR: HR_TICKET_CATEGORIES,
    TicketKind.NETWORK: NETWORK_TICKET_DEPARTMENTS,
}


def _parse_enum(enum_cls, value: Any, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{label} is not valid.")


class TicketService:
    def __init__(
        self,
        tickets: TicketRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        upload_root: str | Path,
    ):
        self._tickets = tickets
        self._attendance = attendance
        self._users = users
        self._upload_root = Path(upload_root)

    # -------- Support tickets --------
    def submit(self, *, user_id: int, kind: Any, category: Optional[str], subject: str, message: str) -> int:
        kind = _parse_enum(TicketKind, kind, "Ticket type")
        subject = require_non_empty(subject, "Subject")
        message = require_non_empty(message, "Message")
        category = require_non_empty(category, "Category" if kind != TicketKind.NETWORK else "Department")

        allowed = _CATEGORIES.get(kind)
        if allowed is not None and category not in allowed:
            raise ValidationError(f"'{category}' is not a valid choice for {kind.value} tickets.")

        ticket_id = self._tickets.create_ticket(
            user_id=int(user_id), kind=kind, category=category, subject=subject, message=message
        )
        logger.info("Ticket %s (%s) submitted by %s", ticket_id, kind.value, user_id)
        return ticket_id

    def get(self, ticket_id: int) -> Ticket:
        ticket = self._tickets.get_ticket(int(ticket_id))
        if not ticket:
            raise NotFoundError("Ticket not found.")
        return ticket

    def list_for_user(self, *, current_role: Role, actor_id: int, user_id: int) -> list[Ticket]:
        require_self_or_admin(current_role, actor_id, user_id)
        return list(self._tickets.list_tickets(user_id=int(user_id)))

    def list_all(self, *, current_role: Role, kind: Optional[str] = None, status: Optional[str] = None) -> list[Ticket]:
        require_admin(current_role)
        return list(
            self._tickets.list_tickets(
                kind=_parse_enum(TicketKind, kind, "Ticket type") if kind and kind != "All" else None,
                status=_parse_enum(TicketStatus, status, "Status") if status and status != "All" else None,
            )
        )

    def update_status(self, *, current_role: Role, ticket_id: int, status: Any, now: datetime) -> Ticket:
        require_admin(current_role)
        status = _parse_enum(TicketStatus, status, "Status")
        if status == TicketStatus.OPEN:
            raise ValidationError("A ticket can only be closed or rejected.")

        ticket = self.get(ticket_id)
        if ticket.status != TicketStatus.OPEN:
            raise ValidationError(f"Ticket is already {ticket.status.value.lower()}.")
        if not self._tickets.update_ticket_status(ticket.id, status=status, updated_at=now):
            raise ValidationError("Failed to update ticket status.")

        logger.info("Ticket %s moved to %s", ticket.id, status.value)
        return replace(ticket, status=status, updated_at=now)

    # -------- Attendance tickets --------
    def submit_attendance_ticket(
        self,
        *,
        user_id: int,
        work_date: Optional[date],
        time_in: Optional[str],
        time_out: Optional[str],
        work_location: Optional[str],
        comments: Optional[str] = None,
        file: Optional[FileStorage] = None,
    ) -> int:
        if work_date is None:
            raise ValidationError("Date is required.")
        t_in = parse_hhmm(time_in, "Time in")
        t_out = parse_hhmm(time_out, "Time out")
        if not t_in and not t_out:
            raise ValidationError("Provide a time in or a time out.")
        if t_in and t_out and t_out < t_in:
            raise ValidationError("Time out must be after time in.")
        work_location = require_non_empty(work_location, "Work location")

        file_path = None
        if file is not None and file.filename:
            file_path = save_upload(
                file,
                root=self._upload_root,
                folder=f"attendance-tickets/{int(user_id)}",
                allowed=DOCUMENT_MIME_TYPES,
                max_bytes=MAX_DOCUMENT_BYTES,
                label="Attachment",
            )

        ticket_id = self._tickets.create_attendance_ticket(
            user_id=int(user_id),
            date=work_date,
            time_in=t_in,
            time_out=t_out,
            total_time=seconds_between(work_date, t_in, t_out) if t_in and t_out else 0,
            work_location=work_location,
            comments=optional_str(comments),
            file=file_path,
        )
        logger.info("Attendance ticket %s submitted by %s for %s", ticket_id, user_id, work_date)
        return ticket_id

    def get_attendance_ticket(self, ticket_id: int) -> AttendanceTicket:
        ticket = self._tickets.get_attendance_ticket(int(ticket_id))
        if not ticket:
            raise NotFoundError("Attendance ticket not found.")
        return ticket

    def list_attendance_for_user(self, *, current_role: Role, actor_id: int, user_id: int) -> list[AttendanceTicket]:
        require_self_or_admin(current_role, actor_id, user_id)
        return list(self._tickets.list_attendance_tickets([int(user_id)]))

    def list_attendance_assigned(self, *, current_role: Role, actor_id: int) -> list[AttendanceTicket]:
        if current_role in ADMIN_ROLES:
            return list(self._tickets.list_attendance_tickets(None))
        if current_role != Role.MANAGER:
            raise AuthorizationError("Only managers, HR or SuperAdmin can review attendance tickets.")
        team = [u.id for u in self._users.list_all() if u.manager_id == int(actor_id)]
        return list(self._tickets.list_attendance_tickets(team))

    def decide_attendance_ticket(
        self,
        *,
        current_role: Role,
        actor_id: int,
        ticket_id: int,
        status: Any,
        now: datetime,
    ) -> AttendanceTicket:
        status = _parse_enum(AttendanceTicketStatus, status, "Status")
        if status == AttendanceTicketStatus.OPEN:
            raise ValidationError("An attendance ticket can only be approved or rejected.")

        ticket = self.get_attendance_ticket(ticket_id)
        if current_role not in ADMIN_ROLES:
            owner = self._users.get_by_id(ticket.user_id)
            if current_role != Role.MANAGER or not owner or owner.manager_id != int(actor_id):
                raise AuthorizationError("Only the employee's manager, HR or SuperAdmin can decide this ticket.")
        if ticket.status != AttendanceTicketStatus.OPEN:
            raise ValidationError("Only open attendance tickets can be decided.")

        if status == AttendanceTicketStatus.APPROVED:
            self._apply_to_time_log(ticket)

        if not self._tickets.decide_attendance_ticket(ticket.id, status=status, decided_by=int(actor_id), decided_at=now):
            raise ValidationError("Failed to decide the attendance ticket.")

        logger.info("Attendance ticket %s %s by %s", ticket.id, status.value.lower(), actor_id)
        return replace(ticket, status=status, decided_by=int(actor_id), decided_at=now)

    def _apply_to_time_log(self, ticket: AttendanceTicket) -> None:
        existing = self._attendance.get_for_user_and_date(ticket.user_id, ticket.date)
        if existing is None:
            self._attendance.create(
                user_id=ticket.user_id,
                work_date=ticket.date,
                type=AttendanceType.PRESENT,
                time_in=ticket.time_in,
                time_out=ticket.time_out,
                duration=seconds_between(ticket.date, ticket.time_in, ticket.time_out)
                if ticket.time_in and ticket.time_out
                else 0,
                remarks=f"Attendance ticket #{ticket.id}",
            )
            return

        time_in = ticket.time_in or existing.time_in
        time_out = ticket.time_out or existing.time_out
        if time_in and time_out and time_out < time_in:
            raise ValidationError("Approved times would end before they start.")
        self._attendance.update(
            replace(
                existing,
                time_in=time_in,
                time_out=time_out,
                duration=seconds_between(ticket.date, time_in, time_out) if time_in and time_out else 0,
                type=AttendanceType.PRESENT,
                remarks=f"Attendance ticket #{ticket.id}",
            )
        )
