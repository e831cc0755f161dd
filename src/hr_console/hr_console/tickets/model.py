from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_datetime, fmt_time
from ..core.enums import AttendanceTicketStatus, TicketKind, TicketStatus


@dataclass(frozen=True)
class Ticket:
    """HR, network or admin support request."""

    id: int
    user_id: int
    kind: TicketKind
    category: str
    subject: str
    message: str
    status: TicketStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    user_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": {"_id": self.user_id, "name": self.user_name},
            "kind": self.kind.value,
            "category": self.category,
            "subject": self.subject,
            "message": self.message,
            "status": self.status.value,
            "createdAt": fmt_datetime(self.created_at),
            "updatedAt": fmt_datetime(self.updated_at),
        }


@dataclass(frozen=True)
class AttendanceTicket:
    """Request to correct one day's time log."""

    id: int
    user_id: int
    date: date
    work_location: str
    status: AttendanceTicketStatus
    created_at: datetime
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    total_time: int = 0
    comments: Optional[str] = None
    file: Optional[str] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    user_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": {"_id": self.user_id, "name": self.user_name},
            "date": fmt_date(self.date),
            "timeIn": fmt_time(self.time_in),
            "timeOut": fmt_time(self.time_out),
            "totalTime": self.total_time,
            "workLocation": self.work_location,
            "comments": self.comments,
            "file": self.file,
            "status": self.status.value,
            "decidedBy": self.decided_by,
            "decidedAt": fmt_datetime(self.decided_at),
            "createdAt": fmt_datetime(self.created_at),
        }
