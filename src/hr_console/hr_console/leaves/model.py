from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_datetime
from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveApplication:
    id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    last_day_to_work: date
    return_to_work: date
    total_days: int
    reason: str
    status: LeaveStatus
    created_at: datetime
    handover_document: Optional[str] = None
    comments: Optional[str] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    user_name: Optional[str] = None

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and start <= self.end_date

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": {"_id": self.user_id, "name": self.user_name},
            "leaveType": self.leave_type.value,
            "startDate": fmt_date(self.start_date),
            "endDate": fmt_date(self.end_date),
            "lastDayToWork": fmt_date(self.last_day_to_work),
            "returnToWork": fmt_date(self.return_to_work),
            "totalDays": self.total_days,
            "handoverDocument": self.handover_document,
            "reason": self.reason,
            "status": self.status.value,
            "comments": self.comments,
            "decidedBy": self.decided_by,
            "decidedAt": fmt_datetime(self.decided_at),
            "createdAt": fmt_datetime(self.created_at),
        }


@dataclass(frozen=True)
class LeaveBalance:
    leave_type: LeaveType
    total: int
    used: int

    @property
    def available(self) -> int:
        return max(self.total - self.used, 0)

    def to_dict(self) -> dict:
        return {"type": self.leave_type.value, "total": self.total, "used": self.used, "available": self.available}
