from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_time
from ..core.enums import AttendanceType


@dataclass(frozen=True)
class Shift:
    """Working window taken from the employee's personal details."""

    start_time: time
    end_time: time


@dataclass(frozen=True)
class TimeLog:
    """One employee's attendance record for one day."""

    id: int
    user_id: int
    work_date: date
    type: AttendanceType
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    duration: int = 0
    remarks: Optional[str] = None
    leave_application_id: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.time_in is not None and self.time_out is None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": self.user_id,
            "date": fmt_date(self.work_date),
            "timeIn": fmt_time(self.time_in),
            "timeOut": fmt_time(self.time_out),
            "duration": self.duration,
            "type": self.type.value,
            "remarks": self.remarks,
            "leaveApplication": self.leave_application_id,
        }


def seconds_between(work_date: date, start: time, end: time) -> int:
    delta = datetime.combine(work_date, end) - datetime.combine(work_date, start)
    return max(int(delta.total_seconds()), 0)
