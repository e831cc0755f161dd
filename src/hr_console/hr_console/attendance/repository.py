from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceType
from .model import TimeLog


class AttendanceRepository(Protocol):
    def get(self, log_id: int) -> Optional[TimeLog]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[TimeLog]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, start: Optional[date] = None, end: Optional[date] = None) -> Sequence[TimeLog]:
        """Newest first; both bounds inclusive."""

        raise NotImplementedError

    def list_between(self, start: date, end: date) -> Sequence[TimeLog]:
        """All users' logs in the inclusive range."""

        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, log: TimeLog) -> bool:
        raise NotImplementedError

    def delete(self, log_id: int) -> bool:
        raise NotImplementedError
