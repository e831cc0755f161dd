from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveApplication


class LeaveRepository(Protocol):
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
        raise NotImplementedError

    def get(self, application_id: int) -> Optional[LeaveApplication]:
        raise NotImplementedError

    def list_for_users(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[LeaveApplication]:
        """Newest first. None means every user."""

        raise NotImplementedError

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
        raise NotImplementedError

    def decide(
        self,
        application_id: int,
        *,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        comments: Optional[str],
    ) -> bool:
        """Only moves a Pending application; returns False otherwise."""

        raise NotImplementedError
