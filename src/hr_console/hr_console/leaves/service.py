from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Optional, Sequence

from werkzeug.datastructures import FileStorage

from ..attendance.repository import AttendanceRepository
from ..common.access import require_admin
from ..common.datetime_utils import is_weekday, iter_days
from ..common.uploads import save_upload
from ..common.validators import optional_str, require_non_empty
from ..core.constants import DOCUMENT_MIME_TYPES, LEAVE_ENTITLEMENTS, MAX_DOCUMENT_BYTES
from ..core.enums import ADMIN_ROLES, JobStatus, LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import LeaveApplication, LeaveBalance
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = frozenset({LeaveStatus.PENDING, LeaveStatus.APPROVED})


@dataclass(frozen=True)
class LeaveDates:
    leave_type: LeaveType
    start_date: date
    end_date: date
    last_day_to_work: date
    return_to_work: date

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def parse_leave_type(value: Any) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError:
        raise ValidationError("Leave type is not valid.")


def validate_dates(
    *,
    leave_type: Any,
    start_date: date,
    end_date: date,
    last_day_to_work: Optional[date] = None,
    return_to_work: Optional[date] = None,
) -> LeaveDates:
    leave_type = parse_leave_type(leave_type)
    if end_date < start_date:
        raise ValidationError("End date must be on or after start date.")

    last_day_to_work = last_day_to_work or start_date - timedelta(days=1)
    return_to_work = return_to_work or end_date + timedelta(days=1)
    if last_day_to_work >= start_date:
        raise ValidationError("Last day to work must be before the start date.")
    if return_to_work <= end_date:
        raise ValidationError("Return to work must be after the end date.")

    return LeaveDates(leave_type, start_date, end_date, last_day_to_work, return_to_work)


def group_by_status(applications: Sequence[LeaveApplication]) -> dict[str, list[LeaveApplication]]:
    return {
        "open": [a for a in applications if a.status == LeaveStatus.PENDING],
        "approved": [a for a in applications if a.status == LeaveStatus.APPROVED],
        "rejected": [a for a in applications if a.status == LeaveStatus.REJECTED],
    }


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        upload_root: str | Path,
    ):
        self._leaves = leaves
        self._attendance = attendance
        self._users = users
        self._upload_root = Path(upload_root)

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found.")
        return user

    def _get(self, application_id: int) -> LeaveApplication:
        app = self._leaves.get(int(application_id))
        if not app:
            raise NotFoundError("Leave application not found.")
        return app

    def _days_taken(self, user_id: int, leave_type: LeaveType, year: int, statuses, *, exclude_id: Optional[int] = None) -> int:
        return sum(
            a.total_days
            for a in self._leaves.list_for_users([user_id])
            if a.leave_type == leave_type and a.status in statuses and a.start_date.year == year and a.id != exclude_id
        )

    def _check_overlap(self, user_id: int, dates: LeaveDates, *, exclude_id: Optional[int] = None) -> None:
        for other in self._leaves.list_for_users([user_id]):
            if other.id == exclude_id or other.status not in _ACTIVE_STATUSES:
                continue
            if other.overlaps(dates.start_date, dates.end_date):
                raise ValidationError(
                    f"Dates overlap an existing {other.status.value.lower()} application "
                    f"({other.start_date.isoformat()} to {other.end_date.isoformat()})."
                )

    def _check_eligibility(
        self, user: User, dates: LeaveDates, *, has_document: bool, exclude_id: Optional[int] = None
    ) -> None:
        """Medical document for sick leave, then the permanent-only yearly entitlement."""

        if dates.leave_type == LeaveType.SICK and not has_document:
            raise ValidationError("A medical document is required for sick leave.")

        entitlement = LEAVE_ENTITLEMENTS.get(dates.leave_type)
        if entitlement is None:
            return
        if user.personal.job_status != JobStatus.PERMANENT:
            raise ValidationError(f"{dates.leave_type.value} is only available to permanent employees.")
        used = self._days_taken(
            user.id, dates.leave_type, dates.start_date.year, _ACTIVE_STATUSES, exclude_id=exclude_id
        )
        if used + dates.total_days > entitlement:
            raise ValidationError(
                f"Insufficient {dates.leave_type.value} balance: {max(entitlement - used, 0)} day(s) available."
            )

    def apply(
        self,
        *,
        user_id: int,
        leave_type: Any,
        start_date: date,
        end_date: date,
        reason: str,
        last_day_to_work: Optional[date] = None,
        return_to_work: Optional[date] = None,
        handover_document: Optional[FileStorage] = None,
    ) -> int:
        user = self._get_user(user_id)
        dates = validate_dates(
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            last_day_to_work=last_day_to_work,
            return_to_work=return_to_work,
        )
        reason = require_non_empty(reason, "Reason")

        has_document = handover_document is not None and bool(handover_document.filename)
        self._check_eligibility(user, dates, has_document=has_document)
        self._check_overlap(user.id, dates)

        document_path = None
        if has_document:
            document_path = save_upload(
                handover_document,
                root=self._upload_root,
                folder=f"leave-documents/{user.id}",
                allowed=DOCUMENT_MIME_TYPES,
                max_bytes=MAX_DOCUMENT_BYTES,
                label="Handover document",
            )

        application_id = self._leaves.create(
            user_id=user.id,
            leave_type=dates.leave_type,
            start_date=dates.start_date,
            end_date=dates.end_date,
            last_day_to_work=dates.last_day_to_work,
            return_to_work=dates.return_to_work,
            total_days=dates.total_days,
            reason=reason,
            handover_document=document_path,
        )
        logger.info("User %s applied for %s (%d days)", user.id, dates.leave_type.value, dates.total_days)
        return application_id

    def get(self, application_id: int) -> LeaveApplication:
        return self._get(application_id)

    def list_own(self, *, user_id: int) -> list[LeaveApplication]:
        return list(self._leaves.list_for_users([int(user_id)]))

    def list_for_user(self, *, current_role: Role, actor_id: int, user_id: int) -> list[LeaveApplication]:
        if int(actor_id) != int(user_id) and current_role not in ADMIN_ROLES:
            user = self._get_user(user_id)
            if user.manager_id != int(actor_id):
                raise AuthorizationError("You can only view your own leave applications.")
        return list(self._leaves.list_for_users([int(user_id)]))

    def list_assigned(self, *, current_role: Role, actor_id: int) -> list[LeaveApplication]:
        if current_role in ADMIN_ROLES:
            return list(self._leaves.list_for_users(None))
        if current_role != Role.MANAGER:
            raise AuthorizationError("Only managers, HR or SuperAdmin can review leave applications.")
        team = [u.id for u in self._users.list_all() if u.manager_id == int(actor_id)]
        return list(self._leaves.list_for_users(team))

    def _ensure_can_decide(self, *, current_role: Role, actor_id: int, app: LeaveApplication) -> None:
        if current_role in ADMIN_ROLES:
            return
        user = self._get_user(app.user_id)
        if current_role == Role.MANAGER and user.manager_id == int(actor_id):
            return
        raise AuthorizationError("Only the employee's manager, HR or SuperAdmin can decide this application.")

    def approve(
        self,
        *,
        current_role: Role,
        actor_id: int,
        application_id: int,
        now: datetime,
        comments: Optional[str] = None,
    ) -> int:
        """Approve and write one leave time log per weekday; returns how many were written."""

        app = self._get(application_id)
        self._ensure_can_decide(current_role=current_role, actor_id=actor_id, app=app)
        if app.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending applications can be decided.")

        if not self._leaves.decide(
            app.id,
            status=LeaveStatus.APPROVED,
            decided_by=int(actor_id),
            decided_at=now,
            comments=optional_str(comments),
        ):
            raise ValidationError("Failed to approve the application.")

        written = 0
        log_type = app.leave_type.attendance_type
        for day in iter_days(app.start_date, app.end_date):
            if not is_weekday(day):
                continue
            if self._attendance.get_for_user_and_date(app.user_id, day):
                continue
            self._attendance.create(
                user_id=app.user_id,
                work_date=day,
                type=log_type,
                remarks=app.reason[:255],
                leave_application_id=app.id,
            )
            written += 1

        logger.info("Leave %s approved by %s; %d time logs written", app.id, actor_id, written)
        return written

    def reject(
        self,
        *,
        current_role: Role,
        actor_id: int,
        application_id: int,
        now: datetime,
        comments: Optional[str] = None,
    ) -> None:
        app = self._get(application_id)
        self._ensure_can_decide(current_role=current_role, actor_id=actor_id, app=app)
        if app.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending applications can be decided.")

        if not self._leaves.decide(
            app.id,
            status=LeaveStatus.REJECTED,
            decided_by=int(actor_id),
            decided_at=now,
            comments=optional_str(comments),
        ):
            raise ValidationError("Failed to reject the application.")
        logger.info("Leave %s rejected by %s", app.id, actor_id)

    def edit(
        self,
        *,
        current_role: Role,
        application_id: int,
        leave_type: Any = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        last_day_to_work: Optional[date] = None,
        return_to_work: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> LeaveApplication:
        require_admin(current_role)
        app = self._get(application_id)
        if app.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending applications can be edited.")

        dates_changed = start_date is not None or end_date is not None
        dates = validate_dates(
            leave_type=leave_type or app.leave_type,
            start_date=start_date or app.start_date,
            end_date=end_date or app.end_date,
            last_day_to_work=last_day_to_work or (None if dates_changed else app.last_day_to_work),
            return_to_work=return_to_work or (None if dates_changed else app.return_to_work),
        )
        reason = require_non_empty(reason, "Reason") if reason is not None else app.reason
        self._check_eligibility(
            self._get_user(app.user_id),
            dates,
            has_document=bool(app.handover_document),
            exclude_id=app.id,
        )
        self._check_overlap(app.user_id, dates, exclude_id=app.id)

        if not self._leaves.update_dates(
            app.id,
            leave_type=dates.leave_type,
            start_date=dates.start_date,
            end_date=dates.end_date,
            last_day_to_work=dates.last_day_to_work,
            return_to_work=dates.return_to_work,
            total_days=dates.total_days,
            reason=reason,
        ):
            raise ValidationError("Failed to update the application.")
        return self._get(app.id)

    def balances(self, *, user_id: int, year: int) -> list[LeaveBalance]:
        return [
            LeaveBalance(
                leave_type=leave_type,
                total=total,
                used=self._days_taken(int(user_id), leave_type, int(year), {LeaveStatus.APPROVED}),
            )
            for leave_type, total in LEAVE_ENTITLEMENTS.items()
        ]
