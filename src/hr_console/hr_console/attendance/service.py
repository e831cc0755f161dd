from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.access import require_admin
from ..common.pagination import Page, paginate
from ..common.validators import optional_str, parse_date_field, parse_hhmm, parse_int
from ..core.enums import ADMIN_ROLES, AttendanceType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import Shift, TimeLog, seconds_between
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_attendance_type(value: Any) -> AttendanceType:
    try:
        return AttendanceType(value)
    except ValueError:
        raise ValidationError(f"Unknown attendance type: {value}")


def _shift_of(user: User) -> Optional[Shift]:
    p = user.personal
    if p.shift_start_time and p.shift_end_time:
        return Shift(start_time=p.shift_start_time, end_time=p.shift_end_time)
    return None


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found.")
        return user

    def _get_log(self, log_id: int) -> TimeLog:
        log = self._attendance.get(int(log_id))
        if not log:
            raise NotFoundError("Time log not found.")
        return log

    def ensure_can_read(self, *, current_role: Role, actor_id: int, user_id: int) -> None:
        """Own logs, HR/SuperAdmin, or the employee's assigned manager."""

        if int(actor_id) == int(user_id) or current_role in ADMIN_ROLES:
            return
        if current_role == Role.MANAGER:
            user = self._users.get_by_id(int(user_id))
            if user and user.manager_id == int(actor_id):
                return
        raise AuthorizationError("You can only view your own attendance.")

    # -------- Self service --------
    def time_in(self, user_id: int, *, now: datetime) -> TimeLog:
        user = self._get_user(user_id)
        today = now.date()

        if self._attendance.get_for_user_and_date(user.id, today):
            raise ValidationError("You have already timed in today.")

        shift = _shift_of(user)
        strategy = self._factory.for_time_in(now=now, shift=shift)
        decision = strategy.decide_time_in(now=now, shift=shift)

        time_in = now.time().replace(microsecond=0)
        log_id = self._attendance.create(
            user_id=user.id,
            work_date=today,
            type=decision.type,
            time_in=time_in,
            remarks=decision.remarks,
        )
        logger.info("User %s timed in at %s (%s)", user.id, time_in, decision.type.value)
        return TimeLog(id=log_id, user_id=user.id, work_date=today, type=decision.type, time_in=time_in, remarks=decision.remarks)

    def time_out(self, user_id: int, *, now: datetime) -> TimeLog:
        user = self._get_user(user_id)
        today = now.date()

        log = self._attendance.get_for_user_and_date(user.id, today)
        if not log or log.time_in is None:
            raise ValidationError("You have not timed in today.")
        if log.time_out is not None:
            raise ValidationError("You have already timed out today.")

        time_out = now.time().replace(microsecond=0)
        duration = seconds_between(today, log.time_in, time_out)
        shift = _shift_of(user)
        strategy = self._factory.for_time_out(now=now, shift=shift, worked_seconds=duration)
        decision = strategy.decide_time_out(now=now, shift=shift, current=log.type)

        updated = replace(log, time_out=time_out, duration=duration, type=decision.type, remarks=decision.remarks or log.remarks)
        self._attendance.update(updated)
        logger.info("User %s timed out after %ss (%s)", user.id, duration, decision.type.value)
        return updated

    def active_log(self, user_id: int, *, today: date) -> Optional[TimeLog]:
        log = self._attendance.get_for_user_and_date(int(user_id), today)
        return log if log and log.is_open else None

    def list_for_user(
        self,
        *,
        current_role: Role,
        actor_id: int,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[TimeLog]:
        self.ensure_can_read(current_role=current_role, actor_id=actor_id, user_id=user_id)
        if start and end and end < start:
            raise ValidationError("End date must be on or after start date.")
        logs: Sequence[TimeLog] = self._attendance.list_for_user(int(user_id), start=start, end=end)
        if type and type != "All":
            wanted = parse_attendance_type(type)
            logs = [log for log in logs if log.type == wanted]
        return paginate(list(logs), page, limit)

    def get_log(self, *, current_role: Role, actor_id: int, log_id: int) -> TimeLog:
        log = self._get_log(log_id)
        self.ensure_can_read(current_role=current_role, actor_id=actor_id, user_id=log.user_id)
        return log

    def stats_for_user(
        self,
        *,
        current_role: Role,
        actor_id: int,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        self.ensure_can_read(current_role=current_role, actor_id=actor_id, user_id=user_id)
        logs = self._attendance.list_for_user(int(user_id), start=start, end=end)
        return {
            "counts": dict(Counter(log.type.value for log in logs)),
            "totalDays": len(logs),
            "totalWorkedSeconds": sum(log.duration for log in logs),
        }

    # -------- HR --------
    def mark_absent(self, *, current_role: Role, user_id: int, work_date: date, remarks: Optional[str] = None) -> int:
        require_admin(current_role)
        user = self._get_user(user_id)
        if self._attendance.get_for_user_and_date(user.id, work_date):
            raise ValidationError("A time log already exists for this date.")
        log_id = self._attendance.create(
            user_id=user.id,
            work_date=work_date,
            type=AttendanceType.ABSENT,
            remarks=optional_str(remarks),
        )
        logger.info("Marked user %s absent on %s", user.id, work_date)
        return log_id

    def bulk_add(self, *, current_role: Role, records: Sequence[Mapping[str, Any]]) -> list[int]:
        """Validate every record first; nothing is written if any record is bad."""

        require_admin(current_role)
        if not records:
            raise ValidationError("No attendance records supplied.")

        prepared: list[dict] = []
        seen: set[tuple[int, date]] = set()
        for index, raw in enumerate(records, start=1):
            try:
                user = self._get_user(parse_int(raw.get("user_id"), "User"))
                work_date = parse_date_field(raw.get("date"), "Date")
                log_type = parse_attendance_type(raw.get("type") or AttendanceType.PRESENT.value)
                time_in = parse_hhmm(raw.get("time_in"), "Time in")
                time_out = parse_hhmm(raw.get("time_out"), "Time out")
            except (ValidationError, NotFoundError) as e:
                raise ValidationError(f"Record {index}: {e}")
            if time_in and time_out and time_out < time_in:
                raise ValidationError(f"Record {index}: time out must be after time in.")
            key = (user.id, work_date)
            if key in seen or self._attendance.get_for_user_and_date(user.id, work_date):
                raise ValidationError(f"Record {index}: a time log already exists for {work_date.isoformat()}.")
            seen.add(key)
            prepared.append(
                dict(
                    user_id=user.id,
                    work_date=work_date,
                    type=log_type,
                    time_in=time_in,
                    time_out=time_out,
                    duration=seconds_between(work_date, time_in, time_out) if time_in and time_out else 0,
                    remarks=optional_str(raw.get("remarks")),
                )
            )

        ids = [self._attendance.create(**rec) for rec in prepared]
        logger.info("Bulk-added %d time logs", len(ids))
        return ids

    def edit(
        self,
        *,
        current_role: Role,
        log_id: int,
        time_in: Optional[str] = None,
        time_out: Optional[str] = None,
        type: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> TimeLog:
        require_admin(current_role)
        log = self._get_log(log_id)

        new_in = parse_hhmm(time_in, "Time in") if time_in is not None else log.time_in
        new_out = parse_hhmm(time_out, "Time out") if time_out is not None else log.time_out
        if new_in and new_out and new_out < new_in:
            raise ValidationError("Time out must be after time in.")

        updated = replace(
            log,
            time_in=new_in,
            time_out=new_out,
            duration=seconds_between(log.work_date, new_in, new_out) if new_in and new_out else 0,
            type=parse_attendance_type(type) if type else log.type,
            remarks=optional_str(remarks) if remarks is not None else log.remarks,
        )
        self._attendance.update(updated)
        logger.info("Time log %s edited", log.id)
        return updated

    def delete(self, *, current_role: Role, log_id: int) -> None:
        require_admin(current_role)
        log = self._get_log(log_id)
        self._attendance.delete(log.id)
        logger.info("Time log %s deleted", log.id)
