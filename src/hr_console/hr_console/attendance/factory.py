from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import DEFAULT_HALF_DAY_MINUTES, DEFAULT_LATE_GRACE_MINUTES
from .model import Shift
from .strategies.base import AttendanceStrategy
from .strategies.early_out_strategy import EarlyOutStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the strategy for a time-in or time-out."""

    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    half_day_minutes: int = DEFAULT_HALF_DAY_MINUTES

    def for_time_in(self, *, now: datetime, shift: Optional[Shift]) -> AttendanceStrategy:
        if not shift:
            return NormalStrategy()

        shift_start = datetime.combine(now.date(), shift.start_time)
        if now <= shift_start + timedelta(minutes=self.grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_time_out(self, *, now: datetime, shift: Optional[Shift], worked_seconds: int) -> AttendanceStrategy:
        if worked_seconds < self.half_day_minutes * 60:
            return HalfDayStrategy()
        if shift and now < datetime.combine(now.date(), shift.end_time):
            return EarlyOutStrategy()
        return NormalStrategy()
