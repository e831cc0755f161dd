from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceType
from ..model import Shift
from .base import AttendanceStrategy, TypeDecision


class EarlyOutStrategy(AttendanceStrategy):
    """Time-out before shift end; a late arrival becomes 'Late IN and Early Out'."""

    def decide_time_in(self, *, now: datetime, shift: Optional[Shift]) -> TypeDecision:
        return TypeDecision(type=AttendanceType.PRESENT)

    def decide_time_out(self, *, now: datetime, shift: Optional[Shift], current: AttendanceType) -> TypeDecision:
        if current == AttendanceType.LATE_IN:
            return TypeDecision(type=AttendanceType.LATE_IN_EARLY_OUT)
        return TypeDecision(type=AttendanceType.EARLY_OUT)
