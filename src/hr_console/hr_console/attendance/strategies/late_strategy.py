from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceType
from ..model import Shift
from .base import AttendanceStrategy, TypeDecision


class LateStrategy(AttendanceStrategy):
    """Time-in after shift start plus grace."""

    def decide_time_in(self, *, now: datetime, shift: Optional[Shift]) -> TypeDecision:
        remarks = f"Shift starts {shift.start_time.strftime('%H:%M')}" if shift else None
        return TypeDecision(type=AttendanceType.LATE_IN, remarks=remarks)

    def decide_time_out(self, *, now: datetime, shift: Optional[Shift], current: AttendanceType) -> TypeDecision:
        return TypeDecision(type=current)
