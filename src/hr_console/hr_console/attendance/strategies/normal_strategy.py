from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceType
from ..model import Shift
from .base import AttendanceStrategy, TypeDecision


class NormalStrategy(AttendanceStrategy):
    """On-time time-in; time-out keeps whatever time-in decided."""

    def decide_time_in(self, *, now: datetime, shift: Optional[Shift]) -> TypeDecision:
        return TypeDecision(type=AttendanceType.PRESENT)

    def decide_time_out(self, *, now: datetime, shift: Optional[Shift], current: AttendanceType) -> TypeDecision:
        return TypeDecision(type=current)
