from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceType
from ..model import Shift


@dataclass(frozen=True)
class TypeDecision:
    type: AttendanceType
    remarks: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: decide the time log type at time-in and time-out."""

    @abstractmethod
    def decide_time_in(self, *, now: datetime, shift: Optional[Shift]) -> TypeDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_time_out(self, *, now: datetime, shift: Optional[Shift], current: AttendanceType) -> TypeDecision:
        raise NotImplementedError
