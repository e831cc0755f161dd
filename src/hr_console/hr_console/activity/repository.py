from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ActivityAction, ActivityModule
from .model import ActivityLog


class ActivityRepository(Protocol):
    def add(
        self,
        *,
        user_id: Optional[int],
        action: ActivityAction,
        module: ActivityModule,
        target_id: Optional[str],
        description: Optional[str],
        status: str,
        ip_address: Optional[str],
        user_agent: Optional[str],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_all(self) -> Sequence[ActivityLog]:
        """Newest first, joined with the acting user's name."""

        raise NotImplementedError
