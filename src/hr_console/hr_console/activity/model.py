from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import fmt_datetime
from ..core.enums import ActivityAction, ActivityModule


@dataclass(frozen=True)
class ActivityLog:
    id: int
    user_id: Optional[int]
    action: ActivityAction
    module: ActivityModule
    created_at: datetime
    target_id: Optional[str] = None
    description: Optional[str] = None
    status: str = "SUCCESS"
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    user_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user": {"_id": self.user_id, "name": self.user_name} if self.user_id else None,
            "action": self.action.value,
            "module": self.module.value,
            "targetId": self.target_id,
            "description": self.description,
            "status": self.status,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "createdAt": fmt_datetime(self.created_at),
        }
