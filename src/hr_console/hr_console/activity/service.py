from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Callable, Optional

from ..common.access import require_admin
from ..common.pagination import Page, paginate
from ..core.enums import ActivityAction, ActivityModule, Role
from ..core.exceptions import ValidationError
from .model import ActivityLog
from .repository import ActivityRepository

logger = logging.getLogger(__name__)


def _enum_filter(enum_cls, value):
    if not value or value == "All":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {enum_cls.__name__} filter: {value}")


class ActivityService:
    """Audit trail of state-changing calls."""

    def __init__(self, activity: ActivityRepository, *, clock: Callable[[], datetime] = datetime.now):
        self._activity = activity
        self._clock = clock

    def record(
        self,
        *,
        user_id: Optional[int],
        action: ActivityAction,
        module: ActivityModule,
        target_id=None,
        description: Optional[str] = None,
        status: str = "SUCCESS",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[int]:
        """Write one audit row. Storage failures are logged and swallowed so the
        request that triggered the audit still succeeds."""

        try:
            return self._activity.add(
                user_id=user_id,
                action=action,
                module=module,
                target_id=str(target_id) if target_id is not None else None,
                description=description,
                status=status,
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=self._clock(),
            )
        except Exception:
            logger.exception("Failed to record activity %s/%s", module.value, action.value)
            return None

    def list(
        self,
        *,
        current_role: Role,
        action: Optional[str] = None,
        module: Optional[str] = None,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[ActivityLog]:
        require_admin(current_role)
        action_f = _enum_filter(ActivityAction, action)
        module_f = _enum_filter(ActivityModule, module)
        needle = (search or "").strip().lower()

        def keep(log: ActivityLog) -> bool:
            if action_f and log.action != action_f:
                return False
            if module_f and log.module != module_f:
                return False
            if user_id is not None and log.user_id != int(user_id):
                return False
            if start and log.created_at.date() < start:
                return False
            if end and log.created_at.date() > end:
                return False
            if needle and needle not in (log.description or "").lower() and needle not in (log.user_name or "").lower():
                return False
            return True

        return paginate([log for log in self._activity.list_all() if keep(log)], page, limit)

    def stats(self, *, current_role: Role) -> dict:
        require_admin(current_role)
        logs = list(self._activity.list_all())
        by_user = Counter((log.user_id, log.user_name) for log in logs if log.user_id is not None)
        return {
            "total": len(logs),
            "byAction": dict(Counter(log.action.value for log in logs)),
            "byModule": dict(Counter(log.module.value for log in logs)),
            "topUsers": [
                {"_id": uid, "name": name, "count": count} for (uid, name), count in by_user.most_common(5)
            ],
        }
