from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ActivityAction, ActivityModule
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ActivityLog
from .repository import ActivityRepository


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activity_logs (user_id, action, module, target_id, description, status,
                                           ip_address, user_agent, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    user_id,
                    action.value,
                    module.value,
                    target_id,
                    (description or "")[:255] or None,
                    status,
                    ip_address,
                    (user_agent or "")[:255] or None,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_all(self) -> Sequence[ActivityLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.id, a.user_id, u.name AS user_name, a.action, a.module, a.target_id,
                       a.description, a.status, a.ip_address, a.user_agent, a.created_at
                FROM activity_logs a
                LEFT JOIN users u ON u.id = a.user_id
                ORDER BY a.created_at DESC, a.id DESC
                """
            )
            return [
                ActivityLog(
                    id=int(r["id"]),
                    user_id=r.get("user_id"),
                    user_name=r.get("user_name"),
                    action=ActivityAction(r["action"]),
                    module=ActivityModule(r["module"]),
                    target_id=r.get("target_id"),
                    description=r.get("description"),
                    status=r["status"],
                    ip_address=r.get("ip_address"),
                    user_agent=r.get("user_agent"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
