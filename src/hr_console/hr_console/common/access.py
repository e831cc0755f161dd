from __future__ import annotations

from ..core.enums import ADMIN_ROLES, Role
from ..core.exceptions import AuthorizationError


def require_admin(current_role: Role) -> None:
    if current_role not in ADMIN_ROLES:
        raise AuthorizationError("Only HR or SuperAdmin can perform this action.")


def require_self_or_admin(current_role: Role, actor_id: int, user_id: int) -> None:
    if int(actor_id) != int(user_id) and current_role not in ADMIN_ROLES:
        raise AuthorizationError("You can only access your own records.")
