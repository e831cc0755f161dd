"""Small helpers shared by the Flask controllers."""

from __future__ import annotations

import logging
import re
from typing import Any

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def snake_keys(data: dict) -> dict:
    """Console payloads use camelCase; services take snake_case keyword fields."""

    return {re.sub(r"(?<!^)(?=[A-Z])", "_", str(k)).lower(): v for k, v in (data or {}).items()}


def ok(data: Any = None, *, message: str | None = None, status: int = 200, **extra):
    payload: dict[str, Any] = {"success": True}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status


def error_response(exc: DomainError):
    return jsonify({"success": False, "message": str(exc)}), exc.status_code


def audit(activity_service, action, module, *, target_id=None, description: str | None = None) -> None:
    activity_service.record(
        user_id=session.get("user_id"),
        action=action,
        module=module,
        target_id=target_id,
        description=description,
        ip_address=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=request.headers.get("User-Agent"),
    )


def failure(message: str, status: int = 500):
    logger.exception(message)
    return jsonify({"success": False, "message": message}), status
