from __future__ import annotations

import logging

from flask import Flask, request

from ..common.decorators import roles_required
from ..common.http import current_role, error_response, failure, ok
from ..common.pagination import parse_page_args
from ..common.validators import parse_optional_date
from ..core.enums import ADMIN_ROLES
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activity-logs", methods=["GET"], endpoint="activity_logs")
    @roles_required(*ADMIN_ROLES)
    def activity_logs():
        try:
            page, limit = parse_page_args(request.args)
            user_id = request.args.get("userId")
            result = container.activity_service.list(
                current_role=current_role(),
                action=request.args.get("action"),
                module=request.args.get("module"),
                user_id=int(user_id) if user_id else None,
                start=parse_optional_date(request.args.get("startDate"), "Start date"),
                end=parse_optional_date(request.args.get("endDate"), "End date"),
                search=request.args.get("search"),
                page=page,
                limit=limit,
            )
            return ok(**result.to_dict(lambda log: log.to_dict(), key="logs"))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch activity logs.")

    @app.route("/api/activity-logs/stats", methods=["GET"], endpoint="activity_stats")
    @roles_required(*ADMIN_ROLES)
    def activity_stats():
        try:
            return ok(container.activity_service.stats(current_role=current_role()))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch activity statistics.")
