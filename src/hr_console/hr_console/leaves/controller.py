from __future__ import annotations

import logging

from flask import Flask, request

from ..common.decorators import login_required, roles_required
from ..common.http import audit, current_role, current_user_id, error_response, failure, json_body, ok
from ..common.validators import parse_date_field, parse_optional_date, parse_year
from ..core.enums import ADMIN_ROLES, APPROVER_ROLES, ActivityAction, ActivityModule
from ..core.exceptions import DomainError
from ..container import Container
from .service import group_by_status

logger = logging.getLogger(__name__)


def _serialize_grouped(applications) -> dict:
    return {status: [a.to_dict() for a in items] for status, items in group_by_status(applications).items()}


def register(app: Flask, container: Container) -> None:
    leaves = container.leave_service

    def _audit(action, target_id=None, description=None):
        audit(container.activity_service, action, ActivityModule.LEAVE, target_id=target_id, description=description)

    @app.route("/api/leave-applications", methods=["POST"], endpoint="apply_leave")
    @login_required
    def apply_leave():
        # multipart when a handover document is attached, JSON otherwise
        data = request.form.to_dict() if request.form else json_body()
        try:
            application_id = leaves.apply(
                user_id=current_user_id(),
                leave_type=data.get("leaveType"),
                start_date=parse_date_field(data.get("startDate"), "Start date"),
                end_date=parse_date_field(data.get("endDate"), "End date"),
                last_day_to_work=parse_optional_date(data.get("lastDayToWork"), "Last day to work"),
                return_to_work=parse_optional_date(data.get("returnToWork"), "Return to work"),
                reason=data.get("reason", ""),
                handover_document=request.files.get("handoverDocument"),
            )
            _audit(ActivityAction.LEAVE_APPLY, application_id, data.get("leaveType"))
            return ok(leaves.get(application_id).to_dict(), message="Leave application submitted.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to submit leave application.")

    @app.route("/api/leave-applications", methods=["GET"], endpoint="my_leaves")
    @login_required
    def my_leaves():
        try:
            return ok(_serialize_grouped(leaves.list_own(user_id=current_user_id())))
        except Exception:
            return failure("Failed to fetch leave applications.")

    @app.route("/api/leave-applications/assigned", methods=["GET"], endpoint="assigned_leaves")
    @roles_required(*APPROVER_ROLES)
    def assigned_leaves():
        try:
            items = leaves.list_assigned(current_role=current_role(), actor_id=current_user_id())
            return ok(_serialize_grouped(items))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch assigned leave applications.")

    @app.route("/api/leave-applications/user/<int:user_id>", methods=["GET"], endpoint="user_leaves")
    @login_required
    def user_leaves(user_id: int):
        try:
            items = leaves.list_for_user(current_role=current_role(), actor_id=current_user_id(), user_id=user_id)
            return ok(_serialize_grouped(items))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch leave applications.")

    @app.route("/api/leave-applications/balances", methods=["GET"], endpoint="leave_balances")
    @login_required
    def leave_balances():
        try:
            year = parse_year(request.args.get("year") or container.clock().year)
            user_id = request.args.get("userId")
            target = int(user_id) if user_id and current_role() in ADMIN_ROLES else current_user_id()
            return ok([b.to_dict() for b in leaves.balances(user_id=target, year=year)])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch leave balances.")

    @app.route("/api/leave-applications/<int:application_id>", methods=["PUT"], endpoint="edit_leave")
    @roles_required(*ADMIN_ROLES)
    def edit_leave(application_id: int):
        body = json_body()
        try:
            updated = leaves.edit(
                current_role=current_role(),
                application_id=application_id,
                leave_type=body.get("leaveType"),
                start_date=parse_optional_date(body.get("startDate"), "Start date"),
                end_date=parse_optional_date(body.get("endDate"), "End date"),
                last_day_to_work=parse_optional_date(body.get("lastDayToWork"), "Last day to work"),
                return_to_work=parse_optional_date(body.get("returnToWork"), "Return to work"),
                reason=body.get("reason"),
            )
            _audit(ActivityAction.UPDATE, application_id, "Edited leave application")
            return ok(updated.to_dict(), message="Leave application updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update leave application.")

    @app.route("/api/leave-applications/<int:application_id>/approve", methods=["PATCH"], endpoint="approve_leave")
    @roles_required(*APPROVER_ROLES)
    def approve_leave(application_id: int):
        try:
            written = leaves.approve(
                current_role=current_role(),
                actor_id=current_user_id(),
                application_id=application_id,
                now=container.clock(),
                comments=json_body().get("comments"),
            )
            _audit(ActivityAction.LEAVE_APPROVE, application_id, f"{written} time logs written")
            return ok(leaves.get(application_id).to_dict(), message="Leave application approved.", timeLogsCreated=written)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to approve leave application.")

    @app.route("/api/leave-applications/<int:application_id>/reject", methods=["PATCH"], endpoint="reject_leave")
    @roles_required(*APPROVER_ROLES)
    def reject_leave(application_id: int):
        try:
            leaves.reject(
                current_role=current_role(),
                actor_id=current_user_id(),
                application_id=application_id,
                now=container.clock(),
                comments=json_body().get("comments"),
            )
            _audit(ActivityAction.LEAVE_REJECT, application_id)
            return ok(leaves.get(application_id).to_dict(), message="Leave application rejected.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to reject leave application.")
