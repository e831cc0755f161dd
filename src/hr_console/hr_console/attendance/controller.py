from __future__ import annotations

import logging

from flask import Flask, request

from ..common.decorators import login_required, roles_required
from ..common.http import audit, current_role, current_user_id, error_response, failure, json_body, ok, snake_keys
from ..common.pagination import parse_page_args
from ..common.validators import parse_date_field, parse_int, parse_optional_date
from ..core.enums import ADMIN_ROLES, ActivityAction, ActivityModule
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    def _audit(action, target_id=None, description=None):
        audit(container.activity_service, action, ActivityModule.ATTENDANCE, target_id=target_id, description=description)

    @app.route("/api/attendance/time-in", methods=["POST"], endpoint="time_in")
    @login_required
    def time_in():
        try:
            log = attendance.time_in(current_user_id(), now=container.clock())
            _audit(ActivityAction.ATTENDANCE_MARK, log.id, f"Time in ({log.type.value})")
            return ok(log.to_dict(), message="Timed in successfully.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to time in.")

    @app.route("/api/attendance/time-out", methods=["POST"], endpoint="time_out")
    @login_required
    def time_out():
        try:
            log = attendance.time_out(current_user_id(), now=container.clock())
            _audit(ActivityAction.ATTENDANCE_MARK, log.id, f"Time out ({log.type.value})")
            return ok(log.to_dict(), message="Timed out successfully.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to time out.")

    @app.route("/api/attendance/user/<int:user_id>", methods=["GET"], endpoint="user_time_logs")
    @app.route("/api/time-log/user/<int:user_id>", methods=["GET"], endpoint="user_time_logs_alias")
    @login_required
    def user_time_logs(user_id: int):
        try:
            page, limit = parse_page_args(request.args)
            result = attendance.list_for_user(
                current_role=current_role(),
                actor_id=current_user_id(),
                user_id=user_id,
                start=parse_optional_date(request.args.get("startDate"), "Start date"),
                end=parse_optional_date(request.args.get("endDate"), "End date"),
                type=request.args.get("type"),
                page=page,
                limit=limit,
            )
            return ok(**result.to_dict(lambda log: log.to_dict(), key="timeLogs"))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch time logs.")

    @app.route("/api/time-log/<int:log_id>", methods=["GET"], endpoint="time_log_detail")
    @login_required
    def time_log_detail(log_id: int):
        try:
            log = attendance.get_log(current_role=current_role(), actor_id=current_user_id(), log_id=log_id)
            return ok(log.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch time log.")

    @app.route("/api/attendance/user/<int:user_id>/active", methods=["GET"], endpoint="active_time_log")
    @login_required
    def active_time_log(user_id: int):
        try:
            attendance.ensure_can_read(current_role=current_role(), actor_id=current_user_id(), user_id=user_id)
            log = attendance.active_log(user_id, today=container.clock().date())
            return ok(log.to_dict() if log else None)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch active time log.")

    @app.route("/api/attendance/user/<int:user_id>/stats", methods=["GET"], endpoint="time_log_stats")
    @login_required
    def time_log_stats(user_id: int):
        try:
            stats = attendance.stats_for_user(
                current_role=current_role(),
                actor_id=current_user_id(),
                user_id=user_id,
                start=parse_optional_date(request.args.get("startDate"), "Start date"),
                end=parse_optional_date(request.args.get("endDate"), "End date"),
            )
            return ok(stats)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch attendance statistics.")

    @app.route("/api/attendance/mark-absent", methods=["POST"], endpoint="mark_absent")
    @roles_required(*ADMIN_ROLES)
    def mark_absent():
        body = json_body()
        try:
            user_id = parse_int(body.get("userId"), "User")
            log_id = attendance.mark_absent(
                current_role=current_role(),
                user_id=user_id,
                work_date=parse_date_field(body.get("date"), "Date"),
                remarks=body.get("remarks"),
            )
            _audit(ActivityAction.ATTENDANCE_MARK, log_id, f"Marked user {user_id} absent")
            return ok({"_id": log_id}, message="Marked absent.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to mark absent.")

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="bulk_attendance")
    @roles_required(*ADMIN_ROLES)
    def bulk_attendance():
        records = json_body().get("records") or []
        try:
            ids = attendance.bulk_add(current_role=current_role(), records=[snake_keys(r) for r in records])
            _audit(ActivityAction.ATTENDANCE_MARK, description=f"Bulk-added {len(ids)} time logs")
            return ok({"created": len(ids), "ids": ids}, message="Attendance records added.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to add attendance records.")

    @app.route("/api/attendance/edit/<int:log_id>", methods=["PUT"], endpoint="edit_time_log")
    @roles_required(*ADMIN_ROLES)
    def edit_time_log(log_id: int):
        body = json_body()
        try:
            log = attendance.edit(
                current_role=current_role(),
                log_id=log_id,
                time_in=body.get("timeIn"),
                time_out=body.get("timeOut"),
                type=body.get("type"),
                remarks=body.get("remarks"),
            )
            _audit(ActivityAction.ATTENDANCE_UPDATE, log_id)
            return ok(log.to_dict(), message="Time log updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update time log.")

    @app.route("/api/attendance/<int:log_id>", methods=["DELETE"], endpoint="delete_time_log")
    @roles_required(*ADMIN_ROLES)
    def delete_time_log(log_id: int):
        try:
            attendance.delete(current_role=current_role(), log_id=log_id)
            _audit(ActivityAction.ATTENDANCE_DELETE, log_id)
            return ok(message="Time log deleted.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to delete time log.")
