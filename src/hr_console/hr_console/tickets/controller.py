from __future__ import annotations

import logging

from flask import Flask, request

from ..common.decorators import login_required, roles_required
from ..common.http import audit, current_role, current_user_id, error_response, failure, json_body, ok
from ..common.validators import parse_optional_date
from ..core.enums import ADMIN_ROLES, APPROVER_ROLES, ActivityAction, ActivityModule
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    tickets = container.ticket_service

    def _audit(action, target_id=None, description=None):
        audit(container.activity_service, action, ActivityModule.TICKET, target_id=target_id, description=description)

    @app.route("/api/tickets", methods=["POST"], endpoint="submit_ticket")
    @login_required
    def submit_ticket():
        body = json_body()
        try:
            kind = body.get("kind") or body.get("type")
            ticket_id = tickets.submit(
                user_id=current_user_id(),
                kind=kind,
                category=body.get("category") or body.get("department"),
                subject=body.get("subject", ""),
                message=body.get("message", ""),
            )
            _audit(ActivityAction.TICKET_CREATE, ticket_id, f"{kind} ticket")
            return ok(tickets.get(ticket_id).to_dict(), message="Ticket submitted.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to submit ticket.")

    @app.route("/api/tickets", methods=["GET"], endpoint="list_tickets")
    @roles_required(*ADMIN_ROLES)
    def list_tickets():
        try:
            items = tickets.list_all(
                current_role=current_role(),
                kind=request.args.get("kind"),
                status=request.args.get("status"),
            )
            return ok([t.to_dict() for t in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch tickets.")

    @app.route("/api/tickets/user/<int:user_id>", methods=["GET"], endpoint="user_tickets")
    @login_required
    def user_tickets(user_id: int):
        try:
            items = tickets.list_for_user(current_role=current_role(), actor_id=current_user_id(), user_id=user_id)
            return ok([t.to_dict() for t in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch tickets.")

    @app.route("/api/tickets/<int:ticket_id>/status", methods=["PATCH"], endpoint="ticket_status")
    @roles_required(*ADMIN_ROLES)
    def ticket_status(ticket_id: int):
        status = json_body().get("status")
        try:
            ticket = tickets.update_status(
                current_role=current_role(), ticket_id=ticket_id, status=status, now=container.clock()
            )
            _audit(ActivityAction.TICKET_UPDATE, ticket_id, f"Status -> {status}")
            return ok(ticket.to_dict(), message="Ticket status updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update ticket status.")

    @app.route("/api/attendance-tickets", methods=["POST"], endpoint="submit_attendance_ticket")
    @login_required
    def submit_attendance_ticket():
        data = request.form.to_dict() if request.form else json_body()
        try:
            ticket_id = tickets.submit_attendance_ticket(
                user_id=current_user_id(),
                work_date=parse_optional_date(data.get("date"), "Date"),
                time_in=data.get("timeIn"),
                time_out=data.get("timeOut"),
                work_location=data.get("workLocation"),
                comments=data.get("comments"),
                file=request.files.get("file"),
            )
            _audit(ActivityAction.TICKET_CREATE, ticket_id, "Attendance ticket")
            return ok(
                tickets.get_attendance_ticket(ticket_id).to_dict(),
                message="Attendance ticket submitted.",
                status=201,
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to submit attendance ticket.")

    @app.route("/api/attendance-tickets/user/<int:user_id>", methods=["GET"], endpoint="user_attendance_tickets")
    @login_required
    def user_attendance_tickets(user_id: int):
        try:
            items = tickets.list_attendance_for_user(
                current_role=current_role(), actor_id=current_user_id(), user_id=user_id
            )
            return ok([t.to_dict() for t in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch attendance tickets.")

    @app.route("/api/attendance-tickets/assigned", methods=["GET"], endpoint="assigned_attendance_tickets")
    @roles_required(*APPROVER_ROLES)
    def assigned_attendance_tickets():
        try:
            items = tickets.list_attendance_assigned(current_role=current_role(), actor_id=current_user_id())
            return ok([t.to_dict() for t in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch attendance tickets.")

    @app.route("/api/attendance-tickets/<int:ticket_id>/status", methods=["PATCH"], endpoint="attendance_ticket_status")
    @roles_required(*APPROVER_ROLES)
    def attendance_ticket_status(ticket_id: int):
        status = json_body().get("status")
        try:
            ticket = tickets.decide_attendance_ticket(
                current_role=current_role(),
                actor_id=current_user_id(),
                ticket_id=ticket_id,
                status=status,
                now=container.clock(),
            )
            _audit(ActivityAction.TICKET_UPDATE, ticket_id, f"Attendance ticket {status}")
            return ok(ticket.to_dict(), message=f"Attendance ticket {ticket.status.value.lower()}.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update attendance ticket.")
