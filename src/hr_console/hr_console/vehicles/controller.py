from __future__ import annotations

import logging

from flask import Flask, request

from ..common.decorators import login_required, roles_required
from ..common.http import audit, current_role, current_user_id, error_response, failure, json_body, ok
from ..common.validators import parse_int, parse_optional_date
from ..core.enums import ADMIN_ROLES, ActivityAction, ActivityModule
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def _form_or_json() -> dict:
    return request.form.to_dict() if request.form else json_body()


def register(app: Flask, container: Container) -> None:
    vehicles = container.vehicle_service

    def _audit(action, target_id=None, description=None):
        audit(container.activity_service, action, ActivityModule.VEHICLE, target_id=target_id, description=description)

    @app.route("/api/vehicles", methods=["POST"], endpoint="create_vehicle")
    @roles_required(*ADMIN_ROLES)
    def create_vehicle():
        data = _form_or_json()
        try:
            vehicle_id = vehicles.create(
                current_role=current_role(),
                make=data.get("make", ""),
                model=data.get("model", ""),
                registration_no=data.get("registrationNo", ""),
                picture=request.files.get("vehiclePicture"),
                documents=request.files.getlist("vehicleDocuments"),
            )
            _audit(ActivityAction.VEHICLE_CREATE, vehicle_id, data.get("registrationNo"))
            return ok(vehicles.get(vehicle_id).to_dict(), message="Vehicle created.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to create vehicle.")

    @app.route("/api/vehicles", methods=["GET"], endpoint="list_vehicles")
    @roles_required(*ADMIN_ROLES)
    def list_vehicles():
        try:
            return ok([v.to_dict() for v in vehicles.list(search=request.args.get("search"))])
        except Exception:
            return failure("Failed to fetch vehicles.")

    @app.route("/api/vehicles/assigned", methods=["GET"], endpoint="my_vehicle")
    @login_required
    def my_vehicle():
        try:
            vehicle = vehicles.assigned_to(current_user_id())
            return ok(vehicle.to_dict() if vehicle else None)
        except Exception:
            return failure("Failed to fetch assigned vehicle.")

    @app.route("/api/vehicles/finances", methods=["GET"], endpoint="vehicle_finances")
    @roles_required(*ADMIN_ROLES)
    def vehicle_finances():
        try:
            data = vehicles.finances(
                current_role=current_role(),
                period=request.args.get("period", "all-time"),
                today=container.clock().date(),
            )
            return ok(data)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch vehicle finances.")

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["GET"], endpoint="vehicle_detail")
    @roles_required(*ADMIN_ROLES)
    def vehicle_detail(vehicle_id: int):
        try:
            return ok(vehicles.get(vehicle_id).to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch vehicle.")

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["PUT"], endpoint="update_vehicle")
    @roles_required(*ADMIN_ROLES)
    def update_vehicle(vehicle_id: int):
        data = _form_or_json()
        try:
            vehicle = vehicles.update(
                current_role=current_role(),
                vehicle_id=vehicle_id,
                make=data.get("make"),
                model=data.get("model"),
                registration_no=data.get("registrationNo"),
                picture=request.files.get("vehiclePicture"),
                documents=request.files.getlist("vehicleDocuments"),
            )
            _audit(ActivityAction.VEHICLE_UPDATE, vehicle_id)
            return ok(vehicle.to_dict(), message="Vehicle updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update vehicle.")

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["DELETE"], endpoint="delete_vehicle")
    @roles_required(*ADMIN_ROLES)
    def delete_vehicle(vehicle_id: int):
        try:
            vehicles.delete(current_role=current_role(), vehicle_id=vehicle_id)
            _audit(ActivityAction.DELETE, vehicle_id, "Vehicle deleted")
            return ok(message="Vehicle deleted.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to delete vehicle.")

    @app.route("/api/vehicles/<int:vehicle_id>/assign", methods=["PUT"], endpoint="assign_vehicle")
    @roles_required(*ADMIN_ROLES)
    def assign_vehicle(vehicle_id: int):
        try:
            user_id = parse_int(json_body().get("userId"), "User")
            vehicle = vehicles.assign(current_role=current_role(), vehicle_id=vehicle_id, user_id=user_id)
            _audit(ActivityAction.VEHICLE_UPDATE, vehicle_id, f"Assigned to user {user_id}")
            return ok(vehicle.to_dict(), message="Vehicle assigned.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to assign vehicle.")

    @app.route("/api/vehicles/<int:vehicle_id>/unassign", methods=["POST"], endpoint="unassign_vehicle")
    @roles_required(*ADMIN_ROLES)
    def unassign_vehicle(vehicle_id: int):
        try:
            vehicle = vehicles.unassign(current_role=current_role(), vehicle_id=vehicle_id)
            _audit(ActivityAction.VEHICLE_UPDATE, vehicle_id, "Unassigned")
            return ok(vehicle.to_dict(), message="Vehicle unassigned.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to unassign vehicle.")

    @app.route("/api/vehicles/<int:vehicle_id>/invoices", methods=["POST"], endpoint="add_invoice")
    @login_required
    def add_invoice(vehicle_id: int):
        data = _form_or_json()
        try:
            invoice_id = vehicles.add_invoice(
                current_role=current_role(),
                actor_id=current_user_id(),
                vehicle_id=vehicle_id,
                date=parse_optional_date(data.get("date"), "Invoice date"),
                amount=data.get("amount"),
                description=data.get("description"),
                image=request.files.get("invoiceImage"),
            )
            _audit(ActivityAction.VEHICLE_UPDATE, vehicle_id, f"Invoice {invoice_id} added")
            return ok({"_id": invoice_id}, message="Invoice added.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to add invoice.")

    @app.route("/api/vehicles/<int:vehicle_id>/view-invoices", methods=["GET"], endpoint="view_invoices")
    @login_required
    def view_invoices(vehicle_id: int):
        try:
            invoices, summary = vehicles.list_invoices(
                current_role=current_role(),
                actor_id=current_user_id(),
                vehicle_id=vehicle_id,
                start=parse_optional_date(request.args.get("startDate"), "Start date"),
                end=parse_optional_date(request.args.get("endDate"), "End date"),
                sort_by=request.args.get("sortBy", "date"),
                order=request.args.get("order", "desc"),
            )
            return ok([i.to_dict() for i in invoices], summary=summary.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch invoices.")
