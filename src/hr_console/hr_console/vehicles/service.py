from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

from werkzeug.datastructures import FileStorage

from ..common.access import require_admin
from ..common.datetime_utils import add_months
from ..common.uploads import save_upload
from ..common.validators import optional_str, require_non_empty, require_positive_amount
from ..core.constants import IMAGE_MIME_TYPES, MAX_VEHICLE_DOCUMENT_BYTES, PDF_OR_IMAGE_MIME_TYPES
from ..core.enums import ADMIN_ROLES, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import Invoice, InvoiceSummary, Vehicle, registration_key
from .repository import VehicleRepository

logger = logging.getLogger(__name__)

FINANCE_PERIODS = ("this-month", "last-six-months", "this-year", "all-time")
_SORT_FIELDS = ("date", "amount")
_CENTS = Decimal("0.01")


def period_bounds(period: str, today: date) -> tuple[Optional[date], Optional[date]]:
    """Inclusive date range for a finance period; None means unbounded."""

    period = (period or "").replace("_", "-")
    if period == "this-month":
        return today.replace(day=1), today
    if period == "last-six-months":
        return add_months(today, -6), today
    if period == "this-year":
        return date(today.year, 1, 1), today
    if period == "all-time":
        return None, None
    raise ValidationError(f"Period must be one of: {', '.join(FINANCE_PERIODS)}.")


def summarize(invoices: Iterable[Invoice]) -> InvoiceSummary:
    amounts = [i.amount for i in invoices]
    total = sum(amounts, Decimal("0"))
    average = (total / len(amounts)).quantize(_CENTS, rounding=ROUND_HALF_UP) if amounts else Decimal("0")
    return InvoiceSummary(total_amount=total, average_amount=average, number_of_invoices=len(amounts))


def _in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    return (start is None or day >= start) and (end is None or day <= end)


class VehicleService:
    def __init__(self, vehicles: VehicleRepository, users: UserRepository, *, upload_root: str | Path):
        self._vehicles = vehicles
        self._users = users
        self._upload_root = Path(upload_root)

    def _store(self, file: FileStorage, folder: str, *, allowed, label: str) -> str:
        return save_upload(
            file,
            root=self._upload_root,
            folder=folder,
            allowed=allowed,
            max_bytes=MAX_VEHICLE_DOCUMENT_BYTES,
            label=label,
        )

    def _store_documents(self, documents: Optional[Iterable[FileStorage]]) -> list[str]:
        return [
            self._store(doc, "vehicles/documents", allowed=PDF_OR_IMAGE_MIME_TYPES, label="Vehicle document")
            for doc in (documents or [])
            if doc is not None and doc.filename
        ]

    def _ensure_unique(self, registration_no: str, *, exclude_id: Optional[int] = None) -> None:
        existing = self._vehicles.get_by_registration(registration_no)
        if existing and existing.id != exclude_id:
            raise ValidationError(f"A vehicle with registration '{registration_key(registration_no)}' already exists.")

    def create(
        self,
        *,
        current_role: Role,
        make: str,
        model: str,
        registration_no: str,
        picture: Optional[FileStorage] = None,
        documents: Optional[Iterable[FileStorage]] = None,
    ) -> int:
        require_admin(current_role)
        make = require_non_empty(make, "Make")
        model = require_non_empty(model, "Model")
        registration_no = require_non_empty(registration_no, "Registration number")
        self._ensure_unique(registration_no)

        picture_path = None
        if picture is not None and picture.filename:
            picture_path = self._store(picture, "vehicles/pictures", allowed=IMAGE_MIME_TYPES, label="Vehicle picture")

        vehicle_id = self._vehicles.create(
            make=make,
            model=model,
            registration_no=registration_no,
            vehicle_picture=picture_path,
            vehicle_documents=self._store_documents(documents),
        )
        logger.info("Vehicle %s (%s) created", vehicle_id, registration_no)
        return vehicle_id

    def get(self, vehicle_id: int) -> Vehicle:
        vehicle = self._vehicles.get(int(vehicle_id))
        if not vehicle:
            raise NotFoundError("Vehicle not found.")
        return vehicle

    def list(self, *, search: Optional[str] = None) -> list[Vehicle]:
        vehicles = list(self._vehicles.list_all())
        term = (search or "").strip().lower()
        if not term:
            return vehicles
        return [
            v
            for v in vehicles
            if term in v.make.lower() or term in v.model.lower() or term in v.registration_no.lower()
        ]

    def update(
        self,
        *,
        current_role: Role,
        vehicle_id: int,
        make: Optional[str] = None,
        model: Optional[str] = None,
        registration_no: Optional[str] = None,
        picture: Optional[FileStorage] = None,
        documents: Optional[Iterable[FileStorage]] = None,
    ) -> Vehicle:
        """Changes the given fields; new documents are appended to the existing ones."""

        require_admin(current_role)
        vehicle = self.get(vehicle_id)

        changes: dict[str, Any] = {}
        if make is not None:
            changes["make"] = require_non_empty(make, "Make")
        if model is not None:
            changes["model"] = require_non_empty(model, "Model")
        if registration_no is not None:
            registration_no = require_non_empty(registration_no, "Registration number")
            self._ensure_unique(registration_no, exclude_id=vehicle.id)
            changes["registration_no"] = registration_no
        if picture is not None and picture.filename:
            changes["vehicle_picture"] = self._store(
                picture, "vehicles/pictures", allowed=IMAGE_MIME_TYPES, label="Vehicle picture"
            )
        new_documents = self._store_documents(documents)
        if new_documents:
            changes["vehicle_documents"] = tuple(vehicle.vehicle_documents) + tuple(new_documents)

        updated = replace(vehicle, **changes)
        if not self._vehicles.update(updated):
            raise ValidationError("Failed to update vehicle.")
        return updated

    def delete(self, *, current_role: Role, vehicle_id: int) -> None:
        require_admin(current_role)
        vehicle = self.get(vehicle_id)
        if not self._vehicles.delete(vehicle.id):
            raise ValidationError("Failed to delete vehicle.")
        logger.info("Vehicle %s deleted with its invoices", vehicle.id)

    def assign(self, *, current_role: Role, vehicle_id: int, user_id: int) -> Vehicle:
        require_admin(current_role)
        vehicle = self.get(vehicle_id)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found.")
        if not user.is_active:
            raise ValidationError("Vehicles can only be assigned to active employees.")

        held = self._vehicles.get_assigned_to(user.id)
        if held and held.id != vehicle.id:
            self._vehicles.set_assignee(held.id, None)
            logger.info("Vehicle %s released from user %s", held.id, user.id)

        self._vehicles.set_assignee(vehicle.id, user.id)
        logger.info("Vehicle %s assigned to user %s", vehicle.id, user.id)
        return replace(vehicle, assigned_to=user.id, assigned_name=user.name)

    def unassign(self, *, current_role: Role, vehicle_id: int) -> Vehicle:
        require_admin(current_role)
        vehicle = self.get(vehicle_id)
        if vehicle.assigned_to is None:
            raise ValidationError("Vehicle is not assigned.")
        self._vehicles.set_assignee(vehicle.id, None)
        return replace(vehicle, assigned_to=None, assigned_name=None)

    def assigned_to(self, user_id: int) -> Optional[Vehicle]:
        return self._vehicles.get_assigned_to(int(user_id))

    def _ensure_can_touch_invoices(self, current_role: Role, actor_id: int, vehicle: Vehicle) -> None:
        if current_role in ADMIN_ROLES or vehicle.assigned_to == int(actor_id):
            return
        raise AuthorizationError("Only HR, SuperAdmin or the vehicle's driver can manage its invoices.")

    def add_invoice(
        self,
        *,
        current_role: Role,
        actor_id: int,
        vehicle_id: int,
        date: Optional[date],
        amount: Any,
        description: Optional[str] = None,
        image: Optional[FileStorage] = None,
    ) -> int:
        vehicle = self.get(vehicle_id)
        self._ensure_can_touch_invoices(current_role, actor_id, vehicle)
        if date is None:
            raise ValidationError("Invoice date is required.")
        amount = require_positive_amount(amount, "Amount")

        image_path = None
        if image is not None and image.filename:
            image_path = self._store(image, "vehicles/invoices", allowed=PDF_OR_IMAGE_MIME_TYPES, label="Invoice image")

        invoice_id = self._vehicles.add_invoice(
            vehicle_id=vehicle.id,
            date=date,
            amount=amount,
            description=optional_str(description),
            invoice_image=image_path,
        )
        logger.info("Invoice %s (%s) added to vehicle %s", invoice_id, amount, vehicle.id)
        return invoice_id

    def list_invoices(
        self,
        *,
        current_role: Role,
        actor_id: int,
        vehicle_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        sort_by: str = "date",
        order: str = "desc",
    ) -> tuple[list[Invoice], InvoiceSummary]:
        vehicle = self.get(vehicle_id)
        self._ensure_can_touch_invoices(current_role, actor_id, vehicle)
        if start and end and end < start:
            raise ValidationError("End date must be on or after start date.")
        sort_by = sort_by or "date"
        if sort_by not in _SORT_FIELDS:
            raise ValidationError("Invoices can be sorted by date or amount.")
        order = (order or "desc").lower()
        if order not in ("asc", "desc"):
            raise ValidationError("Order must be asc or desc.")

        invoices = [i for i in self._vehicles.list_invoices(vehicle.id) if _in_range(i.date, start, end)]
        invoices.sort(key=lambda i: (getattr(i, sort_by), i.id), reverse=order == "desc")
        return invoices, summarize(invoices)

    def finances(self, *, current_role: Role, period: str, today: date) -> dict:
        """Per-vehicle invoice totals within the period, largest first."""

        require_admin(current_role)
        start, end = period_bounds(period or "all-time", today)

        totals: dict[int, Decimal] = {}
        counts: dict[int, int] = {}
        for invoice in self._vehicles.list_invoices(None):
            if not _in_range(invoice.date, start, end):
                continue
            totals[invoice.vehicle_id] = totals.get(invoice.vehicle_id, Decimal("0")) + invoice.amount
            counts[invoice.vehicle_id] = counts.get(invoice.vehicle_id, 0) + 1

        rows = [
            {
                "vehicle": v.to_dict(),
                "totalAmount": float(totals.get(v.id, Decimal("0"))),
                "numberOfInvoices": counts.get(v.id, 0),
            }
            for v in self._vehicles.list_all()
        ]
        rows.sort(key=lambda r: r["totalAmount"], reverse=True)
        return {
            "period": period or "all-time",
            "startDate": start.isoformat() if start else None,
            "endDate": end.isoformat() if end else None,
            "vehicles": rows,
            "grandTotal": float(sum(totals.values(), Decimal("0"))),
        }
