from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Invoice, Vehicle


class VehicleRepository(Protocol):
    def create(
        self,
        *,
        make: str,
        model: str,
        registration_no: str,
        vehicle_picture: Optional[str],
        vehicle_documents: Sequence[str],
    ) -> int:
        raise NotImplementedError

    def get(self, vehicle_id: int) -> Optional[Vehicle]:
        raise NotImplementedError

    def get_by_registration(self, registration_no: str) -> Optional[Vehicle]:
        """Match on the normalized registration key."""

        raise NotImplementedError

    def get_assigned_to(self, user_id: int) -> Optional[Vehicle]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Vehicle]:
        raise NotImplementedError

    def update(self, vehicle: Vehicle) -> bool:
        raise NotImplementedError

    def delete(self, vehicle_id: int) -> bool:
        """Removes the vehicle and its invoices."""

        raise NotImplementedError

    def set_assignee(self, vehicle_id: int, user_id: Optional[int]) -> bool:
        raise NotImplementedError

    def add_invoice(
        self,
        *,
        vehicle_id: int,
        date: date,
        amount: Decimal,
        description: Optional[str],
        invoice_image: Optional[str],
    ) -> int:
        raise NotImplementedError

    def list_invoices(self, vehicle_id: Optional[int] = None) -> Sequence[Invoice]:
        """None means invoices of every vehicle."""

        raise NotImplementedError
