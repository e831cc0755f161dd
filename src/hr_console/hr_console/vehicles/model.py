from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_datetime


def registration_key(registration_no: str) -> str:
    """Uniqueness key: case-insensitive, surrounding whitespace ignored."""

    return (registration_no or "").strip().upper()


@dataclass(frozen=True)
class Vehicle:
    id: int
    make: str
    model: str
    registration_no: str
    created_at: datetime
    vehicle_picture: Optional[str] = None
    vehicle_documents: tuple[str, ...] = field(default_factory=tuple)
    assigned_to: Optional[int] = None
    assigned_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "make": self.make,
            "model": self.model,
            "registrationNo": self.registration_no,
            "vehiclePicture": self.vehicle_picture,
            "vehicleDocuments": list(self.vehicle_documents),
            "assignedTo": {"_id": self.assigned_to, "name": self.assigned_name} if self.assigned_to else None,
            "createdAt": fmt_datetime(self.created_at),
        }


@dataclass(frozen=True)
class Invoice:
    id: int
    vehicle_id: int
    date: date
    amount: Decimal
    description: Optional[str] = None
    invoice_image: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "vehicle": self.vehicle_id,
            "date": fmt_date(self.date),
            "amount": float(self.amount),
            "description": self.description,
            "invoiceImage": self.invoice_image,
        }


@dataclass(frozen=True)
class InvoiceSummary:
    total_amount: Decimal
    average_amount: Decimal
    number_of_invoices: int

    def to_dict(self) -> dict:
        return {
            "totalAmount": float(self.total_amount),
            "averageAmount": float(self.average_amount),
            "numberOfInvoices": self.number_of_invoices,
        }
