from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, to_decimal
from .model import Invoice, Vehicle, registration_key
from .repository import VehicleRepository

_SELECT = """
    SELECT v.id, v.make, v.model, v.registration_no, v.vehicle_picture, v.vehicle_documents,
           v.assigned_to, u.name AS assigned_name, v.created_at
    FROM vehicles v
    LEFT JOIN users u ON u.id = v.assigned_to
"""


def _row_to_vehicle(r: dict) -> Vehicle:
    return Vehicle(
        id=int(r["id"]),
        make=r["make"],
        model=r["model"],
        registration_no=r["registration_no"],
        vehicle_picture=r.get("vehicle_picture"),
        vehicle_documents=tuple(load_json(r.get("vehicle_documents"), [])),
        assigned_to=r.get("assigned_to"),
        assigned_name=r.get("assigned_name"),
        created_at=r["created_at"],
    )


class MySQLVehicleRepository(VehicleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        make: str,
        model: str,
        registration_no: str,
        vehicle_picture: Optional[str],
        vehicle_documents: Sequence[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vehicles (make, model, registration_no, registration_key, vehicle_picture, vehicle_documents)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    make,
                    model,
                    registration_no,
                    registration_key(registration_no),
                    vehicle_picture,
                    dump_json(list(vehicle_documents)),
                ),
            )
            return int(cur.lastrowid)

    def get(self, vehicle_id: int) -> Optional[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE v.id=%s", (int(vehicle_id),))
            r = fetchone(cur)
            return _row_to_vehicle(r) if r else None

    def get_by_registration(self, registration_no: str) -> Optional[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE v.registration_key=%s", (registration_key(registration_no),))
            r = fetchone(cur)
            return _row_to_vehicle(r) if r else None

    def get_assigned_to(self, user_id: int) -> Optional[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE v.assigned_to=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_vehicle(r) if r else None

    def list_all(self) -> Sequence[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY v.created_at DESC, v.id DESC")
            return [_row_to_vehicle(r) for r in fetchall(cur)]

    def update(self, vehicle: Vehicle) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE vehicles
                SET make=%s, model=%s, registration_no=%s, registration_key=%s,
                    vehicle_picture=%s, vehicle_documents=%s
                WHERE id=%s
                """,
                (
                    vehicle.make,
                    vehicle.model,
                    vehicle.registration_no,
                    registration_key(vehicle.registration_no),
                    vehicle.vehicle_picture,
                    dump_json(list(vehicle.vehicle_documents)),
                    vehicle.id,
                ),
            )
            return cur.rowcount >= 0

    def delete(self, vehicle_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # invoices go with the FK cascade
            cur.execute("DELETE FROM vehicles WHERE id=%s", (int(vehicle_id),))
            return cur.rowcount > 0

    def set_assignee(self, vehicle_id: int, user_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE vehicles SET assigned_to=%s WHERE id=%s", (user_id, int(vehicle_id)))
            return cur.rowcount >= 0

    def add_invoice(
        self,
        *,
        vehicle_id: int,
        date: date,
        amount: Decimal,
        description: Optional[str],
        invoice_image: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO invoices (vehicle_id, date, amount, description, invoice_image)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (int(vehicle_id), date, amount, description, invoice_image),
            )
            return int(cur.lastrowid)

    def list_invoices(self, vehicle_id: Optional[int] = None) -> Sequence[Invoice]:
        where, params = ("WHERE vehicle_id=%s", (int(vehicle_id),)) if vehicle_id is not None else ("", ())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, vehicle_id, date, amount, description, invoice_image
                FROM invoices {where}
                ORDER BY date DESC, id DESC
                """,
                params,
            )
            return [
                Invoice(
                    id=int(r["id"]),
                    vehicle_id=int(r["vehicle_id"]),
                    date=r["date"],
                    amount=to_decimal(r["amount"]),
                    description=r.get("description"),
                    invoice_image=r.get("invoice_image"),
                )
                for r in fetchall(cur)
            ]
