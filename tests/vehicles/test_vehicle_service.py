from __future__ import annotations

import io
from datetime import date
from decimal import Decimal

import pytest
from werkzeug.datastructures import FileStorage

from src.hr_console.hr_console.core.enums import Role
from src.hr_console.hr_console.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_console.hr_console.vehicles.service import period_bounds, summarize

from conftest import make_user

TODAY = date(2025, 3, 12)


def create(container, registration_no="ABC-123", **overrides):
    data = dict(current_role=Role.HR, make="Toyota", model="Corolla", registration_no=registration_no)
    data.update(overrides)
    return container.vehicle_service.create(**data)


def invoice(container, vehicle_id, amount, day=date(2025, 3, 1), **overrides):
    data = dict(current_role=Role.HR, actor_id=2, vehicle_id=vehicle_id, date=day, amount=amount)
    data.update(overrides)
    return container.vehicle_service.add_invoice(**data)


def test_registration_is_unique_ignoring_case_and_spaces(container):
    create(container)

    with pytest.raises(ValidationError, match="ABC-123"):
        create(container, registration_no=" abc-123 ")


def test_create_requires_admin_and_fields(container):
    with pytest.raises(AuthorizationError):
        create(container, current_role=Role.MANAGER)
    with pytest.raises(ValidationError, match="Make"):
        create(container, make=" ")


def test_create_stores_picture_and_documents(container):
    picture = FileStorage(stream=io.BytesIO(b"\x89PNG"), filename="car.png", content_type="image/png")
    doc = FileStorage(stream=io.BytesIO(b"%PDF"), filename="reg.pdf", content_type="application/pdf")

    vehicle = container.vehicle_service.get(create(container, picture=picture, documents=[doc]))

    assert vehicle.vehicle_picture.startswith("vehicles/pictures/")
    assert len(vehicle.vehicle_documents) == 1


def test_picture_must_be_an_image(container):
    picture = FileStorage(stream=io.BytesIO(b"%PDF"), filename="car.pdf", content_type="application/pdf")

    with pytest.raises(ValidationError, match="not allowed"):
        create(container, picture=picture)


def test_update_appends_documents_and_checks_uniqueness(container):
    service = container.vehicle_service
    first = create(container)
    create(container, registration_no="XYZ-9")
    doc = FileStorage(stream=io.BytesIO(b"%PDF"), filename="insurance.pdf", content_type="application/pdf")

    updated = service.update(current_role=Role.HR, vehicle_id=first, model="Yaris", documents=[doc])
    assert updated.model == "Yaris"
    assert len(updated.vehicle_documents) == 1

    with pytest.raises(ValidationError):
        service.update(current_role=Role.HR, vehicle_id=first, registration_no="xyz-9")
    assert service.update(current_role=Role.HR, vehicle_id=first, registration_no="abc-123").registration_no == "abc-123"


def test_search_matches_make_model_or_registration(container):
    create(container)
    create(container, make="Honda", model="Civic", registration_no="LEA-77")

    assert [v.make for v in container.vehicle_service.list(search="civic")] == ["Honda"]
    assert len(container.vehicle_service.list(search="")) == 2
    assert [v.registration_no for v in container.vehicle_service.list(search="abc")] == ["ABC-123"]


def test_assign_moves_employee_off_previous_vehicle(container):
    service = container.vehicle_service
    first = create(container)
    second = create(container, registration_no="XYZ-9")

    service.assign(current_role=Role.HR, vehicle_id=first, user_id=4)
    assigned = service.assign(current_role=Role.HR, vehicle_id=second, user_id=4)

    assert assigned.assigned_name == "Eve Employee"
    assert service.get(first).assigned_to is None
    assert service.assigned_to(4).id == second


def test_assign_requires_active_existing_user(make_container):
    container = make_container(users=[make_user(2, Role.HR), make_user(7, is_active=False)])
    vehicle_id = create(container)

    with pytest.raises(ValidationError, match="active"):
        container.vehicle_service.assign(current_role=Role.HR, vehicle_id=vehicle_id, user_id=7)
    with pytest.raises(NotFoundError):
        container.vehicle_service.assign(current_role=Role.HR, vehicle_id=vehicle_id, user_id=99)


def test_unassign(container):
    service = container.vehicle_service
    vehicle_id = create(container)

    with pytest.raises(ValidationError, match="not assigned"):
        service.unassign(current_role=Role.HR, vehicle_id=vehicle_id)

    service.assign(current_role=Role.HR, vehicle_id=vehicle_id, user_id=4)
    assert service.unassign(current_role=Role.HR, vehicle_id=vehicle_id).assigned_to is None
    assert service.assigned_to(4) is None


def test_invoice_needs_date_and_positive_amount(container):
    vehicle_id = create(container)

    with pytest.raises(ValidationError, match="greater than zero"):
        invoice(container, vehicle_id, 0)
    with pytest.raises(ValidationError, match="date"):
        invoice(container, vehicle_id, 100, day=None)


def test_only_admin_or_driver_handles_invoices(container):
    service = container.vehicle_service
    vehicle_id = create(container)
    service.assign(current_role=Role.HR, vehicle_id=vehicle_id, user_id=4)

    assert invoice(container, vehicle_id, "1500", current_role=Role.NORMAL, actor_id=4)
    with pytest.raises(AuthorizationError):
        invoice(container, vehicle_id, "1500", current_role=Role.NORMAL, actor_id=5)
    with pytest.raises(AuthorizationError):
        service.list_invoices(current_role=Role.MANAGER, actor_id=3, vehicle_id=vehicle_id)


def test_list_invoices_filters_sorts_and_summarizes(container):
    vehicle_id = create(container)
    invoice(container, vehicle_id, "300", day=date(2025, 1, 10))
    invoice(container, vehicle_id, "100", day=date(2025, 2, 10))
    invoice(container, vehicle_id, "200", day=date(2025, 3, 10))

    items, summary = container.vehicle_service.list_invoices(
        current_role=Role.HR,
        actor_id=2,
        vehicle_id=vehicle_id,
        start=date(2025, 2, 1),
        sort_by="amount",
        order="asc",
    )

    assert [i.amount for i in items] == [Decimal("100"), Decimal("200")]
    assert summary.total_amount == Decimal("300")
    assert summary.average_amount == Decimal("150.00")
    assert summary.number_of_invoices == 2


def test_list_invoices_rejects_unknown_sort(container):
    vehicle_id = create(container)

    with pytest.raises(ValidationError):
        container.vehicle_service.list_invoices(current_role=Role.HR, actor_id=2, vehicle_id=vehicle_id, sort_by="vendor")


def test_summary_of_no_invoices_is_zero():
    summary = summarize([])

    assert summary.total_amount == 0
    assert summary.average_amount == 0
    assert summary.number_of_invoices == 0


def test_delete_removes_invoices(container):
    vehicle_id = create(container)
    invoice(container, vehicle_id, "50")

    container.vehicle_service.delete(current_role=Role.HR, vehicle_id=vehicle_id)

    assert container.vehicles_repo.list_invoices(None) == []
    with pytest.raises(NotFoundError):
        container.vehicle_service.get(vehicle_id)


@pytest.mark.parametrize(
    "period,expected",
    [
        ("this-month", (date(2025, 3, 1), TODAY)),
        ("last-six-months", (date(2024, 9, 12), TODAY)),
        ("this-year", (date(2025, 1, 1), TODAY)),
        ("all-time", (None, None)),
    ],
)
def test_period_bounds(period, expected):
    assert period_bounds(period, TODAY) == expected


def test_period_bounds_rejects_unknown_period():
    with pytest.raises(ValidationError):
        period_bounds("last-week", TODAY)


def test_finances_rank_vehicles_by_spend(container):
    cheap = create(container)
    pricey = create(container, registration_no="XYZ-9")
    invoice(container, cheap, "100", day=date(2025, 3, 2))
    invoice(container, pricey, "900", day=date(2025, 3, 3))
    invoice(container, pricey, "5000", day=date(2024, 1, 3))

    report = container.vehicle_service.finances(current_role=Role.HR, period="this-month", today=TODAY)

    assert [row["vehicle"]["_id"] for row in report["vehicles"]] == [pricey, cheap]
    assert report["vehicles"][0]["numberOfInvoices"] == 1
    assert report["grandTotal"] == 1000.0
    assert report["startDate"] == "2025-03-01"

    everything = container.vehicle_service.finances(current_role=Role.HR, period="all-time", today=TODAY)
    assert everything["grandTotal"] == 6000.0
