from __future__ import annotations

import io
from datetime import date, datetime

import pytest
from werkzeug.datastructures import FileStorage

from src.hr_console.hr_console.core.enums import AttendanceType, LeaveStatus, LeaveType, Role
from src.hr_console.hr_console.core.exceptions import AuthorizationError, ValidationError

EMPLOYEE = 4
MANAGER = 3
DECIDED_AT = datetime(2025, 3, 12, 10, 0)


def apply(container, user_id=EMPLOYEE, **overrides):
    data = dict(
        user_id=user_id,
        leave_type=LeaveType.CASUAL.value,
        start_date=date(2025, 3, 14),
        end_date=date(2025, 3, 17),
        reason="Family event",
    )
    data.update(overrides)
    return container.leave_service.apply(**data)


def test_apply_defaults_last_day_and_return_dates(container):
    app = container.leave_service.get(apply(container))

    assert app.status == LeaveStatus.PENDING
    assert app.total_days == 4
    assert app.last_day_to_work == date(2025, 3, 13)
    assert app.return_to_work == date(2025, 3, 18)


def test_apply_requires_reason(container):
    with pytest.raises(ValidationError, match="Reason is required"):
        apply(container, reason="  ")


def test_end_before_start_is_rejected(container):
    with pytest.raises(ValidationError, match="End date"):
        apply(container, start_date=date(2025, 3, 17), end_date=date(2025, 3, 14))


def test_sick_leave_needs_a_document(container):
    with pytest.raises(ValidationError, match="medical document"):
        apply(container, leave_type=LeaveType.SICK.value)


def test_sick_leave_with_document_is_stored(container):
    note = FileStorage(stream=io.BytesIO(b"%PDF-1.4"), filename="note.pdf", content_type="application/pdf")

    app = container.leave_service.get(apply(container, leave_type=LeaveType.SICK.value, handover_document=note))

    assert app.handover_document.startswith(f"leave-documents/{EMPLOYEE}/")


def test_probation_employee_cannot_take_annual_leave(container):
    with pytest.raises(ValidationError, match="permanent employees"):
        apply(container, user_id=5, leave_type=LeaveType.ANNUAL.value)


def test_probation_employee_can_take_unmetered_leave(container):
    assert apply(container, user_id=5, leave_type=LeaveType.WITHOUT_PAY.value)


def test_entitlement_counts_pending_and_approved(container):
    apply(container, start_date=date(2025, 3, 3), end_date=date(2025, 3, 9))

    with pytest.raises(ValidationError, match="3 day"):
        apply(container, start_date=date(2025, 4, 1), end_date=date(2025, 4, 4))


def test_overlapping_application_is_rejected(container):
    apply(container)

    with pytest.raises(ValidationError, match="overlap"):
        apply(container, leave_type=LeaveType.ANNUAL.value, start_date=date(2025, 3, 17), end_date=date(2025, 3, 19))


def test_rejected_application_does_not_block_new_dates(container):
    app_id = apply(container)
    container.leave_service.reject(current_role=Role.MANAGER, actor_id=MANAGER, application_id=app_id, now=DECIDED_AT)

    assert apply(container)


def test_manager_approval_writes_weekday_time_logs(container):
    app_id = apply(container)

    written = container.leave_service.approve(
        current_role=Role.MANAGER, actor_id=MANAGER, application_id=app_id, now=DECIDED_AT, comments="Enjoy"
    )

    assert written == 2
    logs = container.attendance_repo.list_for_user(EMPLOYEE)
    assert sorted(log.work_date for log in logs) == [date(2025, 3, 14), date(2025, 3, 17)]
    assert {log.type for log in logs} == {AttendanceType.CASUAL_LEAVE}
    assert all(log.leave_application_id == app_id for log in logs)

    app = container.leave_service.get(app_id)
    assert app.status == LeaveStatus.APPROVED
    assert app.decided_by == MANAGER
    assert app.comments == "Enjoy"


def test_approval_keeps_existing_time_logs(container):
    container.attendance_service.mark_absent(current_role=Role.HR, user_id=EMPLOYEE, work_date=date(2025, 3, 14))
    app_id = apply(container)

    written = container.leave_service.approve(current_role=Role.HR, actor_id=2, application_id=app_id, now=DECIDED_AT)

    assert written == 1
    kept = container.attendance_repo.get_for_user_and_date(EMPLOYEE, date(2025, 3, 14))
    assert kept.type == AttendanceType.ABSENT


def test_only_the_employees_manager_or_admin_decides(container):
    app_id = apply(container)

    with pytest.raises(AuthorizationError):
        container.leave_service.approve(current_role=Role.NORMAL, actor_id=5, application_id=app_id, now=DECIDED_AT)

    other_manager_app = apply(container, user_id=5, leave_type=LeaveType.WITHOUT_PAY.value)
    with pytest.raises(AuthorizationError):
        container.leave_service.approve(
            current_role=Role.MANAGER, actor_id=MANAGER, application_id=other_manager_app, now=DECIDED_AT
        )


def test_decided_application_cannot_be_decided_again(container):
    app_id = apply(container)
    service = container.leave_service
    service.approve(current_role=Role.MANAGER, actor_id=MANAGER, application_id=app_id, now=DECIDED_AT)

    with pytest.raises(ValidationError, match="pending"):
        service.approve(current_role=Role.MANAGER, actor_id=MANAGER, application_id=app_id, now=DECIDED_AT)
    with pytest.raises(ValidationError, match="pending"):
        service.reject(current_role=Role.HR, actor_id=2, application_id=app_id, now=DECIDED_AT)


def test_balances_count_approved_days_only(container):
    service = container.leave_service
    app_id = apply(container)
    apply(container, start_date=date(2025, 4, 1), end_date=date(2025, 4, 2))
    service.approve(current_role=Role.HR, actor_id=2, application_id=app_id, now=DECIDED_AT)

    balances = {b.leave_type: b for b in service.balances(user_id=EMPLOYEE, year=2025)}

    assert balances[LeaveType.CASUAL].used == 4
    assert balances[LeaveType.CASUAL].available == 6
    assert balances[LeaveType.SICK].to_dict() == {"type": "Sick Leave", "total": 8, "used": 0, "available": 8}


def test_assigned_list_is_scoped_to_the_managers_team(container):
    apply(container)
    apply(container, user_id=5, leave_type=LeaveType.WITHOUT_PAY.value)
    service = container.leave_service

    team = service.list_assigned(current_role=Role.MANAGER, actor_id=MANAGER)
    everyone = service.list_assigned(current_role=Role.HR, actor_id=2)

    assert {a.user_id for a in team} == {EMPLOYEE}
    assert len(everyone) == 2
    with pytest.raises(AuthorizationError):
        service.list_assigned(current_role=Role.NORMAL, actor_id=EMPLOYEE)


def test_hr_edit_recomputes_days_and_rejects_decided(container):
    service = container.leave_service
    app_id = apply(container)

    edited = service.edit(current_role=Role.HR, application_id=app_id, end_date=date(2025, 3, 18))
    assert edited.total_days == 5
    assert edited.return_to_work == date(2025, 3, 19)

    with pytest.raises(AuthorizationError):
        service.edit(current_role=Role.MANAGER, application_id=app_id, reason="x")

    service.reject(current_role=Role.HR, actor_id=2, application_id=app_id, now=DECIDED_AT)
    with pytest.raises(ValidationError):
        service.edit(current_role=Role.HR, application_id=app_id, reason="Changed")


def test_hr_edit_counts_entitlement_without_the_edited_application(container):
    service = container.leave_service
    app_id = apply(container)

    assert service.edit(current_role=Role.HR, application_id=app_id, end_date=date(2025, 3, 23)).total_days == 10
    with pytest.raises(ValidationError, match="Insufficient Casual Leave balance: 10 day"):
        service.edit(current_role=Role.HR, application_id=app_id, end_date=date(2025, 5, 30))


def test_hr_edit_keeps_standard_leaves_for_permanent_employees(container):
    app_id = apply(container, user_id=5, leave_type=LeaveType.WITHOUT_PAY.value)

    with pytest.raises(ValidationError, match="permanent employees"):
        container.leave_service.edit(current_role=Role.HR, application_id=app_id, leave_type=LeaveType.ANNUAL.value)
    assert container.leave_service.get(app_id).leave_type == LeaveType.WITHOUT_PAY


def test_hr_edit_to_sick_leave_needs_a_document(container):
    service = container.leave_service
    app_id = apply(container)

    with pytest.raises(ValidationError, match="medical document"):
        service.edit(current_role=Role.HR, application_id=app_id, leave_type=LeaveType.SICK.value)

    note = FileStorage(stream=io.BytesIO(b"%PDF-1.4"), filename="note.pdf", content_type="application/pdf")
    sick_id = apply(
        container,
        leave_type=LeaveType.SICK.value,
        start_date=date(2025, 4, 7),
        end_date=date(2025, 4, 8),
        handover_document=note,
    )
    assert service.edit(current_role=Role.HR, application_id=sick_id, end_date=date(2025, 4, 9)).total_days == 3
