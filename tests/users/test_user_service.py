from __future__ import annotations

from datetime import date

import pytest

from src.hr_console.hr_console.core.enums import JobStatus, Role
from src.hr_console.hr_console.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)

from conftest import PASSWORD, make_user

TODAY = date(2025, 3, 12)


def test_login_returns_session_user(container):
    s_user = container.auth_service.authenticate("user4@hrconsole.local", PASSWORD)

    assert s_user.user_id == 4
    assert s_user.role == Role.NORMAL
    assert s_user.to_dict()["name"] == "Eve Employee"


def test_login_rejects_wrong_password_and_unknown_email(container):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("user4@hrconsole.local", "wrong-password")
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("nobody@hrconsole.local", PASSWORD)


def test_inactive_user_cannot_log_in(make_container):
    container = make_container(users=[make_user(9, is_active=False)])

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("user9@hrconsole.local", PASSWORD)


def test_register_employee(container):
    service = container.user_service

    user_id = service.register_employee(
        current_role=Role.HR,
        name="New Hire",
        email="New.Hire@Example.com",
        password="welcome1",
        fields={"department": "Sales", "job_status": "Probation", "basic_salary": "60000", "manager_id": 3},
    )

    user = service.get_user(user_id)
    assert user.email == "new.hire@example.com"
    assert user.personal.job_status == JobStatus.PROBATION
    assert user.salary.basic_salary == 60000
    assert user.manager_id == 3
    assert container.auth_service.authenticate("new.hire@example.com", "welcome1").user_id == user_id


def test_register_rejects_duplicates_and_bad_input(container):
    service = container.user_service
    base = dict(current_role=Role.HR, name="Dup", password="welcome1")

    with pytest.raises(ValidationError, match="already exists"):
        service.register_employee(email="user4@hrconsole.local", **base)
    with pytest.raises(ValidationError, match="at least 6"):
        service.register_employee(**{**base, "email": "a@b.co", "password": "123"})
    with pytest.raises(ValidationError, match="SuperAdmin"):
        service.register_employee(email="a@b.co", role="SuperAdmin", **base)
    with pytest.raises(ValidationError, match="cannot act as a manager"):
        service.register_employee(email="a@b.co", fields={"manager_id": 5}, **base)
    with pytest.raises(AuthorizationError):
        service.register_employee(**{**base, "current_role": Role.MANAGER, "email": "a@b.co"})


def test_update_password(container):
    profiles = container.profile_service

    with pytest.raises(ValidationError, match="incorrect"):
        profiles.update_password(user_id=4, current_password="nope", new_password="newpass1", confirm_password="newpass1")
    with pytest.raises(ValidationError, match="do not match"):
        profiles.update_password(user_id=4, current_password=PASSWORD, new_password="newpass1", confirm_password="newpass2")

    profiles.update_password(user_id=4, current_password=PASSWORD, new_password="newpass1", confirm_password="newpass1")

    assert container.auth_service.authenticate("user4@hrconsole.local", "newpass1").user_id == 4


def test_employee_edits_only_gender_and_birth_date(container):
    details = container.profile_service.update_personal_details(
        current_role=Role.NORMAL,
        actor_id=4,
        user_id=4,
        fields={"gender": "Female", "date_of_birth": "1995-06-01", "department": "Finance", "job_status": "Probation"},
    )

    assert details.gender == "Female"
    assert details.date_of_birth == date(1995, 6, 1)
    assert details.department == "Engineering"
    assert details.job_status == JobStatus.PERMANENT


def test_employee_cannot_edit_someone_else(container):
    with pytest.raises(AuthorizationError):
        container.profile_service.update_personal_details(
            current_role=Role.NORMAL, actor_id=4, user_id=5, fields={"gender": "Male"}
        )


def test_manager_can_view_team_profile(container):
    profile = container.profile_service.get_profile(current_role=Role.MANAGER, actor_id=3, user_id=4)

    assert profile.user.id == 4
    with pytest.raises(AuthorizationError):
        container.profile_service.get_profile(current_role=Role.MANAGER, actor_id=3, user_id=5)


def test_bank_details_validate_iban(container):
    profiles = container.profile_service
    fields = {"bank_name": "Bank", "account_title": "Eve", "account_number": "123"}

    saved = profiles.update_bank_details(user_id=4, fields={**fields, "iban_number": "pk36scbl0000001123456702"})
    assert saved.iban_number == "PK36SCBL0000001123456702"

    with pytest.raises(ValidationError, match="IBAN"):
        profiles.update_bank_details(user_id=4, fields={**fields, "iban_number": "PK-36"})


def test_education_year_range(container):
    with pytest.raises(ValidationError, match="Year of completion"):
        container.profile_service.replace_education(
            user_id=4, items=[{"institute": "Uni", "degree": "BSc", "year_of_completion": 1900}], today=TODAY
        )


def test_assign_manager_rules(container):
    service = container.user_service

    with pytest.raises(ValidationError, match="themselves"):
        service.assign_manager(current_role=Role.HR, user_id=3, manager_id=3)
    with pytest.raises(NotFoundError):
        service.assign_manager(current_role=Role.HR, user_id=5, manager_id=42)

    service.assign_manager(current_role=Role.HR, user_id=5, manager_id=3)
    assert service.get_user(5).manager_id == 3


def test_super_admin_cannot_be_deactivated(container):
    with pytest.raises(ValidationError):
        container.user_service.set_status(current_role=Role.HR, user_id=1, is_active=False)

    container.user_service.set_status(current_role=Role.HR, user_id=4, is_active=False)
    assert container.user_service.get_user(4).is_active is False


def test_list_users_filters_and_paginates(container):
    page = container.user_service.list_users(department="Engineering", page=1, limit=2)

    assert page.total_pages == 3
    assert len(page.items) == 2
    assert [u.id for u in container.user_service.list_users(search="eve").items] == [4]
    assert container.user_service.list_users(department="Sales").total == 0


def test_upcoming_birthdays_and_anniversaries(make_container):
    container = make_container(
        users=[
            make_user(1, name="Soon", date_of_birth=date(1990, 3, 20), joining_date=date(2020, 3, 15)),
            make_user(2, name="Leap", date_of_birth=date(1992, 2, 29)),
            make_user(3, name="Later", date_of_birth=date(1990, 6, 1), joining_date=date(2025, 3, 1)),
            make_user(4, name="Gone", date_of_birth=date(1990, 3, 13), is_active=False),
        ]
    )
    service = container.user_service

    birthdays = service.upcoming_birthdays(today=TODAY, days=30)
    anniversaries = service.work_anniversaries(today=TODAY, days=30)

    assert [(b.user.name, b.days_until) for b in birthdays] == [("Soon", 8)]
    assert [(a.user.name, a.years) for a in anniversaries] == [("Soon", 5)]
    assert service.upcoming_birthdays(today=date(2025, 2, 27), days=3)[0].on == date(2025, 2, 28)
