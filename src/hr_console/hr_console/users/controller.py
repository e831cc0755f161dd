from __future__ import annotations

import logging

from flask import Flask, request, session

from ..common.decorators import login_required, roles_required
from ..common.http import audit, current_role, current_user_id, error_response, failure, json_body, ok, snake_keys
from ..common.pagination import parse_page_args
from ..common.validators import parse_int, require_bool
from ..core.constants import DEFAULT_UPCOMING_DAYS
from ..core.enums import ADMIN_ROLES, ActivityAction, ActivityModule
from ..core.exceptions import DomainError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    users = container.user_service
    profiles = container.profile_service

    def _audit(action, target_id=None, description=None, module=ActivityModule.USER):
        audit(container.activity_service, action, module, target_id=target_id, description=description)

    # -------- Auth --------
    @app.route("/api/users/auth", methods=["POST"], endpoint="auth_login")
    def auth_login():
        body = json_body()
        try:
            s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))
            session.clear()
            session.permanent = True
            session["user_id"] = s_user.user_id
            session["name"] = s_user.name
            session["role"] = s_user.role.value
            _audit(ActivityAction.LOGIN, s_user.user_id, f"{s_user.email} logged in", ActivityModule.AUTH)
            return ok(s_user.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to log in.")

    @app.route("/api/users/logout", methods=["POST"], endpoint="auth_logout")
    def auth_logout():
        if "user_id" in session:
            _audit(ActivityAction.LOGOUT, session.get("user_id"), module=ActivityModule.AUTH)
        session.clear()
        return ok(message="Logged out successfully.")

    @app.route("/api/users/register", methods=["POST"], endpoint="register_employee")
    @roles_required(*ADMIN_ROLES)
    def register_employee():
        body = snake_keys(json_body())
        try:
            user_id = users.register_employee(
                current_role=current_role(),
                name=body.pop("name", ""),
                email=body.pop("email", ""),
                password=body.pop("password", ""),
                role=body.pop("role", "normal") or "normal",
                fields=body,
            )
            _audit(ActivityAction.CREATE, user_id, "Registered employee")
            return ok(users.get_user(user_id).to_dict(), message="Employee registered.", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to register employee.")

    # -------- Own profile --------
    @app.route("/api/users/profile", methods=["GET"], endpoint="my_profile")
    @login_required
    def my_profile():
        try:
            profile = profiles.get_profile(current_role=current_role(), actor_id=current_user_id(), user_id=current_user_id())
            return ok(profile.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch profile.")

    @app.route("/api/users/personal-details", methods=["PUT"], endpoint="my_personal_details")
    @login_required
    def my_personal_details():
        try:
            details = profiles.update_personal_details(
                current_role=current_role(),
                actor_id=current_user_id(),
                user_id=current_user_id(),
                fields=snake_keys(json_body()),
            )
            _audit(ActivityAction.UPDATE, current_user_id(), "Updated personal details")
            return ok(details.to_dict(), message="Personal details updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update personal details.")

    @app.route("/api/users/contact-details", methods=["PUT"], endpoint="my_contact_details")
    @login_required
    def my_contact_details():
        try:
            details = profiles.update_contact_details(user_id=current_user_id(), fields=snake_keys(json_body()))
            return ok(details.to_dict(), message="Contact details updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update contact details.")

    @app.route("/api/users/education", methods=["PUT"], endpoint="my_education")
    @login_required
    def my_education():
        items = json_body().get("education") or []
        try:
            saved = profiles.replace_education(
                user_id=current_user_id(),
                items=[snake_keys(i) for i in items],
                today=container.clock().date(),
            )
            return ok([e.to_dict() for e in saved], message="Education updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update education.")

    @app.route("/api/users/emergency-contacts", methods=["PUT"], endpoint="my_emergency_contacts")
    @login_required
    def my_emergency_contacts():
        items = json_body().get("emergencyContacts") or []
        try:
            saved = profiles.replace_emergency_contacts(user_id=current_user_id(), items=[snake_keys(i) for i in items])
            return ok([c.to_dict() for c in saved], message="Emergency contacts updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update emergency contacts.")

    @app.route("/api/users/bank-details", methods=["PUT"], endpoint="my_bank_details")
    @login_required
    def my_bank_details():
        try:
            details = profiles.update_bank_details(user_id=current_user_id(), fields=snake_keys(json_body()))
            return ok(details.to_dict(), message="Bank details updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update bank details.")

    @app.route("/api/users/documents", methods=["POST"], endpoint="my_documents")
    @login_required
    def my_documents():
        try:
            saved = {}
            doc_type = request.form.get("docType")
            if doc_type:
                saved[doc_type] = profiles.upload_document(
                    user_id=current_user_id(), doc_type=doc_type, file=request.files.get("file")
                )
            else:
                # multipart field names double as document types
                for field_name, file in request.files.items():
                    saved[field_name] = profiles.upload_document(user_id=current_user_id(), doc_type=field_name, file=file)
            if not saved:
                raise ValidationError("No document file was provided.")
            return ok(saved, message="Documents uploaded.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to upload documents.")

    @app.route("/api/users/resume", methods=["POST"], endpoint="my_resume")
    @login_required
    def my_resume():
        try:
            path = profiles.upload_resume(user_id=current_user_id(), file=request.files.get("resume"))
            return ok({"resume": path}, message="Resume uploaded.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to upload resume.")

    @app.route("/api/users/profile-picture", methods=["POST"], endpoint="my_profile_picture")
    @login_required
    def my_profile_picture():
        try:
            path = profiles.upload_profile_picture(user_id=current_user_id(), file=request.files.get("profilePicture"))
            return ok({"profilePicture": path}, message="Profile picture updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to upload profile picture.")

    @app.route("/api/users/password", methods=["PUT"], endpoint="my_password")
    @login_required
    def my_password():
        body = json_body()
        try:
            profiles.update_password(
                user_id=current_user_id(),
                current_password=body.get("currentPassword", ""),
                new_password=body.get("newPassword", ""),
                confirm_password=body.get("confirmPassword", ""),
            )
            _audit(ActivityAction.PASSWORD_CHANGE, current_user_id(), "Changed own password", ActivityModule.AUTH)
            return ok(message="Password updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update password.")

    # -------- Employee management --------
    @app.route("/api/users/getAllUsers", methods=["GET"], endpoint="list_users")
    @login_required
    def list_users():
        try:
            page, limit = parse_page_args(request.args)
            result = users.list_users(
                search=request.args.get("search"),
                department=request.args.get("department"),
                job_title=request.args.get("jobTitle"),
                page=page,
                limit=limit,
            )
            include_salary = current_role() in ADMIN_ROLES
            return ok(**result.to_dict(lambda u: u.to_dict(include_salary=include_salary), key="users"))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch users.")

    @app.route("/api/users/managers", methods=["GET"], endpoint="list_managers")
    @login_required
    def list_managers():
        try:
            return ok([m.summary() | {"role": m.role.value} for m in users.list_managers()])
        except Exception:
            return failure("Failed to fetch managers.")

    @app.route("/api/users/<int:user_id>/details", methods=["GET"], endpoint="user_details")
    @login_required
    def user_details(user_id: int):
        try:
            profile = profiles.get_profile(current_role=current_role(), actor_id=current_user_id(), user_id=user_id)
            return ok(profile.to_dict(include_salary=current_role() in ADMIN_ROLES))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch user details.")

    @app.route("/api/users/<int:user_id>/personal-details", methods=["PUT"], endpoint="user_personal_details")
    @roles_required(*ADMIN_ROLES)
    def user_personal_details(user_id: int):
        try:
            details = profiles.update_personal_details(
                current_role=current_role(),
                actor_id=current_user_id(),
                user_id=user_id,
                fields=snake_keys(json_body()),
            )
            _audit(ActivityAction.UPDATE, user_id, "Updated personal details")
            return ok(details.to_dict(), message="Personal details updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update personal details.")

    @app.route("/api/users/<int:user_id>/salary-details", methods=["PUT"], endpoint="user_salary_details")
    @roles_required(*ADMIN_ROLES)
    def user_salary_details(user_id: int):
        try:
            salary = users.update_salary_details(
                current_role=current_role(), user_id=user_id, fields=snake_keys(json_body())
            )
            _audit(ActivityAction.UPDATE, user_id, "Updated salary details")
            return ok(salary.to_dict(), message="Salary details updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update salary details.")

    @app.route("/api/users/<int:user_id>/status", methods=["PATCH"], endpoint="user_status")
    @roles_required(*ADMIN_ROLES)
    def user_status(user_id: int):
        try:
            is_active = require_bool(json_body().get("isActive"), "isActive")
            users.set_status(current_role=current_role(), user_id=user_id, is_active=is_active)
            _audit(ActivityAction.STATUS_CHANGE, user_id, "Activated" if is_active else "Deactivated")
            return ok({"isActive": is_active}, message="Status updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update status.")

    @app.route("/api/users/<int:user_id>/reset-password", methods=["PUT"], endpoint="user_reset_password")
    @roles_required(*ADMIN_ROLES)
    def user_reset_password(user_id: int):
        try:
            users.reset_password(current_role=current_role(), user_id=user_id, new_password=json_body().get("newPassword", ""))
            _audit(ActivityAction.PASSWORD_CHANGE, user_id, "Password reset by HR")
            return ok(message="Password reset.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to reset password.")

    @app.route("/api/users/shift", methods=["PUT"], endpoint="user_shift")
    @roles_required(*ADMIN_ROLES)
    def user_shift():
        body = json_body()
        try:
            personal = users.update_shift(
                current_role=current_role(),
                user_id=parse_int(body.get("userId"), "User"),
                start=body.get("shiftStartTime", ""),
                end=body.get("shiftEndTime", ""),
            )
            _audit(ActivityAction.UPDATE, body.get("userId"), "Updated shift")
            return ok(personal.to_dict(), message="Shift updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update shift.")

    @app.route("/api/users/assign", methods=["POST"], endpoint="assign_manager")
    @roles_required(*ADMIN_ROLES)
    def assign_manager():
        body = json_body()
        try:
            user_id = parse_int(body.get("userId"), "User")
            users.assign_manager(
                current_role=current_role(),
                user_id=user_id,
                manager_id=parse_int(body.get("managerId"), "Manager"),
            )
            _audit(ActivityAction.UPDATE, user_id, f"Assigned manager {body.get('managerId')}")
            return ok(message="Manager assigned.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to assign manager.")

    @app.route("/api/users/unassign", methods=["POST"], endpoint="unassign_manager")
    @roles_required(*ADMIN_ROLES)
    def unassign_manager():
        try:
            user_id = parse_int(json_body().get("userId"), "User")
            users.unassign_manager(current_role=current_role(), user_id=user_id)
            _audit(ActivityAction.UPDATE, user_id, "Unassigned manager")
            return ok(message="Manager unassigned.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to unassign manager.")

    @app.route("/api/users/upcoming-birthdays", methods=["GET"], endpoint="upcoming_birthdays")
    @login_required
    def upcoming_birthdays():
        try:
            days = parse_int(request.args.get("days", DEFAULT_UPCOMING_DAYS), "Days")
            items = users.upcoming_birthdays(today=container.clock().date(), days=days)
            return ok([i.to_dict() for i in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch upcoming birthdays.")

    @app.route("/api/users/work-anniversaries", methods=["GET"], endpoint="work_anniversaries")
    @login_required
    def work_anniversaries():
        try:
            days = parse_int(request.args.get("days", DEFAULT_UPCOMING_DAYS), "Days")
            items = users.work_anniversaries(today=container.clock().date(), days=days)
            return ok([i.to_dict() for i in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch work anniversaries.")
