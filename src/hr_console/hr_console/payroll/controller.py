from __future__ import annotations

import logging

from flask import Flask, request, send_file

from ..common.decorators import login_required, roles_required
from ..common.http import audit, current_role, current_user_id, error_response, failure, json_body, ok, snake_keys
from ..common.pagination import parse_page_args
from ..common.validators import parse_month, parse_year
from ..core.enums import ADMIN_ROLES, ActivityAction, ActivityModule
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)

_XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _period(source, *, required: bool = True) -> tuple:
    month, year = source.get("month"), source.get("year")
    if not required and not month and not year:
        return None, None
    return parse_month(month), parse_year(year)


def _edit_fields(body: dict) -> dict:
    """Accept nested earnings/deductions or flat camelCase fields."""

    fields = snake_keys({k: v for k, v in body.items() if k not in ("earnings", "deductions", "extraPayments")})
    fields.update(snake_keys(body.get("earnings") or {}))
    fields.update(snake_keys(body.get("deductions") or {}))
    return fields


def register(app: Flask, container: Container) -> None:
    payroll = container.payroll_service

    def _audit(action, target_id=None, description=None):
        audit(container.activity_service, action, ActivityModule.PAYROLL, target_id=target_id, description=description)

    @app.route("/api/payroll", methods=["GET"], endpoint="list_payrolls")
    @roles_required(*ADMIN_ROLES)
    def list_payrolls():
        try:
            month, year = _period(request.args, required=False)
            page, limit = parse_page_args(request.args)
            result = payroll.list(
                current_role=current_role(),
                month=month,
                year=year,
                status=request.args.get("status"),
                search=request.args.get("search"),
                department=request.args.get("department"),
                page=page,
                limit=limit,
            )
            return ok(**result.to_dict(lambda r: r.to_dict(), key="payrolls"))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch payrolls.")

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="generate_payroll")
    @roles_required(*ADMIN_ROLES)
    def generate_payroll():
        try:
            month, year = _period(json_body())
            result = payroll.generate(current_role=current_role(), month=month, year=year)
            _audit(
                ActivityAction.PAYROLL_GENERATE,
                description=f"{month:02d}/{year}: {len(result['created'])} created, {len(result['skipped'])} skipped",
            )
            return ok(result, message=f"Generated {len(result['created'])} payroll record(s).", status=201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to generate payroll.")

    @app.route("/api/payroll/process", methods=["POST"], endpoint="process_payroll")
    @roles_required(*ADMIN_ROLES)
    def process_payroll():
        try:
            month, year = _period(json_body())
            count = payroll.process(current_role=current_role(), month=month, year=year, now=container.clock())
            _audit(ActivityAction.PAYROLL_PROCESS, description=f"{month:02d}/{year}: {count} processed")
            return ok({"processed": count}, message=f"Processed {count} payroll record(s).")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to process payroll.")

    @app.route("/api/payroll/summary", methods=["GET"], endpoint="payroll_summary")
    @roles_required(*ADMIN_ROLES)
    def payroll_summary():
        try:
            month, year = _period(request.args)
            return ok(payroll.summary(current_role=current_role(), month=month, year=year))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch payroll summary.")

    @app.route("/api/payroll/finance", methods=["GET"], endpoint="payroll_finance")
    @roles_required(*ADMIN_ROLES)
    def payroll_finance():
        try:
            result = payroll.finance(
                current_role=current_role(),
                period=request.args.get("period", "all-time"),
                today=container.clock().date(),
            )
            return ok(result.pop("data"), **result)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch payroll finance.")

    @app.route("/api/payroll/export", methods=["GET"], endpoint="export_payroll")
    @roles_required(*ADMIN_ROLES)
    def export_payroll():
        try:
            month, year = _period(request.args, required=False)
            output = payroll.export(current_role=current_role(), month=month, year=year)
            stamp = f"{year}_{month:02d}" if month else container.clock().strftime("%Y%m%d")
            return send_file(
                output,
                download_name=f"payroll_{stamp}.xlsx",
                as_attachment=True,
                mimetype=_XLSX_MIMETYPE,
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to export payroll.")

    @app.route("/api/payroll/processed/user/<int:user_id>", methods=["GET"], endpoint="user_salary_slips")
    @login_required
    def user_salary_slips(user_id: int):
        try:
            items = payroll.processed_for_user(current_role=current_role(), actor_id=current_user_id(), user_id=user_id)
            return ok([r.to_dict() for r in items])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch salary slips.")

    @app.route("/api/payroll/<int:payroll_id>", methods=["GET"], endpoint="payroll_detail")
    @login_required
    def payroll_detail(payroll_id: int):
        try:
            record = payroll.get(current_role=current_role(), actor_id=current_user_id(), payroll_id=payroll_id)
            return ok(record.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to fetch payroll record.")

    @app.route("/api/payroll/<int:payroll_id>", methods=["PATCH"], endpoint="update_payroll")
    @roles_required(*ADMIN_ROLES)
    def update_payroll(payroll_id: int):
        body = json_body()
        try:
            record = payroll.update(
                current_role=current_role(),
                payroll_id=payroll_id,
                fields=_edit_fields(body),
                extra_payments=body.get("extraPayments"),
            )
            _audit(ActivityAction.PAYROLL_UPDATE, payroll_id, f"Net salary {record.net_salary}")
            return ok(record.to_dict(), message="Payroll record updated.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to update payroll record.")

    @app.route("/api/payroll/<int:payroll_id>", methods=["DELETE"], endpoint="delete_payroll")
    @roles_required(*ADMIN_ROLES)
    def delete_payroll(payroll_id: int):
        try:
            payroll.delete(current_role=current_role(), payroll_id=payroll_id)
            _audit(ActivityAction.DELETE, payroll_id, "Payroll record deleted")
            return ok(message="Payroll record deleted.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to delete payroll record.")

    @app.route("/api/payroll/<int:payroll_id>/paid", methods=["POST"], endpoint="mark_payroll_paid")
    @roles_required(*ADMIN_ROLES)
    def mark_payroll_paid(payroll_id: int):
        try:
            record = payroll.mark_paid(current_role=current_role(), payroll_id=payroll_id)
            _audit(ActivityAction.STATUS_CHANGE, payroll_id, "Marked paid")
            return ok(record.to_dict(), message="Payroll record marked as paid.")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return failure("Failed to mark payroll as paid.")
