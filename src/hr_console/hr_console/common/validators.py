from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_MONTHS = {
    name.lower(): index
    for index, name in enumerate(
        [
            "January",
            "February",
            "March",
            "April",
            "May",
            "June",
            "July",
            "August",
            "September",
            "October",
            "November",
            "December",
        ],
        start=1,
    )
}
MONTH_NAMES = {v: k.capitalize() for k, v in _MONTHS.items()}


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required.")
    return str(value).strip()


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters.")
    return value


def require_email(value: Optional[str], field_name: str = "Email") -> str:
    value = require_non_empty(value, field_name)
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} is not a valid email address.")
    return value.lower()


def parse_amount(value: Any, field_name: str) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number.")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number.")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number.")
    return amount


def require_non_negative(value: Any, field_name: str) -> Decimal:
    amount = parse_amount(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative.")
    return amount


def require_positive_amount(value: Any, field_name: str) -> Decimal:
    amount = parse_amount(value, field_name)
    if amount <= 0:
        raise ValidationError(f"{field_name} must be greater than zero.")
    return amount


def parse_date_field(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = require_non_empty(value, field_name)
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD).")


def parse_optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_date_field(value, field_name)


def parse_hhmm(value: Any, field_name: str) -> Optional[time]:
    if isinstance(value, time):
        return value
    v = (value or "").strip() if isinstance(value, str) else value
    if not v:
        return None
    try:
        return datetime.strptime(str(v)[:5], "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} must be a time (HH:MM).")


def parse_month(value: Any) -> int:
    """Accept 1-12 or an English month name."""

    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Month is required.")
    text = str(value).strip()
    if text.isdigit():
        month = int(text)
    else:
        month = _MONTHS.get(text.lower(), 0)
    if not 1 <= month <= 12:
        raise ValidationError("Month is not valid.")
    return month


def parse_year(value: Any) -> int:
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Year is not valid.")
    if not 2000 <= year <= 2100:
        raise ValidationError("Year is not valid.")
    return year


def parse_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not valid.")


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false.")
    return value
