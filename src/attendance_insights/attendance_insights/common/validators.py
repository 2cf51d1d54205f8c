from __future__ import annotations

import re
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import DayGroup
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

_EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$")
_PHONE_RE = re.compile(r"^\+?[\d\s-]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot be more than {max_len} characters")
    return value


def require_email(value: str) -> str:
    value = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("Please add a valid email")
    return value


def require_phone(value: str) -> str:
    value = require_non_empty(value, "Phone number")
    if not _PHONE_RE.match(value):
        raise ValidationError("Please enter a valid phone number")
    return value


def require_date_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError("endDate must not be before startDate")


def parse_day_group(value: Optional[str], *, allow_admin_day: bool = False) -> Optional[DayGroup]:
    if value is None or value == "":
        return None
    try:
        group = DayGroup(value)
    except ValueError:
        raise ValidationError(f"Invalid day group: {value}") from None
    if group == DayGroup.ADMIN_DAY and not allow_admin_day:
        raise ValidationError("adminDay is not a valid day group here")
    return group


def parse_pagination(page: Optional[str], limit: Optional[str]) -> tuple[int, int]:
    """Page numbers start at 1; ``limit`` is clamped to ``MAX_PAGE_SIZE``."""
    try:
        page_n = int(page) if page else 1
        limit_n = int(limit) if limit else DEFAULT_PAGE_SIZE
    except ValueError:
        raise ValidationError("page and limit must be integers") from None
    if page_n < 1 or limit_n < 1:
        raise ValidationError("page and limit must be positive")
    return page_n, min(limit_n, MAX_PAGE_SIZE)


def require_iso_date(value: Optional[str], field_name: str) -> date:
    if not value:
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD)") from None
