from __future__ import annotations

import re
from typing import Any, Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Trim and lowercase; empty input becomes None."""
    v = (value or "").strip().lower()
    return v or None


def require_email(value: Optional[str], field_name: str) -> str:
    email = normalize_email(value)
    if not email:
        raise ValidationError(f"{field_name} is required")
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"{field_name} has an invalid format")
    return email


def optional_number(value: Any, field_name: str, *, minimum: float = 0.0) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum:g}")
    return number


def require_number(value: Any, field_name: str, *, minimum: float = 0.0) -> float:
    number = optional_number(value, field_name, minimum=minimum)
    if number is None:
        raise ValidationError(f"{field_name} is required")
    return number
