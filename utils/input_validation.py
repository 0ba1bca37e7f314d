"""Input validation utilities shared by the route handlers."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from .errors import ValidationError

# Common validation patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# Largest value a 64-bit INTEGER column (and SQLite) can bind.
MAX_DB_INT = 2**63 - 1


def sanitize_string(value: Any, max_length: int = 255) -> str:
    """Sanitize and validate string input."""
    if not isinstance(value, str):
        value = str(value) if value is not None else ""

    # Remove null bytes and control characters
    value = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', value)

    return value.strip()[:max_length]


def optional_string(value: Any, max_length: int = 255) -> Optional[str]:
    cleaned = sanitize_string(value, max_length)
    return cleaned or None


def validate_email(email: str) -> bool:
    """Validate email format."""
    if not email or len(email) > 254:
        return False
    return bool(EMAIL_PATTERN.match(email))


def validate_positive_integer(value: Any, min_val: int = 1, max_val: int = 999999) -> Optional[int]:
    """Validate and convert to positive integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        int_val = int(value)
        if min_val <= int_val <= max_val:
            return int_val
    except (TypeError, ValueError):
        pass
    return None


def require_positive_integer(value: Any, field: str, *, default: int | None = None) -> int:
    if value in (None, "") and default is not None:
        return default
    parsed = validate_positive_integer(value)
    if parsed is None:
        raise ValidationError(f"{field} must be a positive integer", field=field)
    return parsed


def parse_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on", "y"}


def parse_decimal(value: Any, field: str) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)


def parse_date(value: Any, field: str) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", field=field)


def require_choice(value: Any, choices: Iterable[str], field: str) -> str:
    """Normalize an enum-like value to upper case and check membership."""
    allowed = tuple(choices)
    normalized = sanitize_string(value, 64).upper()
    if normalized not in allowed:
        raise ValidationError(f"{field} must be one of {', '.join(allowed)}", field=field)
    return normalized


def optional_choice(value: Any, choices: Iterable[str], field: str) -> Optional[str]:
    if value in (None, ""):
        return None
    return require_choice(value, choices, field)


def sanitize_sql_like_pattern(pattern: str) -> str:
    """Escape LIKE wildcards so user text matches literally (escape char: backslash)."""
    if not pattern:
        return ""

    pattern = pattern.replace('\\', '\\\\')
    pattern = pattern.replace('%', '\\%')
    pattern = pattern.replace('_', '\\_')

    return pattern
