from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    """Trim ``value`` and check its length in characters."""
    v = (value or "").strip()
    if len(v) < min_len or len(v) > max_len:
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return v


def require_weekday(value: int) -> int:
    try:
        weekday = int(value)
    except (TypeError, ValueError):
        raise ValidationError("weekday must be an integer")
    if weekday < 0 or weekday > 6:
        raise ValidationError("weekday must be between 0 (Mon) and 6 (Sun)")
    return weekday
