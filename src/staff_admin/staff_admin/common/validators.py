from __future__ import annotations

from ..core.exceptions import BadRequest


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadRequest(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise BadRequest(f"{field_name} must be at least {min_len} characters long")
    return value
