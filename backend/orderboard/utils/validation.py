from __future__ import annotations
"""Small validators shared by routes and services; all raise ValidationError (400)."""
from typing import Any, Iterable, List

from orderboard.errors import ValidationError


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises.
    """
    if new_status not in tuple(allowed):
        raise ValidationError(f"{field_name} invalid")
    return new_status


def require_string_list(value: Any, field_name: str) -> List[str]:
    if not isinstance(value, list) or any(not isinstance(v, (str, int, float)) and v is not None for v in value):
        raise ValidationError(f"{field_name} must be a list of strings")
    return ['' if v is None else str(v) for v in value]


__all__ = ['validate_status', 'require_string_list']
