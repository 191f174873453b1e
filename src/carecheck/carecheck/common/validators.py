from __future__ import annotations

from enum import Enum
from typing import Optional, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_enum(value: object, enum_cls: type[E], field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}") from None


def optional_coordinate(value: object, field_name: str, *, limit: float) -> Optional[float]:
    """Coerce an optional latitude/longitude; ``limit`` is the absolute bound."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if not -limit <= number <= limit:
        raise ValidationError(f"{field_name} out of range")
    return number


def optional_flag(value: object, field_name: str) -> bool:
    """JSON booleans, plus the usual string/int spellings from form posts."""
    if value is None or value == "":
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in {"true", "1", "yes"}:
        return True
    if text in {"false", "0", "no"}:
        return False
    raise ValidationError(f"{field_name} must be a boolean")


def require_max_length(value: str, field_name: str, *, limit: int) -> str:
    if len(value) > limit:
        raise ValidationError(f"{field_name} must be at most {limit} characters")
    return value
