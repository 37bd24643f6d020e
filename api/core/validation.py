"""
Shared, storage-free validators.

Feature validators (`users/validation.py`, `devices/validation.py`) compose
these and check rules in a fixed order: required fields first, then
length/format, then enumeration membership. The first failing rule raises
`ValidationError` with `details={"rule": ..., "field": ...}`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_provided(value: Any) -> bool:
    # Empty strings count as missing, like an absent key.
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def pick_provided(fields: Mapping[str, Any], names: Iterable[str]) -> dict[str, Any]:
    return {name: fields[name] for name in names if name in fields and is_provided(fields[name])}


def require_fields(fields: Mapping[str, Any], names: Iterable[str], message: str) -> None:
    for name in names:
        if not is_provided(fields.get(name)):
            raise ValidationError(message, details={"rule": "required", "field": name})


def require_any(fields: Mapping[str, Any], message: str) -> None:
    if not fields:
        raise ValidationError(message, details={"rule": "required", "field": None})


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={"rule": "format", "field": field})
    return value


def require_min_length(value: Any, min_length: int, *, field: str, message: str, trim: bool = True) -> str:
    text = _require_text(value, field)
    measured = text.strip() if trim else text
    if len(measured) < min_length:
        raise ValidationError(message, details={"rule": "min_length", "field": field})
    return text


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def require_email(value: Any, *, field: str = "email") -> str:
    text = _require_text(value, field).strip()
    if not EMAIL_PATTERN.match(text):
        raise ValidationError(
            "Please provide a valid email address",
            details={"rule": "format", "field": field},
        )
    return normalize_email(text)


def parse_positive_int(value: Any, *, field: str, message: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(message, details={"rule": "format", "field": field})
    if isinstance(value, int):
        number = value
    else:
        raw = str(value if value is not None else "").strip()
        # str.isdigit() also accepts non-ASCII digits such as "²", which int() rejects.
        if not (raw.isascii() and raw.isdigit()):
            raise ValidationError(message, details={"rule": "format", "field": field})
        number = int(raw)
    if number <= 0:
        raise ValidationError(message, details={"rule": "format", "field": field})
    return number


def parse_id(value: Any, label: str) -> int:
    """
    Path identifiers must be positive integers; anything else is rejected
    before a lookup is attempted.
    """
    return parse_positive_int(value, field="id", message=f"Invalid {label} ID")


def require_search_query(value: Any) -> str:
    query = str(value or "").strip()
    if not query:
        raise ValidationError("Search query is required", details={"rule": "required", "field": "query"})
    return query
