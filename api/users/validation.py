"""
User input rules.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from auth.security import BCRYPT_MAX_BYTES
from core.errors import ValidationError
from core.validation import (
    pick_provided,
    require_any,
    require_email,
    require_fields,
    require_min_length,
)

NAME_MIN_LENGTH = 2
PASSWORD_MIN_LENGTH = 6


def validate_name(value: Any) -> str:
    return require_min_length(
        value,
        NAME_MIN_LENGTH,
        field="name",
        message=f"Name must be at least {NAME_MIN_LENGTH} characters long",
    ).strip()


def validate_password(value: Any, *, field: str = "password") -> str:
    # Length is measured before hashing and without trimming.
    password = require_min_length(
        value,
        PASSWORD_MIN_LENGTH,
        field=field,
        message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
        trim=False,
    )
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(
            f"Password must be at most {BCRYPT_MAX_BYTES} bytes long",
            details={"rule": "max_length", "field": field},
        )
    return password


def validate_user_create(fields: Mapping[str, Any]) -> dict[str, str]:
    require_fields(fields, ("name", "email", "password"), "Please provide name, email, and password")
    return {
        "name": validate_name(fields["name"]),
        "email": require_email(fields["email"]),
        "password": validate_password(fields["password"]),
    }


def validate_user_update(fields: Mapping[str, Any]) -> dict[str, str]:
    """
    Password is not updatable here; it is ignored if sent.
    """
    provided = pick_provided(fields, ("name", "email"))
    require_any(provided, "Please provide at least name or email to update")

    accepted: dict[str, str] = {}
    if "name" in provided:
        accepted["name"] = validate_name(provided["name"])
    if "email" in provided:
        accepted["email"] = require_email(provided["email"])
    return accepted
