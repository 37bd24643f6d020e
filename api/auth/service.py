"""
Auth business logic.

Registration goes through the user service so it shares the same
validation and email-conflict rules as `POST /users`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from core.errors import AuthError, NotFoundError
from core.validation import require_fields
from users import repository as user_repository
from users import service as user_service
from users.validation import validate_password

from . import security

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def _public(user_row: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in user_row.items() if key != "password"}


def _token_for(user_row: Mapping[str, Any]) -> str:
    return security.build_access_token(user_id=int(user_row["id"]), email=str(user_row["email"]))


async def register(fields: Mapping[str, Any]) -> dict[str, Any]:
    user = await user_service.create_user(fields)
    return {"user": user, "token": _token_for(user)}


async def login(fields: Mapping[str, Any]) -> dict[str, Any]:
    require_fields(fields, ("email", "password"), "Please provide email and password")

    user_row = await user_repository.get_credentials_by_email(str(fields["email"]))
    if user_row is None:
        raise AuthError(INVALID_CREDENTIALS)
    if not security.verify_password(str(fields["password"]), str(user_row.get("password") or "")):
        logger.info("login_failed user_id=%s", user_row["id"])
        raise AuthError(INVALID_CREDENTIALS)

    return {"user": _public(user_row), "token": _token_for(user_row)}


async def get_user_from_access_token(access_token: str) -> dict[str, Any]:
    try:
        claims = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise AuthError(str(exc)) from exc

    # Deleted users keep a signature-valid token until it expires.
    user_row = await user_repository.get_user(claims.user_id)
    if user_row is None:
        raise AuthError("User not found.")
    return user_row


async def update_password(user_id: int, fields: Mapping[str, Any]) -> dict[str, Any]:
    require_fields(
        fields,
        ("current_password", "new_password"),
        "Please provide current_password and new_password",
    )
    new_password = validate_password(fields["new_password"], field="new_password")

    user_row = await user_repository.get_credentials_by_id(user_id)
    if user_row is None:
        raise NotFoundError("User not found")
    if not security.verify_password(str(fields["current_password"]), str(user_row.get("password") or "")):
        raise AuthError("Current password is incorrect")

    updated = await user_repository.update_password(user_id, security.hash_password(new_password))
    if updated is None:
        raise NotFoundError("User not found")
    logger.info("password_updated user_id=%s", user_id)
    return {"user": updated, "token": _token_for(updated)}
