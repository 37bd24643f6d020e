"""
User business logic.

Uniqueness of email is probed before writing, but the probe is racy: two
concurrent requests can both pass it. The unique index on `lower(email)` is
the real guard, and its violation is reported with the same ConflictError.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from auth import security
from core.errors import ConflictError, NotFoundError
from core.validation import require_search_query
from devices import repository as device_repository

from . import repository, validation

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already exists"


async def list_users() -> list[dict[str, Any]]:
    return await repository.list_users()


async def get_user(user_id: int) -> dict[str, Any]:
    row = await repository.get_user(user_id)
    if row is None:
        raise NotFoundError("User not found")
    return row


async def create_user(fields: Mapping[str, Any]) -> dict[str, Any]:
    accepted = validation.validate_user_create(fields)

    if await repository.get_user_by_email(accepted["email"]) is not None:
        raise ConflictError("User with this email already exists", details={"field": "email"})

    password_hash = security.hash_password(accepted["password"])
    try:
        row = await repository.insert_user(
            name=accepted["name"],
            email=accepted["email"],
            password_hash=password_hash,
        )
    except ConflictError as exc:
        raise ConflictError(EMAIL_TAKEN, details={"field": "email"}) from exc

    logger.info("user_created id=%s", row["id"])
    return row


async def update_user(user_id: int, fields: Mapping[str, Any]) -> dict[str, Any]:
    accepted = validation.validate_user_update(fields)
    await get_user(user_id)

    if "email" in accepted:
        other = await repository.get_user_by_email(accepted["email"])
        if other is not None and int(other["id"]) != user_id:
            raise ConflictError(EMAIL_TAKEN, details={"field": "email"})

    try:
        row = await repository.update_user(user_id, accepted)
    except ConflictError as exc:
        raise ConflictError(EMAIL_TAKEN, details={"field": "email"}) from exc

    # Deleted between the existence check and the update.
    if row is None:
        raise NotFoundError("User not found")
    logger.info("user_updated id=%s fields=%s", user_id, ",".join(sorted(accepted)))
    return row


async def delete_user(user_id: int) -> dict[str, Any]:
    row = await repository.delete_user(user_id)
    if row is None:
        raise NotFoundError("User not found")
    logger.info("user_deleted id=%s", user_id)
    return row


async def search_users(query: Any) -> list[dict[str, Any]]:
    return await repository.search_users(require_search_query(query))


async def user_stats() -> dict[str, Any]:
    row = await repository.user_stats()
    return {
        "total_users": int(row["total_users"]),
        "new_users_this_week": int(row["new_users_this_week"]),
        "new_users_this_month": int(row["new_users_this_month"]),
    }


async def user_with_devices(user_id: int) -> dict[str, Any]:
    user = dict(await get_user(user_id))
    devices = await device_repository.list_devices_for_user(user_id)
    user["devices"] = devices
    user["device_count"] = len(devices)
    return user
