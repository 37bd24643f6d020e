"""
Device business logic.

Same probe-then-write pattern as users: `device_id` uniqueness and the owner
reference are checked up front for a friendly error, and the storage
constraints (unique `device_id`, `user_id` foreign key) remain the backstop.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from core.errors import ConflictError, NotFoundError
from core.validation import require_search_query
from users import repository as user_repository

from . import repository, validation
from .status import DeviceStatus, transition

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 10


def _translate_conflict(exc: ConflictError) -> ConflictError:
    if (exc.details or {}).get("kind") == "foreign_key":
        return ConflictError("Invalid user_id", details={"field": "user_id"})
    return ConflictError("Device ID already exists", details={"field": "device_id"})


async def _require_owner(user_id: int) -> None:
    if not await user_repository.user_exists(user_id):
        raise ConflictError("User not found", details={"field": "user_id"})


async def list_devices() -> list[dict[str, Any]]:
    return await repository.list_devices()


async def get_device(device_pk: int) -> dict[str, Any]:
    row = await repository.get_device(device_pk)
    if row is None:
        raise NotFoundError("Device not found")
    return row


async def devices_by_status(raw_status: Any) -> list[dict[str, Any]]:
    return await repository.list_devices_by_status(DeviceStatus.parse(raw_status))


async def devices_by_type(device_type: str) -> list[dict[str, Any]]:
    return await repository.list_devices_by_type(device_type)


async def devices_by_user(user_id: int) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    """
    Returns the owner together with their devices.
    """
    user = await user_repository.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user, await repository.list_devices_for_user(user_id)


async def search_devices(query: Any) -> list[dict[str, Any]]:
    return await repository.search_devices(require_search_query(query))


async def recently_active(limit: int = DEFAULT_RECENT_LIMIT) -> list[dict[str, Any]]:
    return await repository.list_recently_active(limit)


async def create_device(fields: Mapping[str, Any]) -> dict[str, Any]:
    accepted = validation.validate_device_create(fields)

    if await repository.get_device_by_external_id(accepted["device_id"]) is not None:
        raise ConflictError("Device with this ID already exists", details={"field": "device_id"})
    if accepted["user_id"] is not None:
        await _require_owner(accepted["user_id"])

    status: DeviceStatus = accepted["status"]
    try:
        row = await repository.insert_device(
            device_name=accepted["device_name"],
            device_type=accepted["device_type"],
            external_id=accepted["device_id"],
            status=status,
            location=accepted["location"],
            user_id=accepted["user_id"],
            touch_last_active=transition(status).refreshes_last_active,
        )
    except ConflictError as exc:
        raise _translate_conflict(exc) from exc

    logger.info("device_created id=%s device_id=%s status=%s", row["id"], row["device_id"], status.value)
    return row


async def update_device(device_pk: int, fields: Mapping[str, Any]) -> dict[str, Any]:
    patch = validation.validate_device_update(fields)
    await get_device(device_pk)

    if patch.get("user_id") is not None:
        await _require_owner(patch["user_id"])

    try:
        row = await repository.update_device(device_pk, patch)
    except ConflictError as exc:
        raise _translate_conflict(exc) from exc

    if row is None:
        raise NotFoundError("Device not found")
    logger.info("device_updated id=%s fields=%s", device_pk, ",".join(sorted(patch)))
    return row


async def update_device_status(device_pk: int, fields: Mapping[str, Any]) -> dict[str, Any]:
    status = validation.validate_status_update(fields)
    row = await repository.update_device_status(device_pk, status)
    if row is None:
        raise NotFoundError("Device not found")
    logger.info("device_status_updated id=%s status=%s", device_pk, status.value)
    return row


async def bulk_update_status(fields: Mapping[str, Any]) -> tuple[DeviceStatus, list[dict[str, Any]]]:
    """
    Unknown ids are skipped; the returned rows are exactly the ones changed.
    """
    device_pks, status = validation.validate_bulk_status_update(fields)
    rows = await repository.bulk_update_status(device_pks, status)
    logger.info(
        "device_status_bulk_updated requested=%s updated=%s status=%s",
        len(device_pks),
        len(rows),
        status.value,
    )
    return status, rows


async def delete_device(device_pk: int) -> dict[str, Any]:
    row = await repository.delete_device(device_pk)
    if row is None:
        raise NotFoundError("Device not found")
    logger.info("device_deleted id=%s", device_pk)
    return row
