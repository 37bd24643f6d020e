"""
Device persistence (raw SQL).

Read queries join the owning user so clients get `owner_name` and
`owner_email` without a second request.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from core import db
from core.patch import PatchField, build_bulk_update, build_update

from .status import DeviceStatus, status_side_effects

DEVICE_SELECT = """
        SELECT
          d.id,
          d.device_name,
          d.device_type,
          d.device_id,
          d.status,
          d.location,
          d.user_id,
          d.last_active,
          d.created_at,
          d.updated_at,
          u.name AS owner_name,
          u.email AS owner_email
        FROM devices d
        LEFT JOIN users u ON u.id = d.user_id
"""

DEVICE_PATCH_FIELDS = (
    PatchField("device_name"),
    PatchField("device_type"),
    PatchField("status", side_effects=status_side_effects),
    PatchField("location", nullable=True),
    PatchField("user_id", nullable=True),
)


async def list_devices() -> list[dict[str, Any]]:
    return await db.fetch_all(
        DEVICE_SELECT
        + """
        ORDER BY d.created_at DESC, d.id DESC
        """
    )


async def get_device(device_pk: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        DEVICE_SELECT
        + """
        WHERE d.id = $1
        """,
        device_pk,
    )


async def get_device_by_external_id(external_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        SELECT id, device_id
        FROM devices
        WHERE device_id = $1
        """,
        external_id,
    )


async def list_devices_by_status(status: DeviceStatus) -> list[dict[str, Any]]:
    return await db.fetch_all(
        DEVICE_SELECT
        + """
        WHERE d.status = $1
        ORDER BY d.last_active DESC NULLS LAST, d.id DESC
        """,
        status.value,
    )


async def list_devices_by_type(device_type: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        DEVICE_SELECT
        + """
        WHERE d.device_type = $1
        ORDER BY d.created_at DESC, d.id DESC
        """,
        device_type,
    )


async def list_devices_for_user(user_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT *
        FROM devices
        WHERE user_id = $1
        ORDER BY created_at DESC, id DESC
        """,
        user_id,
    )


async def search_devices(query: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        DEVICE_SELECT
        + """
        WHERE d.device_name ILIKE ('%' || $1 || '%')
           OR d.device_type ILIKE ('%' || $1 || '%')
           OR d.device_id ILIKE ('%' || $1 || '%')
           OR d.location ILIKE ('%' || $1 || '%')
        ORDER BY d.created_at DESC, d.id DESC
        """,
        query,
    )


async def list_recently_active(limit: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        DEVICE_SELECT
        + """
        WHERE d.status = $1
        ORDER BY d.last_active DESC NULLS LAST, d.id DESC
        LIMIT $2
        """,
        DeviceStatus.ACTIVE.value,
        limit,
    )


async def insert_device(
    *,
    device_name: str,
    device_type: str,
    external_id: str,
    status: DeviceStatus,
    location: str | None,
    user_id: int | None,
    touch_last_active: bool,
) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO devices (device_name, device_type, device_id, status, location, user_id, last_active)
        VALUES ($1, $2, $3, $4, $5, $6, CASE WHEN $7::boolean THEN now() ELSE NULL END)
        RETURNING *
        """,
        device_name,
        device_type,
        external_id,
        status.value,
        location,
        user_id,
        touch_last_active,
    )
    if row is None:
        raise RuntimeError("Failed to create device.")
    return row


async def update_device(device_pk: int, patch: dict[str, Any]) -> dict[str, Any] | None:
    statement = build_update(
        table="devices",
        record_id=device_pk,
        patch=patch,
        fields=DEVICE_PATCH_FIELDS,
    )
    return await db.fetch_one(statement.sql, *statement.args)


async def update_device_status(device_pk: int, status: DeviceStatus) -> dict[str, Any] | None:
    return await update_device(device_pk, {"status": status.value})


async def bulk_update_status(device_pks: Sequence[int], status: DeviceStatus) -> list[dict[str, Any]]:
    statement = build_bulk_update(
        table="devices",
        record_ids=device_pks,
        patch={"status": status.value},
        fields=DEVICE_PATCH_FIELDS,
    )
    return await db.fetch_all(statement.sql, *statement.args)


async def delete_device(device_pk: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        DELETE FROM devices
        WHERE id = $1
        RETURNING *
        """,
        device_pk,
    )


def _status_count_columns(suffix: str) -> str:
    # Enum values are constants, never client input.
    return ",\n          ".join(
        f"count(*) FILTER (WHERE status = '{status.value}') AS {status.value}{suffix}"
        for status in DeviceStatus
    )


async def device_summary() -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        SELECT
          count(*) AS total_devices,
          {_status_count_columns("_devices")},
          count(DISTINCT device_type) AS device_types,
          count(DISTINCT user_id) AS total_users
        FROM devices
        """
    )
    return row or {}


async def device_counts_by_type() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT
          device_type,
          count(*) AS count,
          {_status_count_columns("")}
        FROM devices
        GROUP BY device_type
        ORDER BY count DESC, device_type ASC
        """
    )


async def device_status_distribution() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT
          status,
          count(*) AS count,
          round(count(*) * 100.0 / sum(count(*)) OVER (), 2) AS percentage
        FROM devices
        GROUP BY status
        ORDER BY count DESC, status ASC
        """
    )
