"""
Device API endpoints.

Fixed paths (`/stats`, `/search`, `/recent`, `/bulk-status`, ...) are
declared before `/{device_id}` so they are not captured by it.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from core.responses import envelope, list_envelope
from core.validation import parse_id

from . import aggregation, schemas, service

router = APIRouter(prefix="/devices")


@router.get("")
async def list_devices() -> dict:
    return list_envelope(await service.list_devices())


@router.get("/stats")
async def device_stats() -> dict:
    return envelope(await aggregation.device_stats())


@router.get("/search")
async def search_devices(query: str | None = Query(default=None, max_length=500)) -> dict:
    return list_envelope(await service.search_devices(query))


@router.get("/recent")
async def recently_active(limit: int = Query(default=service.DEFAULT_RECENT_LIMIT, ge=1, le=100)) -> dict:
    return list_envelope(await service.recently_active(limit))


@router.get("/status/{device_status}")
async def devices_by_status(device_status: str) -> dict:
    return list_envelope(await service.devices_by_status(device_status))


@router.get("/user/{user_id}")
async def devices_by_user(user_id: str) -> dict:
    owner, rows = await service.devices_by_user(parse_id(user_id, "user"))
    return list_envelope(rows, extra={"user": owner})


@router.get("/type/{device_type}")
async def devices_by_type(device_type: str) -> dict:
    return list_envelope(await service.devices_by_type(device_type), extra={"device_type": device_type})


@router.patch("/bulk-status")
async def bulk_update_status(payload: schemas.BulkStatusUpdateRequest) -> dict:
    new_status, rows = await service.bulk_update_status(payload.model_dump(exclude_unset=True))
    return list_envelope(rows, message=f"{len(rows)} device(s) updated to '{new_status.value}'")


@router.get("/{device_id}")
async def get_device(device_id: str) -> dict:
    return envelope(await service.get_device(parse_id(device_id, "device")))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_device(payload: schemas.DeviceCreateRequest) -> dict:
    row = await service.create_device(payload.model_dump(exclude_unset=True))
    return envelope(row, message="Device created successfully")


@router.put("/{device_id}")
async def update_device(device_id: str, payload: schemas.DeviceUpdateRequest) -> dict:
    device_pk = parse_id(device_id, "device")
    row = await service.update_device(device_pk, payload.model_dump(exclude_unset=True))
    return envelope(row, message="Device updated successfully")


@router.patch("/{device_id}/status")
async def update_device_status(device_id: str, payload: schemas.StatusUpdateRequest) -> dict:
    device_pk = parse_id(device_id, "device")
    row = await service.update_device_status(device_pk, payload.model_dump(exclude_unset=True))
    return envelope(row, message=f"Device status updated to '{row['status']}'")


@router.delete("/{device_id}")
async def delete_device(device_id: str) -> dict:
    row = await service.delete_device(parse_id(device_id, "device"))
    return envelope(row, message="Device deleted successfully")
