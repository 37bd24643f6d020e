"""
Device API request bodies.

`location` and `user_id` may be sent as an explicit null (clear / detach),
which is different from leaving the key out; routers forward
`model_dump(exclude_unset=True)` so that distinction survives.
"""

from __future__ import annotations

from pydantic import BaseModel


class DeviceCreateRequest(BaseModel):
    device_name: str | None = None
    device_type: str | None = None
    device_id: str | None = None
    status: str | None = None
    location: str | None = None
    user_id: int | None = None


class DeviceUpdateRequest(BaseModel):
    device_name: str | None = None
    device_type: str | None = None
    status: str | None = None
    location: str | None = None
    user_id: int | None = None


class StatusUpdateRequest(BaseModel):
    status: str | None = None


class BulkStatusUpdateRequest(BaseModel):
    device_ids: list[int] | None = None
    status: str | None = None
