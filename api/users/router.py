"""
User API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from core.responses import envelope, list_envelope
from core.validation import parse_id

from . import schemas, service

router = APIRouter(prefix="/users")


@router.get("")
async def list_users() -> dict:
    return list_envelope(await service.list_users())


@router.get("/search")
async def search_users(query: str | None = Query(default=None, max_length=500)) -> dict:
    return list_envelope(await service.search_users(query))


@router.get("/stats")
async def user_stats() -> dict:
    return envelope(await service.user_stats())


@router.get("/{user_id}")
async def get_user(user_id: str) -> dict:
    return envelope(await service.get_user(parse_id(user_id, "user")))


@router.get("/{user_id}/devices")
async def get_user_with_devices(user_id: str) -> dict:
    return envelope(await service.user_with_devices(parse_id(user_id, "user")))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(payload: schemas.UserCreateRequest) -> dict:
    row = await service.create_user(payload.model_dump(exclude_unset=True))
    return envelope(row, message="User created successfully")


@router.put("/{user_id}")
async def update_user(user_id: str, payload: schemas.UserUpdateRequest) -> dict:
    user_pk = parse_id(user_id, "user")
    row = await service.update_user(user_pk, payload.model_dump(exclude_unset=True))
    return envelope(row, message="User updated successfully")


@router.delete("/{user_id}")
async def delete_user(user_id: str) -> dict:
    row = await service.delete_user(parse_id(user_id, "user"))
    return envelope(row, message="User deleted successfully")
