"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.responses import envelope
from users import schemas as user_schemas

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: user_schemas.UserCreateRequest) -> dict:
    result = await service.register(payload.model_dump(exclude_unset=True))
    return envelope(result, message="User registered successfully")


@router.post("/login")
async def login(payload: schemas.LoginRequest) -> dict:
    result = await service.login(payload.model_dump(exclude_unset=True))
    return envelope(result, message="Login successful")


@router.get("/me")
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> dict:
    return envelope(current_user)


@router.put("/updatepassword")
async def update_password(
    payload: schemas.PasswordUpdateRequest,
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    result = await service.update_password(int(current_user["id"]), payload.model_dump(exclude_unset=True))
    return envelope(result, message="Password updated successfully")
