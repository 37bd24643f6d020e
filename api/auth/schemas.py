"""
Auth API schemas (request bodies).
"""

from __future__ import annotations

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class PasswordUpdateRequest(BaseModel):
    current_password: str | None = None
    new_password: str | None = None
