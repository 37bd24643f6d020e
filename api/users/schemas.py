"""
User API request bodies.

Fields are optional at this level so that missing or empty values reach
`users/validation.py`, which reports them in a fixed rule order.
"""

from __future__ import annotations

from pydantic import BaseModel


class UserCreateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class UserUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
