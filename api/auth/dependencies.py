"""
Dependencies for routes that need a logged-in user.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Header

from core.errors import AuthError

from . import service

NOT_AUTHORIZED = "Not authorized to access this route. Please login."


def parse_bearer(authorization: str | None) -> str:
    """
    `Authorization: Bearer <token>` -> `<token>`. The scheme is case-insensitive;
    anything else, including a missing header, is a 401.
    """
    scheme, _, token = (authorization or "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthError(NOT_AUTHORIZED)
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return parse_bearer(authorization)


async def get_current_user(access_token: str = Depends(get_bearer_token)) -> dict[str, Any]:
    return await service.get_user_from_access_token(access_token)
