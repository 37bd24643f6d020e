"""
User persistence (raw SQL).

Only the credential helpers select the `password` column; every other query
returns public columns.
"""

from __future__ import annotations

from typing import Any

from core import db
from core.patch import PatchField, build_update
from core.validation import normalize_email

USER_COLUMNS = "id, name, email, created_at, updated_at"

USER_PATCH_FIELDS = (
    PatchField("name"),
    PatchField("email"),
)


async def list_users() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        ORDER BY id DESC
        """
    )


async def get_user(user_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def user_exists(user_id: int) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM users
        WHERE id = $1
        """,
        user_id,
    )
    return row is not None


async def get_user_by_email(email: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_credentials_by_email(email: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}, password
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_credentials_by_id(user_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}, password
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def insert_user(*, name: str, email: str, password_hash: str) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (name, email, password)
        VALUES ($1, $2, $3)
        RETURNING {USER_COLUMNS}
        """,
        name,
        normalize_email(email),
        password_hash,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def update_user(user_id: int, patch: dict[str, Any]) -> dict[str, Any] | None:
    statement = build_update(
        table="users",
        record_id=user_id,
        patch=patch,
        fields=USER_PATCH_FIELDS,
        returning=USER_COLUMNS,
    )
    return await db.fetch_one(statement.sql, *statement.args)


async def update_password(user_id: int, password_hash: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE users
        SET password = $1,
            updated_at = now()
        WHERE id = $2
        RETURNING {USER_COLUMNS}
        """,
        password_hash,
        user_id,
    )


async def delete_user(user_id: int) -> dict[str, Any] | None:
    """
    Owned devices are detached by the `ON DELETE SET NULL` foreign key.
    """
    return await db.fetch_one(
        """
        DELETE FROM users
        WHERE id = $1
        RETURNING id, name, email
        """,
        user_id,
    )


async def search_users(query: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE name ILIKE ('%' || $1 || '%')
           OR email ILIKE ('%' || $1 || '%')
        ORDER BY created_at DESC, id DESC
        """,
        query,
    )


async def user_stats() -> dict[str, Any]:
    row = await db.fetch_one(
        """
        SELECT
          count(*) AS total_users,
          count(*) FILTER (WHERE created_at >= now() - INTERVAL '7 days') AS new_users_this_week,
          count(*) FILTER (WHERE created_at >= now() - INTERVAL '30 days') AS new_users_this_month
        FROM users
        """
    )
    return row or {"total_users": 0, "new_users_this_week": 0, "new_users_this_month": 0}
