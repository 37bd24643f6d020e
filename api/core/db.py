"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI opens it on startup through
`connect_with_retry()` and closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every query borrows a connection with a bounded acquisition timeout and
returns it when done, whatever happens. Storage errors are translated into
the API error taxonomy here so feature code never sees asyncpg exceptions:
- unique / foreign-key violations -> ConflictError
- pool exhaustion -> BackendError (503)
- anything else from the driver -> BackendError (500)
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import config
from .errors import BackendError, ConflictError

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

# Driver-level failures that are not constraint violations.
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=config.pool_max_size(),
        command_timeout=config.command_timeout_s(),
        max_inactive_connection_lifetime=config.idle_timeout_s(),
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def statement_shape(sql: str, limit: int = 160) -> str:
    """
    Collapse whitespace and truncate. Used in logs instead of parameter values.
    """
    shape = " ".join(sql.split())
    if len(shape) <= limit:
        return shape
    return shape[: limit - 3] + "..."


@asynccontextmanager
async def connection() -> AsyncIterator[asyncpg.Connection]:
    """
    Borrow a pooled connection for one round trip and always give it back.
    """
    current = pool()
    timeout_s = config.acquire_timeout_s()
    try:
        conn = await current.acquire(timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        logger.error("db_acquire_timeout timeout_s=%s", timeout_s)
        raise BackendError("Database is busy, please try again later.", status_code=503) from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        logger.error("db_acquire_failed error=%s", type(exc).__name__)
        raise BackendError("Database is unavailable.", status_code=503) from exc

    try:
        yield conn
    finally:
        await current.release(conn)


async def _run(method: str, sql: str, args: tuple[Any, ...]) -> Any:
    started = time.perf_counter()
    async with connection() as conn:
        try:
            result = await getattr(conn, method)(sql, *args)
        except asyncpg.UniqueViolationError as exc:
            constraint = getattr(exc, "constraint_name", None)
            logger.warning(
                "query_conflict kind=unique constraint=%s statement=%s",
                constraint,
                statement_shape(sql),
            )
            raise ConflictError(
                "Duplicate value violates a unique constraint.",
                details={"kind": "unique", "constraint": constraint},
            ) from exc
        except asyncpg.ForeignKeyViolationError as exc:
            constraint = getattr(exc, "constraint_name", None)
            logger.warning(
                "query_conflict kind=foreign_key constraint=%s statement=%s",
                constraint,
                statement_shape(sql),
            )
            raise ConflictError(
                "Referenced record does not exist.",
                details={"kind": "foreign_key", "constraint": constraint},
            ) from exc
        except _DRIVER_ERRORS as exc:
            logger.exception("query_failed statement=%s args=%d", statement_shape(sql), len(args))
            raise BackendError("Database query failed.") from exc

    logger.debug(
        "query_ok statement=%s args=%d duration_ms=%.1f",
        statement_shape(sql),
        len(args),
        (time.perf_counter() - started) * 1000,
    )
    return result


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await _run("fetchrow", sql, args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await _run("fetch", sql, args)
    return [_record_to_dict(r) for r in rows]


async def execute(sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and return its status tag.
    """
    return await _run("execute", sql, args)


async def check_connection() -> bool:
    try:
        await init_pool()
        await fetch_one("SELECT 1 AS ok")
    except (BackendError, *_DRIVER_ERRORS) as exc:
        logger.warning("db_connect_failed error=%s", type(exc).__name__)
        await close_pool()
        return False
    return True


async def connect_with_retry(attempts: int | None = None, delay_s: float | None = None) -> None:
    """
    Open the pool before accepting traffic, retrying a fixed number of times.
    Raises RuntimeError when every attempt fails.
    """
    attempts = attempts or config.connect_retries()
    delay_s = config.connect_retry_delay_s() if delay_s is None else delay_s

    for attempt in range(1, attempts + 1):
        logger.info("db_connect_attempt attempt=%s of=%s", attempt, attempts)
        if await check_connection():
            status = await db_status()
            logger.info(
                "db_connected database=%s user=%s version=%s",
                status.get("database"),
                status.get("user"),
                status.get("version"),
            )
            return None
        if attempt < attempts:
            logger.info("db_connect_retry delay_s=%s", delay_s)
            await asyncio.sleep(delay_s)

    logger.error("db_connect_gave_up attempts=%s", attempts)
    raise RuntimeError(f"Could not connect to the database after {attempts} attempts.")


async def db_status() -> dict[str, Any]:
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        row = await fetch_one(
            """
            SELECT current_database() AS database,
                   current_user AS db_user,
                   version() AS version
            """
        )
    except (BackendError, RuntimeError) as exc:
        cause = exc.__cause__ or exc
        return {"connected": False, "error": str(cause), "timestamp": timestamp}

    row = row or {}
    current = pool()
    return {
        "connected": True,
        "timestamp": timestamp,
        "database": row.get("database"),
        "user": row.get("db_user"),
        "version": " ".join(str(row.get("version") or "").split()[:2]),
        "pool": {
            "size": current.get_size(),
            "idle": current.get_idle_size(),
            "max": current.get_max_size(),
        },
    }
