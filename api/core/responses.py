"""
Response envelope shared by every endpoint:

    {"success": bool, "message"?: str, "count"?: int, "data"?: ..., "error"?: str}
"""

from __future__ import annotations

from typing import Any


def envelope(
    data: Any | None = None,
    *,
    message: str | None = None,
    count: int | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    if data is not None:
        body["data"] = data
    return body


def list_envelope(
    rows: list[dict[str, Any]],
    *,
    message: str | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    `extra` adds top-level context keys (the owning user, the filter value)
    next to `count` and `data`.
    """
    body = envelope(rows, message=message, count=len(rows))
    if extra:
        body.update(extra)
    return body


def error_envelope(message: str, *, error: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body
