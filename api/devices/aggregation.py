"""
Device statistics.

Three independent read-only queries composed into one response. They are
not run in a shared transaction, so under concurrent writes the numbers may
describe slightly different instants.
"""

from __future__ import annotations

from typing import Any

from . import repository
from .status import DeviceStatus


def _summary(row: dict[str, Any]) -> dict[str, int]:
    keys = ["total_devices", *(f"{s.value}_devices" for s in DeviceStatus), "device_types", "total_users"]
    return {key: int(row.get(key) or 0) for key in keys}


def _type_breakdown(row: dict[str, Any]) -> dict[str, Any]:
    counts = {status.value: int(row.get(status.value) or 0) for status in DeviceStatus}
    return {"device_type": row["device_type"], "count": int(row["count"]), **counts}


def _distribution(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "status": row["status"],
        "count": int(row["count"]),
        "percentage": round(float(row["percentage"] or 0), 2),
    }


async def device_stats() -> dict[str, Any]:
    summary = await repository.device_summary()
    by_type = await repository.device_counts_by_type()
    distribution = await repository.device_status_distribution()
    return {
        "summary": _summary(summary),
        "by_type": [_type_breakdown(row) for row in by_type],
        "status_distribution": [_distribution(row) for row in distribution],
    }
