from __future__ import annotations

from decimal import Decimal

import pytest

from devices import aggregation, repository, service
from tests.fakes import InMemoryStore


@pytest.mark.asyncio
async def test_empty_registry(store: InMemoryStore) -> None:
    stats = await aggregation.device_stats()
    assert stats["summary"] == {
        "total_devices": 0,
        "active_devices": 0,
        "inactive_devices": 0,
        "maintenance_devices": 0,
        "offline_devices": 0,
        "device_types": 0,
        "total_users": 0,
    }
    assert stats["by_type"] == []
    assert stats["status_distribution"] == []


@pytest.mark.asyncio
async def test_counts_and_percentages(store: InMemoryStore) -> None:
    user = await store.insert_user(name="Ann", email="a@b.com", password_hash="x")
    await service.create_device(
        {"device_name": "Sensor1", "device_type": "temp", "device_id": "dev-001", "user_id": user["id"]}
    )
    await service.create_device({"device_name": "Sensor2", "device_type": "temp", "device_id": "dev-002"})
    await service.create_device(
        {"device_name": "Cam", "device_type": "camera", "device_id": "cam-01", "status": "active"}
    )

    stats = await aggregation.device_stats()
    assert stats["summary"]["total_devices"] == 3
    assert stats["summary"]["inactive_devices"] == 2
    assert stats["summary"]["active_devices"] == 1
    assert stats["summary"]["device_types"] == 2
    assert stats["summary"]["total_users"] == 1

    assert stats["by_type"][0] == {
        "device_type": "temp",
        "count": 2,
        "active": 0,
        "inactive": 2,
        "maintenance": 0,
        "offline": 0,
    }
    assert stats["status_distribution"] == [
        {"status": "inactive", "count": 2, "percentage": 66.67},
        {"status": "active", "count": 1, "percentage": 33.33},
    ]


@pytest.mark.asyncio
async def test_driver_types_are_plain_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    # PostgreSQL returns bigint counts and numeric percentages.
    async def summary() -> dict:
        return {"total_devices": 4, "active_devices": 4, "device_types": 1, "total_users": None}

    async def by_type() -> list[dict]:
        return [{"device_type": "temp", "count": 4, "active": 4}]

    async def distribution() -> list[dict]:
        return [{"status": "active", "count": 4, "percentage": Decimal("100.00")}]

    monkeypatch.setattr(repository, "device_summary", summary)
    monkeypatch.setattr(repository, "device_counts_by_type", by_type)
    monkeypatch.setattr(repository, "device_status_distribution", distribution)

    stats = await aggregation.device_stats()
    assert stats["summary"]["total_users"] == 0
    assert stats["summary"]["offline_devices"] == 0
    assert stats["by_type"][0]["offline"] == 0
    percentage = stats["status_distribution"][0]["percentage"]
    assert isinstance(percentage, float)
    assert percentage == 100.0
