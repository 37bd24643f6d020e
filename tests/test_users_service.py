"""
Tests for users/service.py against the in-memory store.
"""

from __future__ import annotations

import pytest

from auth import security
from core.errors import ConflictError, NotFoundError, ValidationError
from tests.fakes import InMemoryStore
from users import repository, service

ANN = {"name": "Ann", "email": "a@b.com", "password": "secret1"}


@pytest.fixture(autouse=True)
def _fast(fast_hashing: None) -> None:
    pass


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_returns_record_without_password(self, store: InMemoryStore) -> None:
        user = await service.create_user(ANN)
        assert user["id"] == 1
        assert user["email"] == "a@b.com"
        assert "password" not in user

    @pytest.mark.asyncio
    async def test_password_is_hashed_at_rest(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        stored = store.users[1]["password"]
        assert stored != "secret1"
        assert security.verify_password("secret1", stored)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["a@b.com", "A@B.COM", " a@b.com "])
    async def test_duplicate_email_conflicts_without_insert(self, store: InMemoryStore, email: str) -> None:
        await service.create_user(ANN)
        store.calls.clear()
        with pytest.raises(ConflictError, match="User with this email already exists"):
            await service.create_user({**ANN, "email": email})
        assert "insert_user" not in store.calls

    @pytest.mark.asyncio
    async def test_storage_unique_violation_is_same_conflict(
        self, store: InMemoryStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        await service.create_user(ANN)

        # A concurrent request that passed the probe before the first insert landed.
        async def probe_misses(email: str) -> None:
            return None

        monkeypatch.setattr(repository, "get_user_by_email", probe_misses)
        with pytest.raises(ConflictError) as exc:
            await service.create_user(ANN)
        assert exc.value.message == "Email already exists"
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_validation_happens_before_storage(self, store: InMemoryStore) -> None:
        with pytest.raises(ValidationError):
            await service.create_user({"name": "Ann", "email": "a@b.com"})
        assert store.calls == []


class TestUpdateUser:
    @pytest.mark.asyncio
    async def test_partial_update(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        user = await service.update_user(1, {"name": "Annie"})
        assert user["name"] == "Annie"
        assert user["email"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_empty_patch_never_touches_storage(self, store: InMemoryStore) -> None:
        with pytest.raises(ValidationError):
            await service.update_user(1, {})
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_missing_user(self, store: InMemoryStore) -> None:
        with pytest.raises(NotFoundError, match="User not found"):
            await service.update_user(42, {"name": "Bob"})

    @pytest.mark.asyncio
    async def test_email_taken_by_other_user(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        await service.create_user({**ANN, "email": "bob@b.com"})
        with pytest.raises(ConflictError, match="Email already exists"):
            await service.update_user(2, {"email": "A@b.com"})

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_fine(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        user = await service.update_user(1, {"email": "A@B.com", "name": "Ann B"})
        assert user["email"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_storage_conflict_on_update(self, store: InMemoryStore, monkeypatch: pytest.MonkeyPatch) -> None:
        await service.create_user(ANN)
        await service.create_user({**ANN, "email": "bob@b.com"})

        async def probe_misses(email: str) -> None:
            return None

        monkeypatch.setattr(repository, "get_user_by_email", probe_misses)
        with pytest.raises(ConflictError, match="Email already exists"):
            await service.update_user(2, {"email": "a@b.com"})


class TestDeleteUser:
    @pytest.mark.asyncio
    async def test_delete_then_not_found(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        deleted = await service.delete_user(1)
        assert deleted == {"id": 1, "name": "Ann", "email": "a@b.com"}
        with pytest.raises(NotFoundError):
            await service.delete_user(1)

    @pytest.mark.asyncio
    async def test_delete_detaches_devices(self, store: InMemoryStore) -> None:
        from devices import service as device_service

        await service.create_user(ANN)
        await device_service.create_device(
            {"device_name": "Sensor1", "device_type": "temp", "device_id": "dev-001", "user_id": 1}
        )
        await service.delete_user(1)
        assert store.devices[1]["user_id"] is None


class TestReads:
    @pytest.mark.asyncio
    async def test_list_newest_id_first(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        await service.create_user({**ANN, "email": "c@d.com"})
        assert [u["id"] for u in await service.list_users()] == [2, 1]

    @pytest.mark.asyncio
    async def test_search_requires_query(self, store: InMemoryStore) -> None:
        with pytest.raises(ValidationError):
            await service.search_users("  ")

    @pytest.mark.asyncio
    async def test_search_case_insensitive(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        await service.create_user({"name": "Bob", "email": "bob@x.io", "password": "secret1"})
        assert [u["name"] for u in await service.search_users("ANN")] == ["Ann"]
        assert [u["name"] for u in await service.search_users("x.io")] == ["Bob"]

    @pytest.mark.asyncio
    async def test_stats_are_ints(self, store: InMemoryStore) -> None:
        await service.create_user(ANN)
        assert await service.user_stats() == {
            "total_users": 1,
            "new_users_this_week": 1,
            "new_users_this_month": 1,
        }

    @pytest.mark.asyncio
    async def test_user_with_devices(self, store: InMemoryStore) -> None:
        from devices import service as device_service

        await service.create_user(ANN)
        for external_id in ("dev-001", "dev-002"):
            await device_service.create_device(
                {"device_name": "Sensor", "device_type": "temp", "device_id": external_id, "user_id": 1}
            )
        user = await service.user_with_devices(1)
        assert user["device_count"] == 2
        assert [d["device_id"] for d in user["devices"]] == ["dev-002", "dev-001"]

    @pytest.mark.asyncio
    async def test_user_with_devices_missing(self, store: InMemoryStore) -> None:
        with pytest.raises(NotFoundError):
            await service.user_with_devices(5)
