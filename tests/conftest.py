"""
Shared fixtures. No test talks to a real PostgreSQL server: repository
modules are swapped for `InMemoryStore` and the asyncpg pool for `FakePool`.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from core import db
from devices import repository as device_repository
from tests.fakes import FakeConnection, FakePool, InMemoryStore
from users import repository as user_repository

USER_REPOSITORY_FUNCTIONS = (
    "list_users",
    "get_user",
    "user_exists",
    "get_user_by_email",
    "get_credentials_by_email",
    "get_credentials_by_id",
    "insert_user",
    "update_user",
    "update_password",
    "delete_user",
    "search_users",
    "user_stats",
)

DEVICE_REPOSITORY_FUNCTIONS = (
    "list_devices",
    "get_device",
    "get_device_by_external_id",
    "list_devices_by_status",
    "list_devices_by_type",
    "list_devices_for_user",
    "search_devices",
    "list_recently_active",
    "insert_device",
    "update_device",
    "update_device_status",
    "bulk_update_status",
    "delete_device",
    "device_summary",
    "device_counts_by_type",
    "device_status_distribution",
)


@pytest.fixture(autouse=True)
def _env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryStore:
    """In-memory users/devices tables wired in place of both repositories."""
    fake = InMemoryStore()
    for name in USER_REPOSITORY_FUNCTIONS:
        monkeypatch.setattr(user_repository, name, getattr(fake, name))
    for name in DEVICE_REPOSITORY_FUNCTIONS:
        monkeypatch.setattr(device_repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_pool(monkeypatch: pytest.MonkeyPatch, fake_conn: FakeConnection) -> FakePool:
    pool = FakePool(fake_conn)
    monkeypatch.setattr(db, "_pool", pool)
    return pool


@pytest.fixture
def fast_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Cheap bcrypt rounds so auth-heavy tests stay quick."""
    import bcrypt

    real_gensalt = bcrypt.gensalt
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=4, prefix=b"2b": real_gensalt(4, prefix))


@pytest.fixture
def client(store: InMemoryStore, fast_hashing: None) -> Iterator[TestClient]:
    """TestClient without lifespan, so startup never tries to reach a database."""
    from main import app

    yield TestClient(app)
