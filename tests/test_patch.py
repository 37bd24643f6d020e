"""
Tests for the sparse patch -> UPDATE builder.
"""

from __future__ import annotations

import pytest

from core.errors import ValidationError
from core.patch import NOTHING_TO_UPDATE, PatchField, build_bulk_update, build_update
from devices.repository import DEVICE_PATCH_FIELDS
from users.repository import USER_COLUMNS, USER_PATCH_FIELDS


class TestBuildUpdate:
    def test_single_field(self) -> None:
        stmt = build_update(
            table="users",
            record_id=7,
            patch={"name": "Ann"},
            fields=USER_PATCH_FIELDS,
            returning=USER_COLUMNS,
        )
        assert stmt.assignments == ["name = $1", "updated_at = now()"]
        assert stmt.args == ["Ann", 7]
        assert "WHERE id = $2" in stmt.sql
        assert stmt.sql.endswith(f"RETURNING {USER_COLUMNS}")

    def test_order_follows_descriptors_not_patch(self) -> None:
        stmt = build_update(
            table="users",
            record_id=1,
            patch={"email": "a@b.com", "name": "Ann"},
            fields=USER_PATCH_FIELDS,
        )
        assert stmt.assignments == ["name = $1", "email = $2", "updated_at = now()"]
        assert stmt.args == ["Ann", "a@b.com", 1]

    def test_empty_patch_fails_fast(self) -> None:
        with pytest.raises(ValidationError, match=NOTHING_TO_UPDATE):
            build_update(table="users", record_id=1, patch={}, fields=USER_PATCH_FIELDS)

    def test_unknown_keys_are_ignored(self) -> None:
        with pytest.raises(ValidationError):
            build_update(table="users", record_id=1, patch={"password": "x"}, fields=USER_PATCH_FIELDS)

    def test_null_only_for_nullable_fields(self) -> None:
        fields = (PatchField("name"), PatchField("location", nullable=True))
        stmt = build_update(table="t", record_id=3, patch={"name": None, "location": None}, fields=fields)
        assert stmt.assignments == ["location = $1", "updated_at = now()"]
        assert stmt.args == [None, 3]

    def test_activation_adds_last_active_in_same_statement(self) -> None:
        stmt = build_update(
            table="devices",
            record_id=5,
            patch={"status": "active", "location": "lab"},
            fields=DEVICE_PATCH_FIELDS,
        )
        assert stmt.assignments == [
            "status = $1",
            "last_active = now()",
            "location = $2",
            "updated_at = now()",
        ]
        assert stmt.args == ["active", "lab", 5]

    def test_other_status_leaves_last_active(self) -> None:
        stmt = build_update(table="devices", record_id=5, patch={"status": "offline"}, fields=DEVICE_PATCH_FIELDS)
        assert "last_active = now()" not in stmt.assignments

    def test_user_id_detach_vs_absent(self) -> None:
        detach = build_update(table="devices", record_id=2, patch={"user_id": None}, fields=DEVICE_PATCH_FIELDS)
        assert detach.assignments == ["user_id = $1", "updated_at = now()"]
        assert detach.args == [None, 2]

        with pytest.raises(ValidationError):
            build_update(table="devices", record_id=2, patch={}, fields=DEVICE_PATCH_FIELDS)


class TestBuildBulkUpdate:
    def test_one_statement_for_all_ids(self) -> None:
        stmt = build_bulk_update(
            table="devices",
            record_ids=[4, 9],
            patch={"status": "active"},
            fields=DEVICE_PATCH_FIELDS,
        )
        assert stmt.assignments == ["status = $1", "last_active = now()", "updated_at = now()"]
        assert stmt.args == ["active", [4, 9]]
        assert "WHERE id = ANY($2::int[])" in stmt.sql

    def test_requires_ids(self) -> None:
        with pytest.raises(ValidationError):
            build_bulk_update(table="devices", record_ids=[], patch={"status": "active"}, fields=DEVICE_PATCH_FIELDS)
