"""
Device input rules.

Order of checks: required fields, then length/format, then status
membership.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from core.errors import ValidationError
from core.validation import (
    is_provided,
    parse_positive_int,
    pick_provided,
    require_any,
    require_fields,
    require_min_length,
)

from .status import DEFAULT_STATUS, DeviceStatus

DEVICE_NAME_MIN_LENGTH = 2
DEVICE_ID_MIN_LENGTH = 3

_UPDATABLE = ("device_name", "device_type", "status")
_NULLABLE = ("location", "user_id")


def _user_id(value: Any) -> int | None:
    if value is None:
        return None
    return parse_positive_int(value, field="user_id", message="Invalid user_id")


def _device_name(value: Any) -> str:
    return require_min_length(
        value,
        DEVICE_NAME_MIN_LENGTH,
        field="device_name",
        message=f"Device name must be at least {DEVICE_NAME_MIN_LENGTH} characters",
    ).strip()


def _device_type(value: Any) -> str:
    return require_min_length(value, 1, field="device_type", message="Device type is required").strip()


def validate_device_create(fields: Mapping[str, Any]) -> dict[str, Any]:
    require_fields(
        fields,
        ("device_name", "device_type", "device_id"),
        "Please provide device_name, device_type, and device_id",
    )
    device_name = _device_name(fields["device_name"])
    external_id = require_min_length(
        fields["device_id"],
        DEVICE_ID_MIN_LENGTH,
        field="device_id",
        message=f"Device ID must be at least {DEVICE_ID_MIN_LENGTH} characters",
    )
    device_type = _device_type(fields["device_type"])
    user_id = _user_id(fields.get("user_id"))
    location = fields.get("location")
    if location is not None and not isinstance(location, str):
        raise ValidationError("location must be a string", details={"rule": "format", "field": "location"})

    raw_status = fields.get("status")
    status = DeviceStatus.parse(raw_status) if is_provided(raw_status) else DEFAULT_STATUS

    return {
        "device_name": device_name,
        "device_type": device_type,
        "device_id": external_id.strip(),
        "status": status,
        "location": location,
        "user_id": user_id,
    }


def validate_device_update(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Returns the sparse patch. `location` / `user_id` keys are kept even when
    null; other keys are kept only when they carry a value.
    """
    patch: dict[str, Any] = pick_provided(fields, _UPDATABLE)
    for name in _NULLABLE:
        if name in fields:
            patch[name] = fields[name]
    require_any(patch, "Please provide at least one field to update")

    # Same length rules as create.
    if "device_name" in patch:
        patch["device_name"] = _device_name(patch["device_name"])
    if "device_type" in patch:
        patch["device_type"] = _device_type(patch["device_type"])
    if "user_id" in patch:
        patch["user_id"] = _user_id(patch["user_id"])
    if "location" in patch and patch["location"] is not None and not isinstance(patch["location"], str):
        raise ValidationError("location must be a string", details={"rule": "format", "field": "location"})
    if "status" in patch:
        patch["status"] = DeviceStatus.parse(patch["status"]).value
    return patch


def validate_status_update(fields: Mapping[str, Any]) -> DeviceStatus:
    require_fields(fields, ("status",), "Status is required")
    return DeviceStatus.parse(fields["status"])


def validate_bulk_status_update(fields: Mapping[str, Any]) -> tuple[list[int], DeviceStatus]:
    raw_ids = fields.get("device_ids")
    if not isinstance(raw_ids, list) or not raw_ids:
        raise ValidationError(
            "Please provide an array of device IDs",
            details={"rule": "required", "field": "device_ids"},
        )
    require_fields(fields, ("status",), "Status is required")

    device_ids: list[int] = []
    for raw in raw_ids:
        device_pk = parse_positive_int(raw, field="device_ids", message="Invalid device ID")
        if device_pk not in device_ids:
            device_ids.append(device_pk)
    return device_ids, DeviceStatus.parse(fields["status"])
