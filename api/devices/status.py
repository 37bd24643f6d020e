"""
Device status state machine.

Any status may move to any other; none is terminal. Entering `active`
refreshes `last_active` in the same statement that changes the status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.errors import ValidationError


class DeviceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Any) -> DeviceStatus:
        try:
            return cls(value)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(cls.values())}",
                details={"rule": "enum", "field": "status"},
            ) from exc


DEFAULT_STATUS = DeviceStatus.INACTIVE


@dataclass(frozen=True)
class Transition:
    target: DeviceStatus
    refreshes_last_active: bool


def transition(target: DeviceStatus) -> Transition:
    return Transition(target=target, refreshes_last_active=target is DeviceStatus.ACTIVE)


def status_side_effects(value: Any) -> list[str]:
    """
    Extra assignments for an UPDATE that sets `status` to `value`.
    """
    if transition(DeviceStatus.parse(value)).refreshes_last_active:
        return ["last_active = now()"]
    return []
