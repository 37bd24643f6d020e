"""
Sparse patch -> parameterized UPDATE statement.

A feature declares its updatable columns once as `PatchField` descriptors and
hands the builder whatever subset the client sent. Only present keys change.
Assignments follow descriptor order so the produced SQL is deterministic,
`updated_at = now()` is always appended, and the record id is always the
last positional argument.

Example (devices, status -> active):

    UPDATE devices
    SET status = $1, last_active = now(), updated_at = now()
    WHERE id = $2
    RETURNING *
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError

NOTHING_TO_UPDATE = "Please provide at least one field to update"


@dataclass(frozen=True)
class PatchField:
    name: str
    nullable: bool = False
    # Extra raw assignments (no parameters) to emit when this field is set.
    side_effects: Callable[[Any], list[str]] | None = None


@dataclass(frozen=True)
class UpdateStatement:
    sql: str
    args: list[Any]
    assignments: list[str] = field(default_factory=list)


def _assignments(patch: Mapping[str, Any], fields: Sequence[PatchField]) -> tuple[list[str], list[Any]]:
    assignments: list[str] = []
    args: list[Any] = []
    for column in fields:
        if column.name not in patch:
            continue
        value = patch[column.name]
        if value is None and not column.nullable:
            continue
        args.append(value)
        assignments.append(f"{column.name} = ${len(args)}")
        if column.side_effects is not None:
            assignments.extend(column.side_effects(value))

    if not args:
        raise ValidationError(NOTHING_TO_UPDATE, details={"rule": "required", "field": None})

    assignments.append("updated_at = now()")
    return assignments, args


def build_update(
    *,
    table: str,
    record_id: int,
    patch: Mapping[str, Any],
    fields: Sequence[PatchField],
    returning: str = "*",
) -> UpdateStatement:
    assignments, args = _assignments(patch, fields)
    args.append(record_id)
    sql = (
        f"UPDATE {table}\n"
        f"SET {', '.join(assignments)}\n"
        f"WHERE id = ${len(args)}\n"
        f"RETURNING {returning}"
    )
    return UpdateStatement(sql=sql, args=args, assignments=assignments)


def build_bulk_update(
    *,
    table: str,
    record_ids: Sequence[int],
    patch: Mapping[str, Any],
    fields: Sequence[PatchField],
    returning: str = "*",
) -> UpdateStatement:
    """
    Same as `build_update` but for many rows in one statement.
    Ids that do not exist simply match nothing.
    """
    if not record_ids:
        raise ValidationError("Please provide at least one record ID", details={"rule": "required", "field": "ids"})
    assignments, args = _assignments(patch, fields)
    args.append(list(record_ids))
    sql = (
        f"UPDATE {table}\n"
        f"SET {', '.join(assignments)}\n"
        f"WHERE id = ANY(${len(args)}::int[])\n"
        f"RETURNING {returning}"
    )
    return UpdateStatement(sql=sql, args=args, assignments=assignments)
