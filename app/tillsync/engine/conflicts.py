from __future__ import annotations

from collections.abc import Mapping

from app.tillsync.engine.records import last_updated
from app.tillsync.engine.results import Conflict, ConflictReport
from app.tillsync.engine.schemas import SCHEMA_REGISTRY, Schema


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(left: object, right: object) -> bool:
    """Deep equality between two snapshot values.

    Sequences compare element-wise in order, mappings need the same key set
    and equal values. Primitives only match within the same family, so
    ``True`` never equals ``1``.
    """
    if left is right:
        return True
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left) != set(right):
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, bool) and isinstance(right, bool):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return False


def detect_conflicts(
    local: Mapping,
    remote: Mapping,
    kind: str,
    *,
    schemas: Mapping[str, Schema] | None = None,
) -> ConflictReport:
    schema = (SCHEMA_REGISTRY if schemas is None else schemas).get(kind)
    if schema is None:
        return ConflictReport(kind=kind, has_conflicts=False)

    local_timestamp = last_updated(local)
    remote_timestamp = last_updated(remote)
    # Equal provenance is trusted without comparing fields.
    if local_timestamp == remote_timestamp:
        return ConflictReport(kind=kind, has_conflicts=False)

    conflicts = []
    for name in schema.fields:
        local_value = local.get(name)
        remote_value = remote.get(name)
        if values_equal(local_value, remote_value):
            continue
        conflicts.append(
            Conflict(
                field=name,
                local_value=local_value,
                remote_value=remote_value,
                local_timestamp=local_timestamp,
                remote_timestamp=remote_timestamp,
            )
        )
    return ConflictReport(kind=kind, has_conflicts=bool(conflicts), conflicts=tuple(conflicts))
