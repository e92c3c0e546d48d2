"""Automatic field-level resolution of local/remote conflicts.

``RESOLUTION_RULES`` is the complete, ordered rule set. For every conflict
the rules are tried top to bottom; a rule applies when one of its field
patterns matches the field name and its resolve function returns a value.
Fields no rule resolves are left for a human.

Two differing, non-blank strings written at the same instant are never
auto-resolved: there is no safe deterministic choice between them.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from fnmatch import fnmatchcase

from app.tillsync.engine.records import last_updated
from app.tillsync.engine.results import AutoResolvedField, Conflict, Resolution


class _Unresolved:
    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()

ResolveFunc = Callable[[Conflict], object]


@dataclass(frozen=True)
class ResolutionRule:
    name: str
    field_patterns: tuple[str, ...]
    resolve: ResolveFunc

    def matches(self, field_name: str) -> bool:
        return any(fnmatchcase(field_name, pattern) for pattern in self.field_patterns)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def most_recent(conflict: Conflict) -> object:
    if conflict.local_timestamp == conflict.remote_timestamp:
        return UNRESOLVED
    if conflict.local_timestamp > conflict.remote_timestamp:
        return conflict.local_value
    return conflict.remote_value


def higher_value(conflict: Conflict) -> object:
    if _is_number(conflict.local_value) and _is_number(conflict.remote_value):
        return max(conflict.local_value, conflict.remote_value)
    return UNRESOLVED


def prefer_active(conflict: Conflict) -> object:
    if isinstance(conflict.local_value, bool) and isinstance(conflict.remote_value, bool):
        return conflict.local_value or conflict.remote_value
    return UNRESOLVED


def non_empty(conflict: Conflict) -> object:
    local_value, remote_value = conflict.local_value, conflict.remote_value
    if not (isinstance(local_value, str) and isinstance(remote_value, str)):
        return UNRESOLVED
    local_blank = local_value.strip() == ""
    remote_blank = remote_value.strip() == ""
    if local_blank and not remote_blank:
        return remote_value
    if remote_blank and not local_blank:
        return local_value
    return UNRESOLVED


RESOLUTION_RULES: tuple[ResolutionRule, ...] = (
    ResolutionRule("most-recent", ("*",), most_recent),
    ResolutionRule("higher-value", ("currentStock", "quantity"), higher_value),
    ResolutionRule("prefer-active", ("isActive",), prefer_active),
    ResolutionRule("non-empty", ("*",), non_empty),
)


def resolve_field(
    conflict: Conflict, rules: Iterable[ResolutionRule] = RESOLUTION_RULES
) -> AutoResolvedField | None:
    for rule in rules:
        if not rule.matches(conflict.field):
            continue
        value = rule.resolve(conflict)
        if value is not UNRESOLVED:
            return AutoResolvedField(field=conflict.field, strategy=rule.name, value=copy.deepcopy(value))
    return None


class ConflictResolver:
    def __init__(self, rules: Iterable[ResolutionRule] = RESOLUTION_RULES):
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[ResolutionRule, ...]:
        return self._rules

    def resolve(
        self,
        conflicts: Iterable[Conflict],
        kind: str,
        local: Mapping,
        remote: Mapping,
    ) -> Resolution:
        auto_resolved: list[AutoResolvedField] = []
        manual_required: list[Conflict] = []
        for conflict in conflicts:
            resolved = resolve_field(conflict, self._rules)
            if resolved is None:
                manual_required.append(conflict)
            else:
                auto_resolved.append(resolved)

        resolved_timestamp = max(last_updated(local), last_updated(remote))
        if manual_required:
            return Resolution(
                strategy="manual",
                resolved_timestamp=resolved_timestamp,
                auto_resolved=tuple(auto_resolved),
                manual_required=tuple(manual_required),
            )

        resolved_data = copy.deepcopy(dict(local))
        for item in auto_resolved:
            resolved_data[item.field] = copy.deepcopy(item.value)
        resolved_data["lastUpdated"] = resolved_timestamp
        return Resolution(
            strategy="automatic",
            resolved_timestamp=resolved_timestamp,
            resolved_data=resolved_data,
            auto_resolved=tuple(auto_resolved),
        )
