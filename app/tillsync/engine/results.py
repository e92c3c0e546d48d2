from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Literal

ResolutionStrategy = Literal["automatic", "manual"]


@dataclass(frozen=True)
class FieldResult:
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class IntegrityResult:
    valid: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    kind: str
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    integrity_errors: int = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class BatchEntry:
    index: int
    kind: str
    messages: tuple[str, ...]

    def to_dict(self, key: str) -> dict:
        return {"index": self.index, "kind": self.kind, key: list(self.messages)}


@dataclass(frozen=True)
class BatchValidationResult:
    valid: int
    invalid: int
    errors: tuple[BatchEntry, ...] = ()
    warnings: tuple[BatchEntry, ...] = ()
    results: tuple[ValidationResult, ...] = ()

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "invalid": self.invalid,
            "errors": [entry.to_dict("errors") for entry in self.errors],
            "warnings": [entry.to_dict("warnings") for entry in self.warnings],
        }


@dataclass(frozen=True)
class Conflict:
    field: str
    local_value: object
    remote_value: object
    local_timestamp: int
    remote_timestamp: int

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "localValue": copy.deepcopy(self.local_value),
            "remoteValue": copy.deepcopy(self.remote_value),
            "localTimestamp": self.local_timestamp,
            "remoteTimestamp": self.remote_timestamp,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Conflict":
        return cls(
            field=payload["field"],
            local_value=payload.get("localValue"),
            remote_value=payload.get("remoteValue"),
            local_timestamp=int(payload.get("localTimestamp") or 0),
            remote_timestamp=int(payload.get("remoteTimestamp") or 0),
        )


@dataclass(frozen=True)
class ConflictReport:
    kind: str
    has_conflicts: bool
    conflicts: tuple[Conflict, ...] = ()

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "hasConflicts": self.has_conflicts,
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
        }


@dataclass(frozen=True)
class AutoResolvedField:
    field: str
    strategy: str
    value: object

    def to_dict(self) -> dict:
        return {"field": self.field, "strategy": self.strategy, "value": copy.deepcopy(self.value)}

    @classmethod
    def from_dict(cls, payload: dict) -> "AutoResolvedField":
        return cls(field=payload["field"], strategy=payload["strategy"], value=payload.get("value"))


@dataclass(frozen=True)
class Resolution:
    strategy: ResolutionStrategy
    resolved_timestamp: int
    resolved_data: dict | None = None
    auto_resolved: tuple[AutoResolvedField, ...] = ()
    manual_required: tuple[Conflict, ...] = ()

    @property
    def is_automatic(self) -> bool:
        return self.strategy == "automatic"

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "resolvedTimestamp": self.resolved_timestamp,
            "resolvedData": copy.deepcopy(self.resolved_data),
            "autoResolved": [item.to_dict() for item in self.auto_resolved],
            "manualRequired": [conflict.to_dict() for conflict in self.manual_required],
        }


@dataclass(frozen=True)
class RepairResult:
    repaired: bool
    data: dict
    repairs: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict:
        return {"repaired": self.repaired, "repairs": list(self.repairs), "data": copy.deepcopy(self.data)}
