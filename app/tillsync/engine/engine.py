from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from app.tillsync.core.reporting import ErrorReporter, NullErrorReporter
from app.tillsync.engine.conflicts import detect_conflicts
from app.tillsync.engine.integrity import IntegrityChecker
from app.tillsync.engine.repair import RecordRepairer
from app.tillsync.engine.resolver import ConflictResolver
from app.tillsync.engine.results import (
    BatchValidationResult,
    Conflict,
    ConflictReport,
    RepairResult,
    Resolution,
    ValidationResult,
)
from app.tillsync.engine.schemas import SCHEMA_REGISTRY
from app.tillsync.engine.validator import Clock, EntityValidator, system_clock


@dataclass(frozen=True)
class RepairOutcome:
    validation: ValidationResult
    repair: RepairResult
    revalidation: ValidationResult | None = None

    def to_dict(self) -> dict:
        return {
            "validation": self.validation.to_dict(),
            "repair": self.repair.to_dict(),
            "revalidation": self.revalidation.to_dict() if self.revalidation else None,
        }


class DataIntegrityEngine:
    """Validation, conflict detection/resolution and repair behind one object.

    The engine keeps no state between calls and never mutates its inputs,
    so one instance can be shared by any number of concurrent callers.
    """

    def __init__(
        self,
        reporter: ErrorReporter | None = None,
        clock: Clock | None = None,
        resolver: ConflictResolver | None = None,
    ):
        self.reporter = reporter or NullErrorReporter()
        self.clock = clock or system_clock
        self.validator = EntityValidator(IntegrityChecker(reporter=self.reporter), clock=self.clock)
        self.resolver = resolver or ConflictResolver()
        self.repairer = RecordRepairer(reporter=self.reporter)

    @staticmethod
    def is_known_kind(kind: str) -> bool:
        return kind in SCHEMA_REGISTRY

    def validate(self, kind: str, record: Mapping) -> ValidationResult:
        return self.validator.validate(kind, record)

    def batch_validate(self, entities: Iterable[tuple[str, Mapping]]) -> BatchValidationResult:
        return self.validator.batch_validate(entities)

    def detect(self, local: Mapping, remote: Mapping, kind: str) -> ConflictReport:
        return detect_conflicts(local, remote, kind)

    def resolve(
        self,
        conflicts: Iterable[Conflict],
        kind: str,
        local: Mapping,
        remote: Mapping,
    ) -> Resolution:
        return self.resolver.resolve(conflicts, kind, local, remote)

    def reconcile(self, local: Mapping, remote: Mapping, kind: str) -> tuple[ConflictReport, Resolution]:
        report = self.detect(local, remote, kind)
        return report, self.resolve(report.conflicts, kind, local, remote)

    def repair(self, kind: str, record: Mapping) -> RepairResult:
        return self.repairer.repair(kind, record)

    def repair_if_invalid(self, kind: str, record: Mapping) -> RepairOutcome:
        validation = self.validate(kind, record)
        if validation.valid:
            unchanged = RepairResult(repaired=False, data=copy.deepcopy(dict(record)))
            return RepairOutcome(validation=validation, repair=unchanged)
        repair = self.repair(kind, record)
        revalidation = self.validate(kind, repair.data) if repair.repaired else None
        return RepairOutcome(validation=validation, repair=repair, revalidation=revalidation)
