from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping

from app.tillsync.engine.fields import validate_field
from app.tillsync.engine.integrity import IntegrityChecker, IntegrityContext
from app.tillsync.engine.results import BatchEntry, BatchValidationResult, ValidationResult
from app.tillsync.engine.schemas import SCHEMA_REGISTRY, Schema

Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time() * 1000)


class EntityValidator:
    """Checks a candidate record against its kind's schema and invariants.

    Every declared field is checked and every message is collected, so one
    call yields the complete list a form needs to display. Keys the schema
    does not declare only produce warnings.
    """

    def __init__(
        self,
        integrity: IntegrityChecker | None = None,
        *,
        schemas: Mapping[str, Schema] | None = None,
        clock: Clock | None = None,
    ):
        self._integrity = integrity or IntegrityChecker()
        self._schemas = SCHEMA_REGISTRY if schemas is None else schemas
        self._clock = clock or system_clock

    def schema_for(self, kind: str) -> Schema | None:
        return self._schemas.get(kind)

    def validate(self, kind: str, record: Mapping, *, now_ms: int | None = None) -> ValidationResult:
        schema = self._schemas.get(kind)
        if schema is None:
            return ValidationResult(kind=kind, valid=False, errors=(f"Unknown entity kind: {kind}",))
        if not isinstance(record, Mapping):
            return ValidationResult(kind=kind, valid=False, errors=("Record must be an object",))

        now = self._clock() if now_ms is None else now_ms
        errors: list[str] = []
        warnings: list[str] = []

        for name, declaration in schema.fields.items():
            result = validate_field(name, record.get(name), declaration, now_ms=now)
            errors.extend(result.errors)
            warnings.extend(result.warnings)

        for key in record:
            if key not in schema:
                warnings.append(f"Unexpected field: {key}")

        context = IntegrityContext(
            now_ms=now,
            validate=lambda line_kind, line: self.validate(line_kind, line, now_ms=now),
        )
        integrity = self._integrity.check(kind, dict(record), context)
        errors.extend(integrity.errors)

        return ValidationResult(
            kind=kind,
            valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            integrity_errors=len(integrity.errors),
        )

    def batch_validate(self, entities: Iterable[tuple[str, Mapping]]) -> BatchValidationResult:
        now = self._clock()
        results: list[ValidationResult] = []
        error_entries: list[BatchEntry] = []
        warning_entries: list[BatchEntry] = []
        for index, (kind, data) in enumerate(entities):
            result = self.validate(kind, data, now_ms=now)
            results.append(result)
            if not result.valid:
                error_entries.append(BatchEntry(index=index, kind=kind, messages=result.errors))
            if result.warnings:
                warning_entries.append(BatchEntry(index=index, kind=kind, messages=result.warnings))
        valid_count = sum(1 for result in results if result.valid)
        return BatchValidationResult(
            valid=valid_count,
            invalid=len(results) - valid_count,
            errors=tuple(error_entries),
            warnings=tuple(warning_entries),
            results=tuple(results),
        )
