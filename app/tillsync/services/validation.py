import logging
from collections.abc import Mapping, Sequence

from app.tillsync.core.config import settings
from app.tillsync.core.error_catalog import AppError, ErrorCatalog
from app.tillsync.core.logging import log_json
from app.tillsync.core.metrics import metrics
from app.tillsync.engine.engine import DataIntegrityEngine, RepairOutcome
from app.tillsync.engine.results import BatchValidationResult, ValidationResult

logger = logging.getLogger("tillsync.validation")


class ValidationService:
    def __init__(self, engine: DataIntegrityEngine):
        self.engine = engine

    def validate(self, kind: str, record: Mapping) -> ValidationResult:
        result = self.engine.validate(kind, record)
        metrics.record_validation(kind, valid=result.valid, integrity_errors=result.integrity_errors)
        return result

    def batch_validate(self, entities: Sequence[tuple[str, Mapping]]) -> BatchValidationResult:
        if len(entities) > settings.BATCH_VALIDATE_MAX_ITEMS:
            raise AppError(
                ErrorCatalog.BATCH_TOO_LARGE,
                details={"max_items": settings.BATCH_VALIDATE_MAX_ITEMS, "received": len(entities)},
            )
        batch = self.engine.batch_validate(entities)
        for result in batch.results:
            metrics.record_validation(result.kind, valid=result.valid, integrity_errors=result.integrity_errors)
        return batch

    def repair(self, kind: str, record: Mapping) -> RepairOutcome:
        if not self.engine.is_known_kind(kind):
            raise AppError(ErrorCatalog.UNKNOWN_ENTITY_KIND, details={"kind": kind})
        outcome = self.engine.repair_if_invalid(kind, record)
        metrics.record_validation(
            kind, valid=outcome.validation.valid, integrity_errors=outcome.validation.integrity_errors
        )
        if outcome.repair.repaired:
            metrics.increment_repair(kind)
            log_json(
                logger,
                {
                    "event": "record_repaired",
                    "kind": kind,
                    "repairs": list(outcome.repair.repairs),
                    "valid_after_repair": outcome.revalidation.valid if outcome.revalidation else None,
                },
            )
        return outcome
