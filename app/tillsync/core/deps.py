from fastapi import Depends

from app.tillsync.core.reporting import LoggingErrorReporter
from app.tillsync.db.session import get_db
from app.tillsync.engine.engine import DataIntegrityEngine
from app.tillsync.services.sync import SyncReconciliationService
from app.tillsync.services.validation import ValidationService

_engine = DataIntegrityEngine(reporter=LoggingErrorReporter())


def get_engine() -> DataIntegrityEngine:
    return _engine


def get_validation_service(engine: DataIntegrityEngine = Depends(get_engine)) -> ValidationService:
    return ValidationService(engine)


def get_sync_service(db=Depends(get_db), engine: DataIntegrityEngine = Depends(get_engine)) -> SyncReconciliationService:
    return SyncReconciliationService(db, engine)
