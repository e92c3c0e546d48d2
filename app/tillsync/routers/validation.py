from fastapi import APIRouter, Depends

from app.tillsync.core.deps import get_validation_service
from app.tillsync.schemas.validation import (
    BatchValidateRequest,
    BatchValidateResponse,
    RecordRequest,
    RepairResponse,
    ValidationResultResponse,
)
from app.tillsync.services.validation import ValidationService

router = APIRouter()


@router.post("/tillsync/validation/batch", response_model=BatchValidateResponse)
def batch_validate(payload: BatchValidateRequest, service: ValidationService = Depends(get_validation_service)):
    batch = service.batch_validate([(entity.kind, entity.data) for entity in payload.entities])
    return batch.to_dict()


@router.post("/tillsync/validation/{kind}", response_model=ValidationResultResponse)
def validate_record(kind: str, payload: RecordRequest, service: ValidationService = Depends(get_validation_service)):
    return service.validate(kind, payload.record).to_dict()


@router.post("/tillsync/repair/{kind}", response_model=RepairResponse)
def repair_record(kind: str, payload: RecordRequest, service: ValidationService = Depends(get_validation_service)):
    return service.repair(kind, payload.record).to_dict()
