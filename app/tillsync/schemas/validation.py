from __future__ import annotations

from pydantic import BaseModel, Field


class RecordRequest(BaseModel):
    record: dict


class ValidationResultResponse(BaseModel):
    kind: str
    valid: bool
    errors: list[str]
    warnings: list[str]


class BatchEntity(BaseModel):
    kind: str
    data: dict


class BatchValidateRequest(BaseModel):
    entities: list[BatchEntity] = Field(default_factory=list)


class BatchEntryErrors(BaseModel):
    index: int
    kind: str
    errors: list[str]


class BatchEntryWarnings(BaseModel):
    index: int
    kind: str
    warnings: list[str]


class BatchValidateResponse(BaseModel):
    valid: int
    invalid: int
    errors: list[BatchEntryErrors]
    warnings: list[BatchEntryWarnings]


class RepairResultPayload(BaseModel):
    repaired: bool
    repairs: list[str]
    data: dict


class RepairResponse(BaseModel):
    validation: ValidationResultResponse
    repair: RepairResultPayload
    revalidation: ValidationResultResponse | None = None
