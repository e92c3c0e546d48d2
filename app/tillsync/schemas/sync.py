from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Side = Literal["local", "remote"]


class ConflictPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field: str
    local_value: Any | None = Field(default=None, alias="localValue")
    remote_value: Any | None = Field(default=None, alias="remoteValue")
    local_timestamp: int = Field(default=0, alias="localTimestamp")
    remote_timestamp: int = Field(default=0, alias="remoteTimestamp")


class AutoResolvedPayload(BaseModel):
    field: str
    strategy: str
    value: Any | None = None


class SnapshotPairRequest(BaseModel):
    kind: str
    local: dict
    remote: dict


class ResolveRequest(SnapshotPairRequest):
    conflicts: list[ConflictPayload] | None = None


class ReconcileRequest(SnapshotPairRequest):
    entity_id: str = Field(min_length=1, max_length=255)


class ConflictReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str
    has_conflicts: bool = Field(alias="hasConflicts")
    conflicts: list[ConflictPayload]


class ResolutionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    strategy: Literal["automatic", "manual"]
    resolved_timestamp: int = Field(alias="resolvedTimestamp")
    resolved_data: dict | None = Field(default=None, alias="resolvedData")
    auto_resolved: list[AutoResolvedPayload] = Field(default_factory=list, alias="autoResolved")
    manual_required: list[ConflictPayload] = Field(default_factory=list, alias="manualRequired")


class PendingConflictResponse(BaseModel):
    entity_id: str
    kind: str
    local: dict
    remote: dict
    conflicts: list[ConflictPayload]
    auto_resolved: list[AutoResolvedPayload]
    created_at: datetime


class PendingConflictListResponse(BaseModel):
    rows: list[PendingConflictResponse]
    total: int


class ReconcileResponse(BaseModel):
    entity_id: str
    kind: str
    status: Literal["resolved", "pending"]
    strategy: str
    resolved_data: dict | None = None
    pending: PendingConflictResponse | None = None


class ManualResolutionRequest(BaseModel):
    selections: dict[str, Side] = Field(default_factory=dict)
    prefer: Side | None = None

    @model_validator(mode="after")
    def _require_choice(self):
        if not self.selections and self.prefer is None:
            raise ValueError("selections or prefer is required")
        return self


class ConflictStatsResponse(BaseModel):
    total: int
    pending: int
    last_hour: int
    today: int
    resolved: int
    resolution_rate: float
