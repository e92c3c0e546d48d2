from fastapi import APIRouter, Depends, Query

from app.tillsync.core.deps import get_sync_service
from app.tillsync.db.models import PendingConflict
from app.tillsync.engine.results import Conflict
from app.tillsync.schemas.errors import ApiErrorResponse, ApiValidationErrorResponse
from app.tillsync.schemas.sync import (
    ConflictReportResponse,
    ConflictStatsResponse,
    ManualResolutionRequest,
    PendingConflictListResponse,
    PendingConflictResponse,
    ReconcileRequest,
    ReconcileResponse,
    ResolutionResponse,
    ResolveRequest,
    SnapshotPairRequest,
)
from app.tillsync.services.sync import ReconcileOutcome, SyncReconciliationService

router = APIRouter()

_NOT_FOUND = {404: {"description": "No pending conflict for entity", "model": ApiErrorResponse}}
_RESOLUTION_ERRORS = {
    **_NOT_FOUND,
    422: {"description": "Incomplete selection or invalid resolved record", "model": ApiValidationErrorResponse},
}


def _pending_response(pending: PendingConflict) -> PendingConflictResponse:
    return PendingConflictResponse(
        entity_id=pending.entity_id,
        kind=pending.entity_kind,
        local=pending.local_payload,
        remote=pending.remote_payload,
        conflicts=pending.conflicts,
        auto_resolved=pending.auto_resolved,
        created_at=pending.created_at,
    )


def _outcome_response(outcome: ReconcileOutcome) -> ReconcileResponse:
    return ReconcileResponse(
        entity_id=outcome.entity_id,
        kind=outcome.kind,
        status=outcome.status,
        strategy=outcome.strategy,
        resolved_data=outcome.resolved_data,
        pending=_pending_response(outcome.pending) if outcome.pending is not None else None,
    )


@router.post("/tillsync/sync/detect", response_model=ConflictReportResponse)
def detect_conflicts(payload: SnapshotPairRequest, service: SyncReconciliationService = Depends(get_sync_service)):
    return service.detect(payload.kind, payload.local, payload.remote).to_dict()


@router.post("/tillsync/sync/resolve", response_model=ResolutionResponse)
def resolve_conflicts(payload: ResolveRequest, service: SyncReconciliationService = Depends(get_sync_service)):
    conflicts = None
    if payload.conflicts is not None:
        conflicts = [Conflict.from_dict(item.model_dump(by_alias=True)) for item in payload.conflicts]
    return service.resolve(payload.kind, payload.local, payload.remote, conflicts).to_dict()


@router.post("/tillsync/sync/reconcile", response_model=ReconcileResponse)
def reconcile(payload: ReconcileRequest, service: SyncReconciliationService = Depends(get_sync_service)):
    outcome = service.reconcile(payload.entity_id, payload.kind, payload.local, payload.remote)
    return _outcome_response(outcome)


@router.get("/tillsync/sync/conflicts", response_model=PendingConflictListResponse)
def list_pending_conflicts(
    kind: str | None = Query(default=None),
    service: SyncReconciliationService = Depends(get_sync_service),
):
    rows = [_pending_response(pending) for pending in service.list_pending(kind=kind)]
    return PendingConflictListResponse(rows=rows, total=len(rows))


@router.get("/tillsync/sync/conflicts/{entity_id}", response_model=PendingConflictResponse, responses=_NOT_FOUND)
def get_pending_conflict(entity_id: str, service: SyncReconciliationService = Depends(get_sync_service)):
    return _pending_response(service.get_pending(entity_id))


@router.post(
    "/tillsync/sync/conflicts/{entity_id}/resolve", response_model=ReconcileResponse, responses=_RESOLUTION_ERRORS
)
def resolve_pending_conflict(
    entity_id: str,
    payload: ManualResolutionRequest,
    service: SyncReconciliationService = Depends(get_sync_service),
):
    outcome = service.resolve_manually(entity_id, selections=payload.selections, prefer=payload.prefer)
    return _outcome_response(outcome)


@router.post(
    "/tillsync/sync/conflicts/{entity_id}/dismiss", response_model=ReconcileResponse, responses=_RESOLUTION_ERRORS
)
def dismiss_pending_conflict(entity_id: str, service: SyncReconciliationService = Depends(get_sync_service)):
    return _outcome_response(service.dismiss(entity_id))


@router.get("/tillsync/sync/stats", response_model=ConflictStatsResponse)
def conflict_stats(service: SyncReconciliationService = Depends(get_sync_service)):
    return service.stats()
