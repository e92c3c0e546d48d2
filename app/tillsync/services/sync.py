"""Sync-time reconciliation of local and remote snapshots.

Wraps the pure engine with the stateful parts of the sync flow: a queue of
conflicts waiting for a human decision and a bounded conflict history.
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.tillsync.core.config import settings
from app.tillsync.core.error_catalog import AppError, ErrorCatalog
from app.tillsync.core.logging import log_json
from app.tillsync.core.metrics import metrics
from app.tillsync.db.models import ConflictHistoryEntry, PendingConflict
from app.tillsync.engine.engine import DataIntegrityEngine
from app.tillsync.engine.records import last_updated
from app.tillsync.engine.results import AutoResolvedField, Conflict, ConflictReport, Resolution
from app.tillsync.repos.conflicts import ConflictHistoryRepository, PendingConflictRepository

logger = logging.getLogger("tillsync.sync")

STRATEGY_LOCAL_VALID = "local-valid"
STRATEGY_REMOTE_VALID = "remote-valid"
STRATEGY_MOST_RECENT = "most-recent"
STRATEGY_AUTOMATIC = "automatic"
STRATEGY_MANUAL = "manual"
STRATEGY_DISMISSED_LOCAL = "dismissed-local"


@dataclass
class ReconcileOutcome:
    entity_id: str
    kind: str
    status: str
    strategy: str
    resolved_data: dict | None = None
    pending: PendingConflict | None = None


class SyncReconciliationService:
    def __init__(self, db, engine: DataIntegrityEngine):
        self.engine = engine
        self.pending_repo = PendingConflictRepository(db)
        self.history_repo = ConflictHistoryRepository(db)

    def _require_kind(self, kind: str) -> None:
        if not self.engine.is_known_kind(kind):
            raise AppError(ErrorCatalog.UNKNOWN_ENTITY_KIND, details={"kind": kind})

    def detect(self, kind: str, local: Mapping, remote: Mapping) -> ConflictReport:
        self._require_kind(kind)
        report = self.engine.detect(local, remote, kind)
        metrics.increment_conflicts_detected(kind, len(report.conflicts))
        return report

    def resolve(
        self,
        kind: str,
        local: Mapping,
        remote: Mapping,
        conflicts: list[Conflict] | None = None,
    ) -> Resolution:
        self._require_kind(kind)
        if conflicts is None:
            conflicts = list(self.detect(kind, local, remote).conflicts)
        resolution = self.engine.resolve(conflicts, kind, local, remote)
        metrics.increment_resolution(kind, resolution.strategy)
        return resolution

    def reconcile(self, entity_id: str, kind: str, local: Mapping, remote: Mapping) -> ReconcileOutcome:
        self._require_kind(kind)
        local_valid = self.engine.validate(kind, local).valid
        remote_valid = self.engine.validate(kind, remote).valid

        if remote_valid and not local_valid:
            return self._resolved(entity_id, kind, copy.deepcopy(dict(remote)), STRATEGY_REMOTE_VALID)
        if local_valid and not remote_valid:
            return self._resolved(entity_id, kind, copy.deepcopy(dict(local)), STRATEGY_LOCAL_VALID)

        report = self.detect(kind, local, remote)
        if not report.has_conflicts:
            newer = local if last_updated(local) > last_updated(remote) else remote
            return self._resolved(entity_id, kind, copy.deepcopy(dict(newer)), STRATEGY_MOST_RECENT)

        resolution = self.engine.resolve(report.conflicts, kind, local, remote)
        metrics.increment_resolution(kind, resolution.strategy)
        if resolution.is_automatic:
            self._record_history(entity_id, kind, report.conflicts, strategy=STRATEGY_AUTOMATIC)
            return self._resolved(entity_id, kind, resolution.resolved_data, STRATEGY_AUTOMATIC)

        pending = self.pending_repo.upsert(
            PendingConflict(
                entity_id=entity_id,
                entity_kind=kind,
                local_payload=copy.deepcopy(dict(local)),
                remote_payload=copy.deepcopy(dict(remote)),
                conflicts=[conflict.to_dict() for conflict in resolution.manual_required],
                auto_resolved=[item.to_dict() for item in resolution.auto_resolved],
                created_at=datetime.utcnow(),
            )
        )
        self._record_history(entity_id, kind, report.conflicts, strategy=None)
        log_json(
            logger,
            {
                "event": "conflict_pending",
                "entity_id": entity_id,
                "kind": kind,
                "manual_fields": [conflict.field for conflict in resolution.manual_required],
                "auto_fields": [item.field for item in resolution.auto_resolved],
            },
        )
        return ReconcileOutcome(
            entity_id=entity_id,
            kind=kind,
            status="pending",
            strategy=STRATEGY_MANUAL,
            pending=pending,
        )

    def list_pending(self, *, kind: str | None = None) -> list[PendingConflict]:
        return self.pending_repo.list_pending(kind=kind)

    def get_pending(self, entity_id: str) -> PendingConflict:
        pending = self.pending_repo.get_by_entity_id(entity_id)
        if pending is None:
            raise AppError(ErrorCatalog.CONFLICT_NOT_FOUND, details={"entity_id": entity_id})
        return pending

    def resolve_manually(
        self,
        entity_id: str,
        *,
        selections: Mapping[str, str] | None = None,
        prefer: str | None = None,
    ) -> ReconcileOutcome:
        pending = self.get_pending(entity_id)
        selections = dict(selections or {})
        manual_fields = [Conflict.from_dict(item).field for item in pending.conflicts]
        missing = [name for name in manual_fields if name not in selections and prefer is None]
        if missing:
            raise AppError(ErrorCatalog.SELECTION_INCOMPLETE, details={"missing_fields": missing})

        local = pending.local_payload
        remote = pending.remote_payload
        resolved = copy.deepcopy(dict(local))
        for item in pending.auto_resolved:
            auto = AutoResolvedField.from_dict(item)
            resolved[auto.field] = copy.deepcopy(auto.value)
        for name in manual_fields:
            self._apply_side(resolved, name, selections.get(name, prefer), local, remote)
        for name, side in selections.items():
            if name not in manual_fields:
                self._apply_side(resolved, name, side, local, remote)
        resolved["lastUpdated"] = max(self.engine.clock(), last_updated(local), last_updated(remote))

        return self._finish_pending(pending, resolved, STRATEGY_MANUAL)

    def dismiss(self, entity_id: str) -> ReconcileOutcome:
        pending = self.get_pending(entity_id)
        return self._finish_pending(pending, copy.deepcopy(dict(pending.local_payload)), STRATEGY_DISMISSED_LOCAL)

    def stats(self) -> dict:
        now = datetime.utcnow()
        counts = self.history_repo.stats(since_hour=now - timedelta(hours=1), since_day=now - timedelta(days=1))
        total = counts["total"]
        rate = (counts["resolved"] / total) * 100 if total else 0.0
        return {
            "total": total,
            "pending": self.pending_repo.count(),
            "last_hour": counts["last_hour"],
            "today": counts["today"],
            "resolved": counts["resolved"],
            "resolution_rate": round(rate, 2),
        }

    @staticmethod
    def _apply_side(resolved: dict, name: str, side: str | None, local: Mapping, remote: Mapping) -> None:
        source = local if side == "local" else remote
        if name in source:
            resolved[name] = copy.deepcopy(source[name])
        else:
            resolved.pop(name, None)

    def _finish_pending(self, pending: PendingConflict, resolved: dict, strategy: str) -> ReconcileOutcome:
        validation = self.engine.validate(pending.entity_kind, resolved)
        if not validation.valid:
            raise AppError(
                ErrorCatalog.RESOLVED_RECORD_INVALID,
                details={"entity_id": pending.entity_id, "errors": list(validation.errors)},
            )
        entity_id, kind = pending.entity_id, pending.entity_kind
        self.pending_repo.delete(pending)
        self._mark_history_resolved(entity_id, strategy)
        metrics.increment_resolution(kind, strategy)
        return self._resolved(entity_id, kind, resolved, strategy, clear_pending=False)

    def _resolved(
        self,
        entity_id: str,
        kind: str,
        resolved_data: dict,
        strategy: str,
        *,
        clear_pending: bool = True,
    ) -> ReconcileOutcome:
        if clear_pending:
            stale = self.pending_repo.get_by_entity_id(entity_id)
            if stale is not None:
                self.pending_repo.delete(stale)
                self._mark_history_resolved(entity_id, strategy)
        log_json(
            logger,
            {"event": "conflict_resolved", "entity_id": entity_id, "kind": kind, "strategy": strategy},
        )
        return ReconcileOutcome(
            entity_id=entity_id,
            kind=kind,
            status="resolved",
            strategy=strategy,
            resolved_data=resolved_data,
        )

    def _mark_history_resolved(self, entity_id: str, strategy: str) -> None:
        entry = self.history_repo.latest_unresolved_for_entity(entity_id)
        if entry is not None:
            entry.resolved = True
            entry.resolution_strategy = strategy
            entry.resolved_at = datetime.utcnow()
            self.history_repo.update(entry)

    def _record_history(
        self, entity_id: str, kind: str, conflicts: tuple[Conflict, ...], *, strategy: str | None
    ) -> None:
        now = datetime.utcnow()
        self.history_repo.create(
            ConflictHistoryEntry(
                entity_id=entity_id,
                entity_kind=kind,
                conflict_count=len(conflicts),
                conflict_fields=[conflict.field for conflict in conflicts],
                resolved=strategy is not None,
                resolution_strategy=strategy,
                created_at=now,
                resolved_at=now if strategy is not None else None,
            )
        )
        self.history_repo.trim(settings.CONFLICT_HISTORY_LIMIT)
        log_json(
            logger,
            {
                "event": "conflict_detected",
                "entity_id": entity_id,
                "kind": kind,
                "conflict_count": len(conflicts),
                "conflict_fields": [conflict.field for conflict in conflicts],
            },
        )
