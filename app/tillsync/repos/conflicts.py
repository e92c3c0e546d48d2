from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select

from app.tillsync.db.models import ConflictHistoryEntry, PendingConflict


class PendingConflictRepository:
    def __init__(self, db):
        self.db = db

    def get_by_entity_id(self, entity_id: str) -> PendingConflict | None:
        stmt = select(PendingConflict).where(PendingConflict.entity_id == entity_id)
        return self.db.execute(stmt).scalars().first()

    def list_pending(self, *, kind: str | None = None) -> list[PendingConflict]:
        stmt = select(PendingConflict).order_by(PendingConflict.created_at, PendingConflict.entity_id)
        if kind:
            stmt = stmt.where(PendingConflict.entity_kind == kind)
        return list(self.db.execute(stmt).scalars().all())

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(PendingConflict)).scalar_one()

    def upsert(self, record: PendingConflict) -> PendingConflict:
        existing = self.get_by_entity_id(record.entity_id)
        if existing is not None:
            existing.entity_kind = record.entity_kind
            existing.local_payload = record.local_payload
            existing.remote_payload = record.remote_payload
            existing.conflicts = record.conflicts
            existing.auto_resolved = record.auto_resolved
            existing.created_at = record.created_at or datetime.utcnow()
            record = existing
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete(self, record: PendingConflict) -> None:
        self.db.delete(record)
        self.db.commit()


class ConflictHistoryRepository:
    def __init__(self, db):
        self.db = db

    def create(self, entry: ConflictHistoryEntry) -> ConflictHistoryEntry:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def latest_unresolved_for_entity(self, entity_id: str) -> ConflictHistoryEntry | None:
        stmt = (
            select(ConflictHistoryEntry)
            .where(ConflictHistoryEntry.entity_id == entity_id, ConflictHistoryEntry.resolved.is_(False))
            .order_by(ConflictHistoryEntry.created_at.desc())
        )
        return self.db.execute(stmt).scalars().first()

    def update(self, entry: ConflictHistoryEntry) -> ConflictHistoryEntry:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def trim(self, keep: int) -> int:
        keep_ids = select(ConflictHistoryEntry.id).order_by(ConflictHistoryEntry.created_at.desc()).limit(keep)
        result = self.db.execute(
            delete(ConflictHistoryEntry)
            .where(ConflictHistoryEntry.id.notin_(keep_ids.scalar_subquery()))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount or 0

    def stats(self, *, since_hour: datetime, since_day: datetime) -> dict[str, int]:
        total = self.db.execute(select(func.count()).select_from(ConflictHistoryEntry)).scalar_one()
        last_hour = self.db.execute(
            select(func.count()).select_from(ConflictHistoryEntry).where(ConflictHistoryEntry.created_at >= since_hour)
        ).scalar_one()
        today = self.db.execute(
            select(func.count()).select_from(ConflictHistoryEntry).where(ConflictHistoryEntry.created_at >= since_day)
        ).scalar_one()
        resolved = self.db.execute(
            select(func.count()).select_from(ConflictHistoryEntry).where(ConflictHistoryEntry.resolved.is_(True))
        ).scalar_one()
        return {"total": total, "last_hour": last_hour, "today": today, "resolved": resolved}
