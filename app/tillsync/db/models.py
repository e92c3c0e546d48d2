import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import CHAR, TypeDecorator


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class Base(DeclarativeBase):
    pass


class PendingConflict(Base):
    __tablename__ = "pending_conflicts"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    entity_kind: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    local_payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    remote_payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    conflicts: Mapped[list] = mapped_column(JSON, nullable=False)
    auto_resolved: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class ConflictHistoryEntry(Base):
    __tablename__ = "conflict_history"
    __table_args__ = (Index("ix_conflict_history_entity_created", "entity_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    entity_kind: Mapped[str] = mapped_column(String(50), nullable=False)
    conflict_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    conflict_fields: Mapped[list] = mapped_column(JSON, nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolution_strategy: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
