"""conflict history

Revision ID: 0002_conflict_history
Revises: 0001_initial
Create Date: 2026-03-09 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_conflict_history"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def upgrade() -> None:
    op.create_table(
        "conflict_history",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("entity_kind", sa.String(length=50), nullable=False),
        sa.Column("conflict_count", sa.Integer(), nullable=False),
        sa.Column("conflict_fields", sa.JSON(), nullable=False),
        sa.Column("resolved", sa.Boolean(), nullable=False),
        sa.Column("resolution_strategy", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_conflict_history_created_at", "conflict_history", ["created_at"])
    op.create_index("ix_conflict_history_entity_created", "conflict_history", ["entity_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_conflict_history_entity_created", table_name="conflict_history")
    op.drop_index("ix_conflict_history_created_at", table_name="conflict_history")
    op.drop_table("conflict_history")
