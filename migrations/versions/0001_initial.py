"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-03-02 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
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
        "pending_conflicts",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("entity_kind", sa.String(length=50), nullable=False),
        sa.Column("local_payload", sa.JSON(), nullable=False),
        sa.Column("remote_payload", sa.JSON(), nullable=False),
        sa.Column("conflicts", sa.JSON(), nullable=False),
        sa.Column("auto_resolved", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("entity_id", name="uq_pending_conflicts_entity_id"),
    )
    op.create_index("ix_pending_conflicts_entity_kind", "pending_conflicts", ["entity_kind"])


def downgrade() -> None:
    op.drop_index("ix_pending_conflicts_entity_kind", table_name="pending_conflicts")
    op.drop_table("pending_conflicts")
