"""Feed items: one personalized row per (subscriber, dao, proposal).

- snapshot: JSONB blob of proposal/DAO attributes at event time (state, end, created, spam, title, dao).
- timeline: JSONB array of {created_at, action}, reconciled order.
- read_at / archived_at: NULL = unread / not archived. deleted_at: soft delete.
Indexes support: "my feed" (subscriber + live), unread counts, and the hourly auto-archive sweep.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "feed_items",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("subscriber_id", UUID(as_uuid=True), nullable=False),
        sa.Column("dao_id", UUID(as_uuid=True), nullable=False),
        sa.Column("proposal_id", sa.String(128), nullable=False, server_default=""),
        sa.Column("discussion_id", sa.String(128), nullable=False, server_default=""),
        sa.Column("type", sa.String(16), nullable=False, server_default=""),
        sa.Column("action", sa.String(64), nullable=False, server_default=""),
        sa.Column("snapshot", JSONB, nullable=True),
        sa.Column("timeline", JSONB, nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unarchived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subscriber_id", "dao_id", "proposal_id", name="uq_feed_items_subscriber_dao_proposal"),
    )
    op.create_index("ix_feed_items_subscriber_id", "feed_items", ["subscriber_id"], unique=False)
    op.create_index("ix_feed_items_read_at", "feed_items", ["read_at"], unique=False)
    op.create_index("ix_feed_items_archived_at", "feed_items", ["archived_at"], unique=False)
    op.create_index("ix_feed_items_deleted_at", "feed_items", ["deleted_at"], unique=False)
    # Sweep candidates: live, not archived rows. No snapshot expression, so odd blobs never fail inserts
    op.create_index(
        "ix_feed_items_autoarchive",
        "feed_items",
        ["subscriber_id"],
        unique=False,
        postgresql_where=sa.text("archived_at IS NULL AND deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("ix_feed_items_autoarchive", table_name="feed_items")
    op.drop_index("ix_feed_items_deleted_at", table_name="feed_items")
    op.drop_index("ix_feed_items_archived_at", table_name="feed_items")
    op.drop_index("ix_feed_items_read_at", table_name="feed_items")
    op.drop_index("ix_feed_items_subscriber_id", table_name="feed_items")
    op.drop_table("feed_items")
