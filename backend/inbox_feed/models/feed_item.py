"""Personalized feed item: one row per (subscriber, dao, proposal).

snapshot: opaque proposal/DAO attributes at event time (read via services.snapshot only).
timeline: JSON array of {"created_at": ISO-8601, "action": str}, canonical order.
read_at / archived_at: NULL = unread / not archived. unarchived_at: last explicit unarchive.
deleted_at: soft delete (administrative); deleted rows are invisible to every query.
"""
from sqlalchemy import JSON, Column, DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from inbox_feed.db.base import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class FeedItem(Base):
    __tablename__ = "feed_items"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "dao_id", "proposal_id", name="uq_feed_items_subscriber_dao_proposal"),
    )

    id = Column(Uuid, primary_key=True)
    subscriber_id = Column(Uuid, nullable=False, index=True)
    dao_id = Column(Uuid, nullable=False)
    proposal_id = Column(String(128), nullable=False, server_default="")
    discussion_id = Column(String(128), nullable=False, server_default="")
    type = Column(String(16), nullable=False, server_default="")  # 'dao' | 'proposal'
    action = Column(String(64), nullable=False, server_default="")
    snapshot = Column(JSONType, nullable=True)
    timeline = Column(JSONType, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True, index=True)
    archived_at = Column(DateTime(timezone=True), nullable=True, index=True)
    unarchived_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def is_dao(self) -> bool:
        """DAO-level item: no proposal and no discussion; never fanned out."""
        return not self.proposal_id and not self.discussion_id
