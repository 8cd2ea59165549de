"""Per-subscriber feed preferences. Created lazily on first write; readers fall back to defaults."""
from sqlalchemy import Boolean, Column, DateTime, Integer, Uuid
from sqlalchemy.sql import expression, func

from inbox_feed.db.base import Base


class FeedSettings(Base):
    __tablename__ = "feed_settings"

    subscriber_id = Column(Uuid, primary_key=True)
    autoarchive_after_days = Column(Integer, nullable=False, server_default="7")
    archive_proposal_after_vote = Column(Boolean, nullable=False, server_default=expression.false())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
