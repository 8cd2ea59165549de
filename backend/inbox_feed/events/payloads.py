"""Inbound event bodies and conversion of FeedUpdated into a normalized feed item."""
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.timeline import parse_action, parse_type, reconcile_timeline, timeline_to_json


class TimelineItemPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    created_at: datetime
    action: str


class FeedUpdatedPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: uuid.UUID
    dao_id: uuid.UUID
    proposal_id: str = ""
    discussion_id: str = ""
    type: str = ""
    action: str = ""
    snapshot: Any = None
    timeline: list[TimelineItemPayload] = Field(default_factory=list)


class VoteCreatedPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: uuid.UUID
    proposal_id: str = Field(..., min_length=1)


class FeedSettingsUpdatedPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subscriber_id: uuid.UUID
    autoarchive_after_days: int = Field(..., ge=1)
    archive_proposal_after_vote: bool | None = None


def to_feed_item(payload: FeedUpdatedPayload, now: datetime | None = None) -> FeedItem:
    """
    Normalized (not yet personalized) feed item.
    created_at is the timestamp of the last timeline entry as delivered (now if empty).
    """
    now = now or datetime.now(timezone.utc)
    created_at = payload.timeline[-1].created_at if payload.timeline else now
    timeline = reconcile_timeline((t.created_at, t.action) for t in payload.timeline)
    return FeedItem(
        id=payload.id,
        dao_id=payload.dao_id,
        proposal_id=payload.proposal_id or "",
        discussion_id=payload.discussion_id or "",
        type=parse_type(payload.type),
        action=parse_action(payload.action),
        snapshot=payload.snapshot,
        timeline=timeline_to_json(timeline),
        created_at=created_at,
        updated_at=now,
    )
