"""
Backfill on subscribe: populate a new subscriber's feed from the content service.

Active proposal items for the subscribed DAO(s) come first (up to backfill_max_items).
If that yields fewer than backfill_min_items, inactive (historical) items are added,
interleaved round-robin across DAOs so one busy DAO does not crowd out the others.
Items are upserted most recent first. A failed item is logged and skipped; the next
subscribe (or a later fanout) fills it in.
"""
import logging
import uuid
from datetime import datetime, timezone
from itertools import zip_longest
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inbox_feed.config import settings
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.collaborators import ContentService
from inbox_feed.services.core_api.types import CoreFeedItem
from inbox_feed.services.fanout import personal_item_id
from inbox_feed.services.feed_store import FeedItemStore
from inbox_feed.services.timeline import (
    TYPE_PROPOSAL,
    parse_action,
    parse_type,
    reconcile_timeline,
    timeline_from_json,
    timeline_to_json,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _key(item: CoreFeedItem) -> tuple[uuid.UUID, str]:
    return item.dao_id, item.proposal_id


def round_robin(groups: Iterable[list[CoreFeedItem]], limit: int) -> list[CoreFeedItem]:
    """First of each group, then second of each group, ... up to limit items."""
    out: list[CoreFeedItem] = []
    for row in zip_longest(*groups):
        for item in row:
            if item is None:
                continue
            if len(out) >= limit:
                return out
            out.append(item)
    return out


def to_feed_item(subscriber_id: uuid.UUID, item: CoreFeedItem) -> FeedItem:
    timeline = reconcile_timeline(timeline_from_json(item.timeline))
    return FeedItem(
        id=personal_item_id(item.id, subscriber_id),
        subscriber_id=subscriber_id,
        dao_id=item.dao_id,
        proposal_id=item.proposal_id,
        discussion_id=item.discussion_id,
        type=parse_type(item.type),
        action=parse_action(item.action),
        snapshot=item.snapshot,
        timeline=timeline_to_json(timeline),
        created_at=item.created_at or datetime.now(timezone.utc),
    )


def collect_backfill_items(
    content: ContentService,
    dao_ids: list[uuid.UUID],
    *,
    max_items: int,
    min_items: int,
) -> list[CoreFeedItem]:
    """Active items, topped up with inactive ones round-robin; deduped by (dao, proposal)."""
    dao_strs = [str(d) for d in dao_ids]
    items = content.get_feed_by_filters(dao_strs, is_active=True, types=[TYPE_PROPOSAL], limit=max_items)
    seen = {_key(i) for i in items}

    missing = min_items - len(items)
    if missing > 0:
        per_dao: list[list[CoreFeedItem]] = []
        for dao in dao_strs:
            inactive = content.get_feed_by_filters([dao], is_active=False, types=[TYPE_PROPOSAL], limit=missing)
            per_dao.append([i for i in inactive if _key(i) not in seen])
        for i in round_robin(per_dao, missing):
            if _key(i) not in seen:
                seen.add(_key(i))
                items.append(i)

    return [i for i in items if i.proposal_id or i.discussion_id]


def subscribe(
    db: Session,
    content: ContentService,
    subscriber_id: uuid.UUID,
    dao_ids: list[uuid.UUID],
    *,
    max_items: int | None = None,
    min_items: int | None = None,
) -> int:
    """Backfill subscriber_id's feed for dao_ids. Returns number of items upserted."""
    if not dao_ids:
        return 0
    items = collect_backfill_items(
        content,
        dao_ids,
        max_items=max_items or settings.backfill_max_items,
        min_items=settings.backfill_min_items if min_items is None else min_items,
    )
    items.sort(key=lambda i: i.created_at or _EPOCH, reverse=True)

    store = FeedItemStore(db)
    saved = 0
    for item in items:
        try:
            store.create_or_update(to_feed_item(subscriber_id, item))
        except SQLAlchemyError as e:
            logger.error("Backfill: unable to save feed item %s for %s: %s", item.id, subscriber_id, e)
            continue
        saved += 1
    logger.info("Backfill: %s items for subscriber %s (%s daos)", saved, subscriber_id, len(dao_ids))
    return saved
