"""
User feed reads and explicit read/archive transitions.

get_user_feed composes fragments once and runs three statements against them:
  items        = scope + archived filter + read filter + actuality sort + page
  total_count  = scope + archived filter + read filter (+ optional spam/canceled exclusion)
  unread_count = total_count predicates + unread
so unread_count <= total_count for every combination of states.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Literal

from sqlalchemy.orm import Session

from inbox_feed.config import settings
from inbox_feed.core.constants import MARK_BY_TIME_SLACK_SECONDS
from inbox_feed.core.errors import InvalidArgumentError
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.feed_store import FeedItemStore, read_cutoff
from inbox_feed.services.filters import (
    ByArchivedStatus,
    ByReadStatus,
    BySubscriber,
    ExcludeCanceled,
    ExcludeSpam,
    FeedQuery,
    Fragment,
    Paginate,
    SortByActuality,
)

# include: no filter; exclude: drop items in that state; exclude_other: keep only items in that state
StateFilter = Literal["include", "exclude", "exclude_other"]
STATE_INCLUDE = "include"
STATE_EXCLUDE = "exclude"
STATE_EXCLUDE_OTHER = "exclude_other"


@dataclass
class FeedPage:
    items: list[FeedItem] = field(default_factory=list)
    total_count: int = 0
    unread_count: int = 0


def read_state_fragments(state: StateFilter) -> list[Fragment]:
    if state == STATE_EXCLUDE:
        return [ByReadStatus(read=False)]
    if state == STATE_EXCLUDE_OTHER:
        return [ByReadStatus(read=True)]
    return []


def archived_state_fragments(state: StateFilter) -> list[Fragment]:
    if state == STATE_EXCLUDE:
        return [ByArchivedStatus(archived=False)]
    if state == STATE_EXCLUDE_OTHER:
        return [ByArchivedStatus(archived=True)]
    return []


def content_fragments(exclude_spam: bool, exclude_canceled: bool) -> list[Fragment]:
    """Report views drop spam and canceled proposals; the personal feed keeps them by default."""
    fragments: list[Fragment] = []
    if exclude_spam:
        fragments.append(ExcludeSpam())
    if exclude_canceled:
        fragments.append(ExcludeCanceled())
    return fragments


def page_limit(limit: int | None) -> int:
    if not limit or limit <= 0:
        return settings.feed_page_limit
    return min(limit, settings.feed_max_page_limit)


def get_user_feed(
    db: Session,
    subscriber_id: uuid.UUID,
    read_state: StateFilter = STATE_INCLUDE,
    archived_state: StateFilter = STATE_INCLUDE,
    limit: int | None = None,
    offset: int = 0,
    exclude_spam: bool = False,
    exclude_canceled: bool = False,
) -> FeedPage:
    store = FeedItemStore(db)
    filtered = FeedQuery(
        BySubscriber(subscriber_id),
        *archived_state_fragments(archived_state),
        *read_state_fragments(read_state),
        *content_fragments(exclude_spam, exclude_canceled),
    )
    total_count = store.count(filtered)
    unread_count = store.count(filtered.with_(ByReadStatus(read=False)))
    items = store.find(filtered.with_(SortByActuality(), Paginate(page_limit(limit), max(offset, 0))))
    return FeedPage(items=items, total_count=total_count, unread_count=unread_count)


# --- Explicit transitions: by id list, or by "before" cutoff ---


def _require_target(ids: list[uuid.UUID] | None, before: datetime | None) -> None:
    if not ids and before is None:
        raise InvalidArgumentError("either ids or before is required")


def mark_as_read(
    db: Session,
    subscriber_id: uuid.UUID,
    ids: Iterable[uuid.UUID] | None = None,
    before: datetime | None = None,
) -> int:
    ids = list(ids or [])
    _require_target(ids, before)
    store = FeedItemStore(db)
    if ids:
        return store.mark_as_read_by_ids(subscriber_id, ids)
    return store.mark_as_read_by_time(subscriber_id, read_cutoff(before, MARK_BY_TIME_SLACK_SECONDS))


def mark_as_unread(
    db: Session,
    subscriber_id: uuid.UUID,
    ids: Iterable[uuid.UUID] | None = None,
    before: datetime | None = None,
) -> int:
    ids = list(ids or [])
    _require_target(ids, before)
    store = FeedItemStore(db)
    if ids:
        return store.mark_as_unread_by_ids(subscriber_id, ids)
    # mirror of the read slack: items touched in the last second before the cutoff stay read
    return store.mark_as_unread_by_time(subscriber_id, read_cutoff(before, -MARK_BY_TIME_SLACK_SECONDS))


def mark_as_archived(
    db: Session,
    subscriber_id: uuid.UUID,
    ids: Iterable[uuid.UUID] | None = None,
    before: datetime | None = None,
) -> int:
    ids = list(ids or [])
    _require_target(ids, before)
    store = FeedItemStore(db)
    if ids:
        return store.mark_as_archived_by_ids(subscriber_id, ids)
    return store.mark_as_archived_by_time(subscriber_id, before)


def mark_as_unarchived(
    db: Session,
    subscriber_id: uuid.UUID,
    ids: Iterable[uuid.UUID] | None = None,
    before: datetime | None = None,
) -> int:
    ids = list(ids or [])
    _require_target(ids, before)
    store = FeedItemStore(db)
    if ids:
        return store.mark_as_unarchived_by_ids(subscriber_id, ids)
    return store.mark_as_unarchived_by_time(subscriber_id, before)
