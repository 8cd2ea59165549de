"""
Vote reaction: when a subscriber votes on a proposal and has "archive after vote" enabled,
mark their feed item for that proposal as read, then archived.

The preference is owned by the inbox directory (GET /users/{id}/feed-settings). When no
provider is wired or the directory does not return the flag, the locally stored settings
value applies (default off). A directory failure propagates so the vote is redelivered.

Read and archive are two separate updates. If the second fails the item stays
read-but-not-archived; the error propagates and nothing is retried here.
"""
import logging
import uuid

from sqlalchemy.orm import Session

from inbox_feed.services.collaborators import FeedSettingsProvider
from inbox_feed.services.feed_store import FeedItemStore
from inbox_feed.services.filters import ByArchivedStatus, ByProposal, BySubscriber, FeedQuery, SortByCreatedDesc
from inbox_feed.services.settings_service import get_settings

logger = logging.getLogger(__name__)

VOTE_REACTION_DISABLED = "disabled"
VOTE_REACTION_NOT_FOUND = "not_found"
VOTE_REACTION_ARCHIVED = "archived"

ARCHIVE_AFTER_VOTE_KEY = "archive_proposal_after_vote"


def archive_after_vote_enabled(
    db: Session,
    subscriber_id: uuid.UUID,
    settings_provider: FeedSettingsProvider | None = None,
) -> bool:
    if settings_provider is not None:
        remote = settings_provider.get_feed_settings(str(subscriber_id)).get(ARCHIVE_AFTER_VOTE_KEY)
        if isinstance(remote, bool):
            return remote
    return get_settings(db, subscriber_id).archive_proposal_after_vote


def try_autoarchive(
    db: Session,
    subscriber_id: uuid.UUID,
    proposal_id: str,
    settings_provider: FeedSettingsProvider | None = None,
    log: logging.Logger | None = None,
) -> str:
    log = log or logger
    if not archive_after_vote_enabled(db, subscriber_id, settings_provider):
        return VOTE_REACTION_DISABLED

    store = FeedItemStore(db)
    items = store.find(FeedQuery(
        BySubscriber(subscriber_id),
        ByArchivedStatus(archived=False),
        ByProposal(proposal_id),
        SortByCreatedDesc(),
    ))
    if not items:
        # Vote may arrive before the proposal was fanned out to this subscriber
        log.warning("Vote reaction: no feed item for subscriber %s proposal %s", subscriber_id, proposal_id)
        return VOTE_REACTION_NOT_FOUND
    if len(items) > 1:
        log.warning(
            "Vote reaction: %s feed items for subscriber %s proposal %s; using %s",
            len(items), subscriber_id, proposal_id, items[0].id,
        )

    item_id = items[0].id
    store.mark_as_read_by_ids(subscriber_id, [item_id])
    store.mark_as_archived_by_ids(subscriber_id, [item_id])
    return VOTE_REACTION_ARCHIVED
