"""
Feed settings: per-subscriber archive preferences.
Read with defaults when no row exists; writes are read-or-default, overwrite, upsert (last write wins).
"""
import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from inbox_feed.core.constants import DEFAULT_ARCHIVE_PROPOSAL_AFTER_VOTE, DEFAULT_AUTOARCHIVE_AFTER_DAYS
from inbox_feed.core.errors import InvalidArgumentError
from inbox_feed.services.feed_store import FeedItemStore


@dataclass(frozen=True)
class SettingsView:
    subscriber_id: uuid.UUID
    autoarchive_after_days: int = DEFAULT_AUTOARCHIVE_AFTER_DAYS
    archive_proposal_after_vote: bool = DEFAULT_ARCHIVE_PROPOSAL_AFTER_VOTE


def get_settings(db: Session, subscriber_id: uuid.UUID) -> SettingsView:
    """Stored settings, or defaults if the subscriber never saved any."""
    row = FeedItemStore(db).get_settings(subscriber_id)
    if row is None:
        return SettingsView(subscriber_id=subscriber_id)
    return SettingsView(
        subscriber_id=subscriber_id,
        autoarchive_after_days=row.autoarchive_after_days,
        archive_proposal_after_vote=bool(row.archive_proposal_after_vote),
    )


def save_settings(
    db: Session,
    subscriber_id: uuid.UUID,
    autoarchive_after_days: int,
    archive_proposal_after_vote: bool | None = None,
) -> SettingsView:
    """Create or update settings. archive_proposal_after_vote=None keeps the current value."""
    if autoarchive_after_days < 1:
        raise InvalidArgumentError(f"autoarchive_after_days must be >= 1, got {autoarchive_after_days}")
    current = get_settings(db, subscriber_id)
    vote_pref = current.archive_proposal_after_vote if archive_proposal_after_vote is None else archive_proposal_after_vote
    FeedItemStore(db).store_settings(subscriber_id, autoarchive_after_days, vote_pref)
    return SettingsView(
        subscriber_id=subscriber_id,
        autoarchive_after_days=autoarchive_after_days,
        archive_proposal_after_vote=vote_pref,
    )
