"""
Fanout: one normalized feed event -> one personalized, upserted row per DAO subscriber.

Per event:
  1. DAO-level events (no proposal, no discussion) are ignored.
  2. Subscribers come from the directory; a directory failure aborts the event (redelivered).
  3. Per subscriber, in directory order: parse id (malformed id aborts the rest of the batch),
     personalize, upsert under row lock, then maybe publish a push.
     A subscriber without an existing row does not get a new one when the proposal is already
     closed (snapshot state known and not active/pending).
  4. Push title/body are fetched once per batch, on first need; push failures are logged only.
Store errors propagate so the event is not acknowledged.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from inbox_feed.core.errors import FeedError, MalformedSubscriberError
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.collaborators import ContentService, PushPublisher, SubscriberDirectory
from inbox_feed.services.feed_store import UPSERT_CREATED, UPSERT_SKIPPED, FeedItemStore
from inbox_feed.services.push import allow_sending, build_push_content
from inbox_feed.services.snapshot import ProposalSnapshot

logger = logging.getLogger(__name__)


@dataclass
class FanoutResult:
    subscribers: int = 0
    created: int = 0
    updated: int = 0
    skipped_closed: int = 0
    pushed: int = 0
    dao_event: bool = False


def personal_item_id(source_id: uuid.UUID, subscriber_id: uuid.UUID) -> uuid.UUID:
    """Stable row id per (source event item, subscriber); same input -> same id on redelivery."""
    return uuid.uuid5(source_id, str(subscriber_id))


def personalize(source: FeedItem, subscriber_id: uuid.UUID, now: datetime | None = None) -> FeedItem:
    """Copy of the event content owned by one subscriber; created_at defaults to now."""
    return FeedItem(
        id=personal_item_id(source.id, subscriber_id),
        subscriber_id=subscriber_id,
        dao_id=source.dao_id,
        proposal_id=source.proposal_id or "",
        discussion_id=source.discussion_id or "",
        type=source.type,
        action=source.action,
        snapshot=source.snapshot,
        timeline=list(source.timeline or []),
        created_at=source.created_at or now or datetime.now(timezone.utc),
    )


def _text_field(meta: Any, key: str) -> str | None:
    value = meta.get(key) if isinstance(meta, dict) else None
    return (value.strip() or None) if isinstance(value, str) else None


class FanoutProcessor:
    def __init__(
        self,
        directory: SubscriberDirectory,
        content: ContentService,
        publisher: PushPublisher,
        log: logging.Logger | None = None,
    ) -> None:
        self._directory = directory
        self._content = content
        self._publisher = publisher
        self._log = log or logger

    def process(self, db: Session, event: FeedItem) -> FanoutResult:
        result = FanoutResult()
        if event.is_dao():
            result.dao_event = True
            return result

        subscribers = self._directory.find_subscribers(str(event.dao_id))
        result.subscribers = len(subscribers)

        store = FeedItemStore(db)
        snapshot = ProposalSnapshot(event.snapshot)
        allow_create = snapshot.state is None or snapshot.is_active()
        push_eligible = allow_sending(event.action)
        push_content: tuple[str, str] | None = None

        for raw_id in subscribers:
            try:
                subscriber_id = uuid.UUID(str(raw_id))
            except ValueError as e:
                raise MalformedSubscriberError(f"unable to parse subscriber id {raw_id!r}") from e

            outcome = store.create_or_update(personalize(event, subscriber_id), allow_create=allow_create)
            if outcome == UPSERT_SKIPPED:
                result.skipped_closed += 1
                continue
            if outcome == UPSERT_CREATED:
                result.created += 1
            else:
                result.updated += 1

            if not push_eligible:
                continue
            if push_content is None:
                push_content = self._resolve_push_content(event, snapshot)
                if push_content is None:
                    continue
            if self._publish(str(subscriber_id), push_content):
                result.pushed += 1

        return result

    def _resolve_push_content(self, event: FeedItem, snapshot: ProposalSnapshot) -> tuple[str, str] | None:
        """(title, body) from content metadata; None on failure so the next subscriber retries."""
        try:
            proposal = self._content.get_proposal(event.proposal_id)
            dao = self._content.get_dao(str(event.dao_id))
            return build_push_content(
                event.action,
                _text_field(dao, "name") or snapshot.dao_name,
                _text_field(proposal, "title") or snapshot.title,
            )
        except FeedError as e:
            self._log.warning("Push content for proposal %s unavailable: %s", event.proposal_id, e)
        except Exception as e:
            self._log.warning("Push content for proposal %s failed: %s", event.proposal_id, e, exc_info=True)
        return None

    def _publish(self, user_id: str, content: tuple[str, str]) -> bool:
        title, body = content
        try:
            return self._publisher.publish_push(user_id, title, body)
        except Exception as e:
            self._log.warning("Push publish for %s failed: %s", user_id, e, exc_info=True)
            return False
