"""
Test builders and fake collaborators.

SQLite drops tzinfo on DateTime columns; values read back are naive UTC (see naive()).
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from inbox_feed.core.errors import DependencyError
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.core_api.types import CoreFeedItem
from inbox_feed.services.timeline import PROPOSAL_CREATED, TYPE_PROPOSAL

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# BUILDERS
# =============================================================================


def naive(ts: datetime) -> datetime:
    """Compare with values read back from SQLite."""
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def days_ago(days: float, now: datetime = T0) -> datetime:
    return now - timedelta(days=days)


def make_snapshot(
    state: str | None = "active",
    end: datetime | None = None,
    created: datetime | None = None,
    **extra: Any,
) -> dict[str, Any]:
    snapshot: dict[str, Any] = dict(extra)
    if state is not None:
        snapshot["state"] = state
    if end is not None:
        snapshot["end"] = int(end.timestamp())
    if created is not None:
        snapshot["created"] = int(created.timestamp())
    return snapshot


def make_item(
    subscriber_id: uuid.UUID,
    *,
    dao_id: uuid.UUID | None = None,
    proposal_id: str | None = None,
    snapshot: dict[str, Any] | None = None,
    action: str = PROPOSAL_CREATED,
    created_at: datetime = T0,
    item_id: uuid.UUID | None = None,
) -> FeedItem:
    return FeedItem(
        id=item_id or uuid.uuid4(),
        subscriber_id=subscriber_id,
        dao_id=dao_id or uuid.uuid4(),
        proposal_id=proposal_id if proposal_id is not None else f"proposal-{uuid.uuid4().hex[:8]}",
        discussion_id="",
        type=TYPE_PROPOSAL,
        action=action,
        snapshot=snapshot if snapshot is not None else make_snapshot(),
        timeline=[{"created_at": created_at.isoformat(), "action": action}],
        created_at=created_at,
    )


def make_core_item(
    dao_id: uuid.UUID,
    proposal_id: str,
    *,
    created_at: datetime = T0,
    state: str = "active",
    action: str = PROPOSAL_CREATED,
) -> CoreFeedItem:
    return CoreFeedItem(
        id=uuid.uuid4(),
        dao_id=dao_id,
        proposal_id=proposal_id,
        discussion_id="",
        type=TYPE_PROPOSAL,
        action=action,
        snapshot=make_snapshot(state=state, created=created_at),
        timeline=[{"created_at": created_at.isoformat(), "action": action}],
        created_at=created_at,
    )


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


class FakeDirectory:
    def __init__(self, subscribers: dict[str, list[str]] | None = None, error: Exception | None = None):
        self.subscribers = subscribers or {}
        self.error = error
        self.calls: list[str] = []
        self.feed_settings: dict[str, dict[str, Any]] = {}

    def find_subscribers(self, dao_id: str) -> list[str]:
        self.calls.append(dao_id)
        if self.error is not None:
            raise self.error
        return list(self.subscribers.get(dao_id, []))

    def get_feed_settings(self, user_id: str) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        return dict(self.feed_settings.get(user_id, {}))


class FakeContent:
    def __init__(self):
        self.active: dict[str, list[CoreFeedItem]] = {}
        self.inactive: dict[str, list[CoreFeedItem]] = {}
        self.proposals: dict[str, dict[str, Any]] = {}
        self.daos: dict[str, dict[str, Any]] = {}
        self.metadata_failures = 0
        self.metadata_calls = 0
        self.feed_calls: list[tuple[tuple[str, ...], bool | None, int]] = []

    def get_feed_by_filters(self, dao_ids, *, is_active=None, types=None, limit=200):
        self.feed_calls.append((tuple(dao_ids), is_active, limit))
        source = self.active if is_active else self.inactive
        out: list[CoreFeedItem] = []
        for dao in dao_ids:
            out.extend(source.get(dao, []))
        return out[:limit]

    def get_proposal(self, proposal_id: str) -> dict[str, Any]:
        self.metadata_calls += 1
        if self.metadata_failures > 0:
            self.metadata_failures -= 1
            raise DependencyError("content service unavailable")
        return self.proposals.get(proposal_id, {})

    def get_dao(self, dao_id: str) -> dict[str, Any]:
        return self.daos.get(dao_id, {})


class FakePublisher:
    def __init__(self, fail_for: set[str] | None = None, raise_for: set[str] | None = None):
        self.sent: list[tuple[str, str, str]] = []
        self.fail_for = fail_for or set()
        self.raise_for = raise_for or set()

    def publish_push(self, user_id: str, title: str, body: str) -> bool:
        if user_id in self.raise_for:
            raise RuntimeError("push sink down")
        if user_id in self.fail_for:
            return False
        self.sent.append((user_id, title, body))
        return True
