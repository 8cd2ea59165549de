"""
FeedItemStore: the only writer of feed_items and feed_settings.

- create_or_update: row lock on the existing (subscriber, dao, proposal) row, then
  INSERT ... ON CONFLICT DO UPDATE, one transaction. Identity (id) never changes on conflict.
- mark_*: direct column updates scoped to one subscriber's live rows; last write wins.
- auto_archive: one set-based UPDATE for expired items (proposal end + grace days in the past).
Every method commits (or rolls back and re-raises) its own transaction.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inbox_feed.core.constants import DEFAULT_AUTOARCHIVE_AFTER_DAYS, SECONDS_PER_DAY
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.models.feed_settings import FeedSettings
from inbox_feed.services.filters import FeedQuery
from inbox_feed.services.snapshot import KEY_END

logger = logging.getLogger(__name__)

UPSERT_CREATED = "created"
UPSERT_UPDATED = "updated"
UPSERT_SKIPPED = "skipped"

_FEED_ITEM_KEY = ["subscriber_id", "dao_id", "proposal_id"]


def _insert_for(db: Session):
    """Dialect insert with on_conflict_do_update (Postgres in prod, SQLite in tests)."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"upsert not supported for dialect {dialect}")


def snapshot_end_epoch(dialect_name: str):
    """snapshot.end as a float; on Postgres a non-numeric end reads as NULL instead of failing the cast."""
    end_ts = FeedItem.snapshot[KEY_END].as_float()
    if dialect_name != "postgresql":
        return end_ts
    return case((func.jsonb_typeof(FeedItem.snapshot[KEY_END]) == "number", end_ts), else_=None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedItemStore:
    """Session-scoped repository for feed items and feed settings."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Upsert
    # ------------------------------------------------------------------

    def create_or_update(self, item: FeedItem, *, allow_create: bool = True) -> str:
        """
        Upsert one personalized item keyed by (subscriber_id, dao_id, proposal_id).
        Concurrent upserts for the same key serialize on the row lock.
        allow_create=False: only update an existing row; returns UPSERT_SKIPPED if none.
        """
        now = _utcnow()
        try:
            existing_id = self.db.execute(
                select(FeedItem.id)
                .where(
                    FeedItem.subscriber_id == item.subscriber_id,
                    FeedItem.dao_id == item.dao_id,
                    FeedItem.proposal_id == (item.proposal_id or ""),
                )
                .with_for_update()
            ).scalar_one_or_none()

            if existing_id is None and not allow_create:
                self.db.rollback()
                return UPSERT_SKIPPED

            created_at = item.created_at or now
            insert = _insert_for(self.db)
            stmt = insert(FeedItem).values(
                id=item.id or uuid.uuid4(),
                subscriber_id=item.subscriber_id,
                dao_id=item.dao_id,
                proposal_id=item.proposal_id or "",
                discussion_id=item.discussion_id or "",
                type=item.type or "",
                action=item.action or "",
                snapshot=item.snapshot,
                timeline=item.timeline or [],
                created_at=created_at,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=_FEED_ITEM_KEY,
                set_={
                    "snapshot": stmt.excluded.snapshot,
                    "timeline": stmt.excluded.timeline,
                    "action": stmt.excluded.action,
                    "created_at": stmt.excluded.created_at,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return UPSERT_CREATED if existing_id is None else UPSERT_UPDATED

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find(self, query: FeedQuery) -> list[FeedItem]:
        return list(self.db.scalars(query.to_select()).all())

    def count(self, query: FeedQuery) -> int:
        return int(self.db.scalar(query.to_count()) or 0)

    # ------------------------------------------------------------------
    # Read / archive lifecycle
    # ------------------------------------------------------------------

    def _live_rows(self, subscriber_id: uuid.UUID):
        return self.db.query(FeedItem).filter(
            FeedItem.subscriber_id == subscriber_id,
            FeedItem.deleted_at.is_(None),
        )

    def _update(self, q, values: dict) -> int:
        try:
            updated = q.update(values, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return updated

    def mark_as_read_by_ids(self, subscriber_id: uuid.UUID, ids: Iterable[uuid.UUID]) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.id.in_(list(ids)))
        return self._update(q, {FeedItem.read_at: _utcnow()})

    def mark_as_unread_by_ids(self, subscriber_id: uuid.UUID, ids: Iterable[uuid.UUID]) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.id.in_(list(ids)))
        return self._update(q, {FeedItem.read_at: None})

    def mark_as_read_by_time(self, subscriber_id: uuid.UUID, before: datetime) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.updated_at <= before)
        return self._update(q, {FeedItem.read_at: _utcnow()})

    def mark_as_unread_by_time(self, subscriber_id: uuid.UUID, before: datetime) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.updated_at <= before)
        return self._update(q, {FeedItem.read_at: None})

    def mark_as_archived_by_ids(self, subscriber_id: uuid.UUID, ids: Iterable[uuid.UUID]) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.id.in_(list(ids)))
        return self._update(q, {FeedItem.archived_at: _utcnow()})

    def mark_as_unarchived_by_ids(self, subscriber_id: uuid.UUID, ids: Iterable[uuid.UUID]) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.id.in_(list(ids)))
        return self._update(q, {FeedItem.archived_at: None, FeedItem.unarchived_at: _utcnow()})

    def mark_as_archived_by_time(self, subscriber_id: uuid.UUID, before: datetime) -> int:
        q = self._live_rows(subscriber_id).filter(FeedItem.created_at <= before)
        return self._update(q, {FeedItem.archived_at: _utcnow()})

    def mark_as_unarchived_by_time(self, subscriber_id: uuid.UUID, before: datetime) -> int:
        q = self._live_rows(subscriber_id).filter(
            FeedItem.created_at <= before,
            FeedItem.archived_at.is_not(None),
        )
        return self._update(q, {FeedItem.archived_at: None, FeedItem.unarchived_at: _utcnow()})

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def auto_archive(self, now: datetime | None = None) -> int:
        """
        Archive live, not-archived items whose snapshot end is older than the subscriber's
        autoarchive_after_days (default when no settings row). One UPDATE for all rows.
        """
        now = now or _utcnow()
        grace_days = func.coalesce(FeedSettings.autoarchive_after_days, DEFAULT_AUTOARCHIVE_AFTER_DAYS)
        end_ts = snapshot_end_epoch(self.db.get_bind().dialect.name)
        expired_ids = (
            select(FeedItem.id)
            .outerjoin(FeedSettings, FeedSettings.subscriber_id == FeedItem.subscriber_id)
            .where(
                FeedItem.deleted_at.is_(None),
                FeedItem.archived_at.is_(None),
                end_ts.is_not(None),
                end_ts < now.timestamp() - grace_days * SECONDS_PER_DAY,
            )
        )
        try:
            result = self.db.execute(
                update(FeedItem)
                .where(FeedItem.id.in_(expired_ids))
                .values(archived_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self, subscriber_id: uuid.UUID) -> FeedSettings | None:
        return self.db.get(FeedSettings, subscriber_id)

    def store_settings(
        self,
        subscriber_id: uuid.UUID,
        autoarchive_after_days: int,
        archive_proposal_after_vote: bool,
    ) -> None:
        now = _utcnow()
        insert = _insert_for(self.db)
        stmt = insert(FeedSettings).values(
            subscriber_id=subscriber_id,
            autoarchive_after_days=autoarchive_after_days,
            archive_proposal_after_vote=archive_proposal_after_vote,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["subscriber_id"],
            set_={
                "autoarchive_after_days": stmt.excluded.autoarchive_after_days,
                "archive_proposal_after_vote": stmt.excluded.archive_proposal_after_vote,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise


def read_cutoff(before: datetime, slack_seconds: int) -> datetime:
    """Client cutoffs lack sub-second precision; shift by slack (positive widens, negative narrows)."""
    return before + timedelta(seconds=slack_seconds)
