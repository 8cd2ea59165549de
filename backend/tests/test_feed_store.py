"""
FeedItemStore tests: upsert identity, lifecycle marks, and the auto-archive sweep.

INVARIANTS:
- At most one row per (subscriber, dao, proposal)
- Row id never changes after first insert
- Soft-deleted and already-archived rows are never touched by the sweep
"""
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.feed_store import (
    UPSERT_CREATED,
    UPSERT_SKIPPED,
    UPSERT_UPDATED,
    read_cutoff,
    snapshot_end_epoch,
)
from inbox_feed.services.timeline import PROPOSAL_UPDATED

from factories import T0, days_ago, make_item, make_snapshot, naive


def _rows(db, subscriber_id):
    db.expire_all()
    return list(db.scalars(select(FeedItem).where(FeedItem.subscriber_id == subscriber_id)).all())


def _soft_delete(db, item_id):
    db.query(FeedItem).filter(FeedItem.id == item_id).update(
        {FeedItem.deleted_at: datetime.now(timezone.utc)}, synchronize_session=False
    )
    db.commit()


class TestCreateOrUpdate:
    def test_first_write_creates(self, store, db, subscriber_id):
        item = make_item(subscriber_id)
        assert store.create_or_update(item) == UPSERT_CREATED
        rows = _rows(db, subscriber_id)
        assert [r.id for r in rows] == [item.id]
        assert rows[0].read_at is None and rows[0].archived_at is None

    def test_second_write_updates_in_place(self, store, db, subscriber_id):
        dao_id = uuid.uuid4()
        first = make_item(subscriber_id, dao_id=dao_id, proposal_id="p-1")
        store.create_or_update(first)
        before = _rows(db, subscriber_id)[0].updated_at

        second = make_item(
            subscriber_id,
            dao_id=dao_id,
            proposal_id="p-1",
            action=PROPOSAL_UPDATED,
            snapshot=make_snapshot(state="closed"),
            created_at=T0 + timedelta(hours=1),
            item_id=uuid.uuid4(),
        )
        assert store.create_or_update(second) == UPSERT_UPDATED

        rows = _rows(db, subscriber_id)
        assert len(rows) == 1
        row = rows[0]
        assert row.id == first.id
        assert row.action == PROPOSAL_UPDATED
        assert row.snapshot["state"] == "closed"
        assert row.created_at == naive(T0 + timedelta(hours=1))
        assert row.updated_at >= before

    def test_identical_event_twice_is_idempotent(self, store, db, subscriber_id):
        item = make_item(subscriber_id, proposal_id="p-1")
        store.create_or_update(item)
        store.create_or_update(make_item(subscriber_id, dao_id=item.dao_id, proposal_id="p-1", item_id=item.id))
        assert len(_rows(db, subscriber_id)) == 1

    def test_upsert_keeps_read_and_archive_state(self, store, db, subscriber_id):
        item = make_item(subscriber_id, proposal_id="p-1")
        store.create_or_update(item)
        store.mark_as_read_by_ids(subscriber_id, [item.id])
        store.mark_as_archived_by_ids(subscriber_id, [item.id])

        store.create_or_update(make_item(subscriber_id, dao_id=item.dao_id, proposal_id="p-1"))
        row = _rows(db, subscriber_id)[0]
        assert row.read_at is not None
        assert row.archived_at is not None

    def test_same_proposal_other_dao_is_separate_row(self, store, db, subscriber_id):
        store.create_or_update(make_item(subscriber_id, proposal_id="p-1"))
        store.create_or_update(make_item(subscriber_id, proposal_id="p-1"))
        assert len(_rows(db, subscriber_id)) == 2

    def test_allow_create_false_skips_missing_row(self, store, db, subscriber_id):
        assert store.create_or_update(make_item(subscriber_id), allow_create=False) == UPSERT_SKIPPED
        assert _rows(db, subscriber_id) == []

    def test_allow_create_false_updates_existing_row(self, store, db, subscriber_id):
        item = make_item(subscriber_id, proposal_id="p-1")
        store.create_or_update(item)
        again = make_item(subscriber_id, dao_id=item.dao_id, proposal_id="p-1", action=PROPOSAL_UPDATED)
        assert store.create_or_update(again, allow_create=False) == UPSERT_UPDATED
        assert _rows(db, subscriber_id)[0].action == PROPOSAL_UPDATED


class TestMarks:
    def test_read_and_unread_by_ids(self, store, db, seed, subscriber_id):
        a = seed(subscriber_id)
        b = seed(subscriber_id)
        assert store.mark_as_read_by_ids(subscriber_id, [a.id]) == 1
        db.expire_all()
        assert db.get(FeedItem, a.id).read_at is not None
        assert db.get(FeedItem, b.id).read_at is None

        assert store.mark_as_unread_by_ids(subscriber_id, [a.id]) == 1
        db.expire_all()
        assert db.get(FeedItem, a.id).read_at is None

    def test_marks_are_scoped_to_subscriber(self, store, db, seed, subscriber_id):
        other = seed(uuid.uuid4())
        assert store.mark_as_read_by_ids(subscriber_id, [other.id]) == 0
        db.expire_all()
        assert db.get(FeedItem, other.id).read_at is None

    def test_marks_skip_deleted_rows(self, store, db, seed, subscriber_id):
        item = seed(subscriber_id)
        _soft_delete(db, item.id)
        assert store.mark_as_archived_by_ids(subscriber_id, [item.id]) == 0

    def test_read_by_time_uses_updated_at(self, store, seed, subscriber_id):
        seed(subscriber_id)
        seed(subscriber_id)
        assert store.mark_as_read_by_time(subscriber_id, T0) == 0
        assert store.mark_as_read_by_time(subscriber_id, datetime.now(timezone.utc) + timedelta(seconds=5)) == 2

    def test_unread_by_time(self, store, seed, subscriber_id):
        item = seed(subscriber_id)
        store.mark_as_read_by_ids(subscriber_id, [item.id])
        assert store.mark_as_unread_by_time(subscriber_id, datetime.now(timezone.utc) + timedelta(seconds=5)) == 1

    def test_archive_and_unarchive_by_time_use_created_at(self, store, db, seed, subscriber_id):
        old = seed(subscriber_id, created_at=days_ago(10))
        new = seed(subscriber_id, created_at=T0)
        assert store.mark_as_archived_by_time(subscriber_id, days_ago(5)) == 1
        db.expire_all()
        assert db.get(FeedItem, old.id).archived_at is not None
        assert db.get(FeedItem, new.id).archived_at is None

        # only archived rows are unarchived
        assert store.mark_as_unarchived_by_time(subscriber_id, T0) == 1
        db.expire_all()
        row = db.get(FeedItem, old.id)
        assert row.archived_at is None
        assert row.unarchived_at is not None

    def test_archive_leaves_unarchived_at(self, store, db, seed, subscriber_id):
        item = seed(subscriber_id)
        store.mark_as_unarchived_by_ids(subscriber_id, [item.id])
        store.mark_as_archived_by_ids(subscriber_id, [item.id])
        db.expire_all()
        row = db.get(FeedItem, item.id)
        assert row.archived_at is not None
        assert row.unarchived_at is not None

    def test_read_cutoff_shifts_by_slack(self):
        assert read_cutoff(T0, 1) == T0 + timedelta(seconds=1)
        assert read_cutoff(T0, -1) == T0 - timedelta(seconds=1)


class TestAutoArchive:
    def test_archives_items_past_default_grace(self, store, db, seed, subscriber_id):
        expired = seed(subscriber_id, snapshot=make_snapshot(state="closed", end=days_ago(8)))
        fresh = seed(subscriber_id, snapshot=make_snapshot(state="closed", end=days_ago(6)))
        no_end = seed(subscriber_id, snapshot=make_snapshot(state="closed"))

        assert store.auto_archive(now=T0) == 1
        db.expire_all()
        assert db.get(FeedItem, expired.id).archived_at == naive(T0)
        assert db.get(FeedItem, fresh.id).archived_at is None
        assert db.get(FeedItem, no_end.id).archived_at is None

    def test_non_numeric_end_is_ignored(self, store, db, seed, subscriber_id):
        odd = seed(subscriber_id, snapshot={"state": "closed", "end": "soon"})
        expired = seed(subscriber_id, snapshot=make_snapshot(state="closed", end=days_ago(30)))
        assert store.auto_archive(now=T0) == 1
        db.expire_all()
        assert db.get(FeedItem, odd.id).archived_at is None
        assert db.get(FeedItem, expired.id).archived_at is not None

    def test_postgres_end_cast_is_guarded(self):
        sql = str(snapshot_end_epoch("postgresql").compile(dialect=postgresql.dialect()))
        assert "jsonb_typeof" in sql
        assert "CASE WHEN" in sql

    def test_uses_subscriber_grace_days(self, store, db, seed, subscriber_id):
        store.store_settings(subscriber_id, 3, False)
        item = seed(subscriber_id, snapshot=make_snapshot(end=days_ago(4)))
        other_sub = seed(uuid.uuid4(), snapshot=make_snapshot(end=days_ago(4)))

        assert store.auto_archive(now=T0) == 1
        db.expire_all()
        assert db.get(FeedItem, item.id).archived_at is not None
        assert db.get(FeedItem, other_sub.id).archived_at is None

    def test_never_touches_archived_or_deleted(self, store, db, seed, subscriber_id):
        archived = seed(subscriber_id, snapshot=make_snapshot(end=days_ago(400)))
        deleted = seed(subscriber_id, snapshot=make_snapshot(end=days_ago(400)))
        store.mark_as_archived_by_ids(subscriber_id, [archived.id])
        _soft_delete(db, deleted.id)
        db.expire_all()
        archived_at = db.get(FeedItem, archived.id).archived_at

        assert store.auto_archive(now=T0) == 0
        db.expire_all()
        assert db.get(FeedItem, archived.id).archived_at == archived_at
        assert db.get(FeedItem, deleted.id).archived_at is None

    def test_second_run_is_noop(self, store, seed, subscriber_id):
        seed(subscriber_id, snapshot=make_snapshot(end=days_ago(30)))
        assert store.auto_archive(now=T0) == 1
        assert store.auto_archive(now=T0) == 0


class TestSettingsRows:
    def test_store_and_overwrite(self, store, db, subscriber_id):
        assert store.get_settings(subscriber_id) is None
        store.store_settings(subscriber_id, 3, True)
        store.store_settings(subscriber_id, 14, False)
        db.expire_all()
        row = store.get_settings(subscriber_id)
        assert row.autoarchive_after_days == 14
        assert row.archive_proposal_after_vote is False
