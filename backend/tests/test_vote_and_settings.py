"""Vote reaction and feed settings tests."""
import logging
import uuid

import pytest

from inbox_feed.core.constants import DEFAULT_AUTOARCHIVE_AFTER_DAYS
from inbox_feed.core.errors import DependencyError, InvalidArgumentError
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.settings_service import get_settings, save_settings
from inbox_feed.services.vote_reaction import (
    VOTE_REACTION_ARCHIVED,
    VOTE_REACTION_DISABLED,
    VOTE_REACTION_NOT_FOUND,
    try_autoarchive,
)

from factories import T0, FakeDirectory, days_ago


class TestSettings:
    def test_defaults_when_absent(self, db, store, subscriber_id):
        view = get_settings(db, subscriber_id)
        assert view.autoarchive_after_days == DEFAULT_AUTOARCHIVE_AFTER_DAYS
        assert view.archive_proposal_after_vote is False
        assert store.get_settings(subscriber_id) is None

    def test_save_and_read_back(self, db, subscriber_id):
        save_settings(db, subscriber_id, 3, True)
        view = get_settings(db, subscriber_id)
        assert view.autoarchive_after_days == 3
        assert view.archive_proposal_after_vote is True

    def test_none_keeps_vote_preference(self, db, subscriber_id):
        save_settings(db, subscriber_id, 3, True)
        saved = save_settings(db, subscriber_id, 10)
        assert saved.archive_proposal_after_vote is True
        assert get_settings(db, subscriber_id).autoarchive_after_days == 10

    def test_last_write_wins(self, db, subscriber_id):
        save_settings(db, subscriber_id, 3, True)
        save_settings(db, subscriber_id, 5, False)
        view = get_settings(db, subscriber_id)
        assert (view.autoarchive_after_days, view.archive_proposal_after_vote) == (5, False)

    @pytest.mark.parametrize("days", [0, -1])
    def test_rejects_non_positive_days(self, db, store, subscriber_id, days):
        with pytest.raises(InvalidArgumentError):
            save_settings(db, subscriber_id, days)
        assert store.get_settings(subscriber_id) is None


class TestVoteReaction:
    def test_disabled_leaves_item_unchanged(self, db, seed, subscriber_id):
        item = seed(subscriber_id, proposal_id="p-1")
        assert try_autoarchive(db, subscriber_id, "p-1") == VOTE_REACTION_DISABLED
        db.expire_all()
        row = db.get(FeedItem, item.id)
        assert row.read_at is None
        assert row.archived_at is None

    def test_enabled_marks_read_and_archived(self, db, seed, subscriber_id):
        save_settings(db, subscriber_id, 7, True)
        item = seed(subscriber_id, proposal_id="p-1")
        other = seed(subscriber_id, proposal_id="p-2")
        assert try_autoarchive(db, subscriber_id, "p-1") == VOTE_REACTION_ARCHIVED
        db.expire_all()
        row = db.get(FeedItem, item.id)
        assert row.read_at is not None
        assert row.archived_at is not None
        assert db.get(FeedItem, other.id).archived_at is None

    def test_missing_item_is_warning_noop(self, db, subscriber_id, caplog):
        save_settings(db, subscriber_id, 7, True)
        with caplog.at_level(logging.WARNING):
            assert try_autoarchive(db, subscriber_id, "p-404") == VOTE_REACTION_NOT_FOUND
        assert "p-404" in caplog.text

    def test_already_archived_item_is_not_found(self, db, store, seed, subscriber_id):
        save_settings(db, subscriber_id, 7, True)
        item = seed(subscriber_id, proposal_id="p-1")
        store.mark_as_archived_by_ids(subscriber_id, [item.id])
        assert try_autoarchive(db, subscriber_id, "p-1") == VOTE_REACTION_NOT_FOUND

    def test_multiple_items_use_most_recent(self, db, seed, subscriber_id):
        save_settings(db, subscriber_id, 7, True)
        older = seed(subscriber_id, proposal_id="p-1", created_at=days_ago(3))
        newer = seed(subscriber_id, proposal_id="p-1", created_at=T0)
        log = logging.getLogger("test.vote")
        assert try_autoarchive(db, subscriber_id, "p-1", log=log) == VOTE_REACTION_ARCHIVED
        db.expire_all()
        assert db.get(FeedItem, newer.id).archived_at is not None
        assert db.get(FeedItem, older.id).archived_at is None

    def test_directory_preference_enables(self, db, seed, directory, subscriber_id):
        directory.feed_settings[str(subscriber_id)] = {"archive_proposal_after_vote": True}
        item = seed(subscriber_id, proposal_id="p-1")
        assert try_autoarchive(db, subscriber_id, "p-1", directory) == VOTE_REACTION_ARCHIVED
        db.expire_all()
        assert db.get(FeedItem, item.id).archived_at is not None

    def test_directory_preference_wins_over_local(self, db, seed, directory, subscriber_id):
        save_settings(db, subscriber_id, 7, True)
        directory.feed_settings[str(subscriber_id)] = {"archive_proposal_after_vote": False}
        seed(subscriber_id, proposal_id="p-1")
        assert try_autoarchive(db, subscriber_id, "p-1", directory) == VOTE_REACTION_DISABLED

    def test_directory_without_flag_uses_local(self, db, seed, directory, subscriber_id):
        seed(subscriber_id, proposal_id="p-1")
        assert try_autoarchive(db, subscriber_id, "p-1", directory) == VOTE_REACTION_DISABLED
        save_settings(db, subscriber_id, 7, True)
        assert try_autoarchive(db, subscriber_id, "p-1", directory) == VOTE_REACTION_ARCHIVED

    def test_directory_failure_propagates(self, db, seed, subscriber_id):
        seed(subscriber_id, proposal_id="p-1")
        with pytest.raises(DependencyError):
            try_autoarchive(db, subscriber_id, "p-1", FakeDirectory(error=DependencyError("down")))

    def test_other_subscriber_untouched(self, db, seed, subscriber_id):
        save_settings(db, subscriber_id, 7, True)
        foreign = seed(uuid.uuid4(), proposal_id="p-1")
        assert try_autoarchive(db, subscriber_id, "p-1") == VOTE_REACTION_NOT_FOUND
        db.expire_all()
        assert db.get(FeedItem, foreign.id).archived_at is None
