from sqlalchemy.exc import OperationalError

from inbox_feed.scheduler.auto_archive_job import run_auto_archive_job

from factories import days_ago, make_snapshot


def test_job_archives_expired_items(session_factory, seed, subscriber_id):
    # end far enough in the past to be expired at wall-clock now
    seed(subscriber_id, snapshot=make_snapshot(state="closed", end=days_ago(365)))
    seed(subscriber_id, snapshot=make_snapshot(state="active"))
    assert run_auto_archive_job(session_factory) == 1
    assert run_auto_archive_job(session_factory) == 0


def test_job_failure_is_logged_not_raised(caplog):
    class BrokenSession:
        def execute(self, *args, **kwargs):
            raise OperationalError("UPDATE feed_items", {}, Exception("db down"))

        def rollback(self):
            pass

        def close(self):
            pass

    assert run_auto_archive_job(BrokenSession) == 0
    assert "Auto archive feed items failed" in caplog.text
