"""Runs every AUTO_ARCHIVE_INTERVAL_SECONDS (default hourly): archive feed items whose proposal ended
more than the subscriber's autoarchive_after_days ago. Failures are logged; the next tick retries."""
import logging
import time
from typing import Callable

from sqlalchemy.orm import Session

from inbox_feed.db.session import SessionLocal
from inbox_feed.services.feed_store import FeedItemStore

logger = logging.getLogger(__name__)


def run_auto_archive_job(session_factory: Callable[[], Session] = SessionLocal) -> int:
    start = time.monotonic()
    db = session_factory()
    try:
        archived = FeedItemStore(db).auto_archive()
    except Exception as e:
        logger.exception("Auto archive feed items failed: %s", e)
        return 0
    finally:
        db.close()
    if archived:
        logger.info("Auto archive: archived %s feed items", archived)
    logger.debug("Auto archive feed items completed in %.3fs", time.monotonic() - start)
    return archived
