"""Subject handlers: one session per message; errors are logged and re-raised so the message is not acked."""
import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from inbox_feed.core.constants import SUBJECT_FEED_SETTINGS_UPDATED, SUBJECT_FEED_UPDATED, SUBJECT_VOTE_CREATED
from inbox_feed.events.payloads import (
    FeedSettingsUpdatedPayload,
    FeedUpdatedPayload,
    VoteCreatedPayload,
    to_feed_item,
)
from inbox_feed.services.collaborators import FeedSettingsProvider
from inbox_feed.services.fanout import FanoutProcessor, FanoutResult
from inbox_feed.services.settings_service import SettingsView, save_settings
from inbox_feed.services.vote_reaction import try_autoarchive

logger = logging.getLogger(__name__)


class FeedEventHandlers:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        fanout: FanoutProcessor,
        settings_provider: FeedSettingsProvider | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._fanout = fanout
        self._settings_provider = settings_provider

    def on_feed_updated(self, payload: FeedUpdatedPayload) -> FanoutResult:
        db = self._session_factory()
        try:
            return self._fanout.process(db, to_feed_item(payload))
        except Exception as e:
            logger.error("Process feed item %s: %s", payload.id, e)
            raise
        finally:
            db.close()

    def on_vote_created(self, payload: VoteCreatedPayload) -> str:
        db = self._session_factory()
        try:
            return try_autoarchive(db, payload.user_id, payload.proposal_id, self._settings_provider)
        except Exception as e:
            logger.error("Process vote of %s on %s: %s", payload.user_id, payload.proposal_id, e)
            raise
        finally:
            db.close()

    def on_settings_updated(self, payload: FeedSettingsUpdatedPayload) -> SettingsView:
        db = self._session_factory()
        try:
            return save_settings(
                db,
                payload.subscriber_id,
                payload.autoarchive_after_days,
                payload.archive_proposal_after_vote,
            )
        except Exception as e:
            logger.error("Process settings of %s: %s", payload.subscriber_id, e)
            raise
        finally:
            db.close()

    def by_subject(self) -> dict[str, Callable[[Any], Any]]:
        return {
            SUBJECT_FEED_UPDATED: self.on_feed_updated,
            SUBJECT_VOTE_CREATED: self.on_vote_created,
            SUBJECT_FEED_SETTINGS_UPDATED: self.on_settings_updated,
        }
