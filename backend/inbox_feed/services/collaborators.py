"""Protocols for external collaborators. Real clients use HTTP; tests pass fakes with the same contract."""
from typing import Any, Protocol

from inbox_feed.services.core_api.types import CoreFeedItem


class SubscriberDirectory(Protocol):
    """Who is subscribed to a DAO (inbox storage)."""

    def find_subscribers(self, dao_id: str) -> list[str]:
        """Raw subscriber ids in directory order. Raises DependencyError on failure."""
        ...


class FeedSettingsProvider(Protocol):
    """Per-user feed preferences owned by inbox storage."""

    def get_feed_settings(self, user_id: str) -> dict[str, Any]:
        """Settings mapping ({} when the user has none). Raises DependencyError on failure."""
        ...


class ContentService(Protocol):
    """Proposals, DAOs and historical feed items (core web service)."""

    def get_feed_by_filters(
        self,
        dao_ids: list[str],
        *,
        is_active: bool | None = None,
        types: list[str] | None = None,
        limit: int = 200,
    ) -> list[CoreFeedItem]:
        ...

    def get_proposal(self, proposal_id: str) -> dict[str, Any]:
        ...

    def get_dao(self, dao_id: str) -> dict[str, Any]:
        ...


class PushPublisher(Protocol):
    """Outbound PushCreated events."""

    def publish_push(self, user_id: str, title: str, body: str) -> bool:
        """True if published; transport failures are logged and return False."""
        ...
