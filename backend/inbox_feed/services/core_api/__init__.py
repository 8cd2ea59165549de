"""Core web service: proposal/DAO metadata and historical feed items."""
from inbox_feed.services.core_api.client import CoreClient
from inbox_feed.services.core_api.types import CoreFeedItem

__all__ = ["CoreClient", "CoreFeedItem"]
