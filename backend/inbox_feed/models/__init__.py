from inbox_feed.models.feed_item import FeedItem
from inbox_feed.models.feed_settings import FeedSettings

__all__ = [
    "FeedItem",
    "FeedSettings",
]
