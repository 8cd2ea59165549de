from inbox_feed.services.fanout import FanoutProcessor, FanoutResult
from inbox_feed.services.feed_store import FeedItemStore
from inbox_feed.services.settings_service import SettingsView, get_settings, save_settings
from inbox_feed.services.vote_reaction import try_autoarchive

__all__ = [
    "FanoutProcessor",
    "FanoutResult",
    "FeedItemStore",
    "SettingsView",
    "get_settings",
    "save_settings",
    "try_autoarchive",
]
