"""Inbox storage: subscriber directory."""
from inbox_feed.services.inbox_api.client import InboxClient

__all__ = ["InboxClient"]
