"""Inbound events: payloads, handlers, and the per-subject sequential consumer."""
from inbox_feed.events.consumer import ConsumerUnavailableError, FeedConsumer, SubjectWorker
from inbox_feed.events.handlers import FeedEventHandlers

__all__ = ["ConsumerUnavailableError", "FeedConsumer", "FeedEventHandlers", "SubjectWorker"]
