from inbox_feed.db.base import Base
from inbox_feed.db.session import get_db, engine, SessionLocal
from inbox_feed.db.tables import ALL_TABLE_NAMES, FEED_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES", "FEED_TABLE_NAMES"]
