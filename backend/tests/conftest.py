"""Shared fixtures: in-memory SQLite schema, sessions, store, and fake collaborators."""
import uuid

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import inbox_feed.models  # noqa: F401  (register tables)
from inbox_feed.db.base import Base
from inbox_feed.db.session import make_engine
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.feed_store import FeedItemStore

from factories import FakeContent, FakeDirectory, FakePublisher, make_item


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return FeedItemStore(db)


@pytest.fixture
def subscriber_id():
    return uuid.uuid4()


@pytest.fixture
def seed(store):
    """Insert an item through the store and return it as stored."""

    def _seed(subscriber_id: uuid.UUID, **kwargs) -> FeedItem:
        item = make_item(subscriber_id, **kwargs)
        store.create_or_update(item)
        return store.db.get(FeedItem, item.id)

    return _seed


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def content():
    return FakeContent()


@pytest.fixture
def publisher():
    return FakePublisher()
