"""
Feed query fragments: a closed set of named filter / sort / paging pieces.

Callers build a FeedQuery from fragments; FeedItemStore turns it into one SELECT (list)
or one SELECT COUNT (count). Count statements ignore sort and paging fragments.
Soft-deleted rows are always excluded.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable, Union

from sqlalchemy import Select, case, false, func, or_, select

from inbox_feed.core.constants import PROPOSAL_STATE_RANK, PROPOSAL_STATE_RANK_UNKNOWN
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services.snapshot import KEY_CREATED, KEY_SPAM, KEY_STATE, STATE_CANCELED


# --- Filters ---


@dataclass(frozen=True)
class BySubscriber:
    subscriber_id: uuid.UUID


@dataclass(frozen=True)
class ByReadStatus:
    read: bool  # True: only read items, False: only unread


@dataclass(frozen=True)
class ByArchivedStatus:
    archived: bool  # True: only archived items, False: only not archived


@dataclass(frozen=True)
class ByProposal:
    proposal_id: str


@dataclass(frozen=True)
class ExcludeSpam:
    pass


@dataclass(frozen=True)
class ExcludeCanceled:
    pass


# --- Sort ---


@dataclass(frozen=True)
class SortByActuality:
    pass


@dataclass(frozen=True)
class SortByCreatedDesc:
    pass


# --- Paging ---


@dataclass(frozen=True)
class Paginate:
    limit: int
    offset: int = 0


Fragment = Union[
    BySubscriber,
    ByReadStatus,
    ByArchivedStatus,
    ByProposal,
    ExcludeSpam,
    ExcludeCanceled,
    SortByActuality,
    SortByCreatedDesc,
    Paginate,
]

_SORT_TYPES = (SortByActuality, SortByCreatedDesc)


def _snapshot_state():
    return FeedItem.snapshot[KEY_STATE].as_string()


def _by_subscriber(stmt: Select, f: BySubscriber) -> Select:
    return stmt.where(FeedItem.subscriber_id == f.subscriber_id)


def _by_read_status(stmt: Select, f: ByReadStatus) -> Select:
    if f.read:
        return stmt.where(FeedItem.read_at.is_not(None))
    return stmt.where(FeedItem.read_at.is_(None))


def _by_archived_status(stmt: Select, f: ByArchivedStatus) -> Select:
    if f.archived:
        return stmt.where(FeedItem.archived_at.is_not(None))
    return stmt.where(FeedItem.archived_at.is_(None))


def _by_proposal(stmt: Select, f: ByProposal) -> Select:
    return stmt.where(FeedItem.proposal_id == f.proposal_id)


def _exclude_spam(stmt: Select, f: ExcludeSpam) -> Select:
    spam = FeedItem.snapshot[KEY_SPAM].as_boolean()
    return stmt.where(or_(spam.is_(None), spam == false()))


def _exclude_canceled(stmt: Select, f: ExcludeCanceled) -> Select:
    state = _snapshot_state()
    return stmt.where(or_(state.is_(None), func.lower(state) != STATE_CANCELED))


def _sort_by_actuality(stmt: Select, f: SortByActuality) -> Select:
    rank = case(PROPOSAL_STATE_RANK, value=func.lower(_snapshot_state()), else_=PROPOSAL_STATE_RANK_UNKNOWN)
    return stmt.order_by(
        rank.asc(),
        FeedItem.snapshot[KEY_CREATED].as_float().desc().nulls_last(),
        FeedItem.created_at.desc(),
        FeedItem.id.asc(),
    )


def _sort_by_created_desc(stmt: Select, f: SortByCreatedDesc) -> Select:
    return stmt.order_by(FeedItem.created_at.desc(), FeedItem.id.asc())


def _paginate(stmt: Select, f: Paginate) -> Select:
    return stmt.offset(max(f.offset, 0)).limit(f.limit)


_APPLIERS: dict[type, Callable[[Select, object], Select]] = {
    BySubscriber: _by_subscriber,
    ByReadStatus: _by_read_status,
    ByArchivedStatus: _by_archived_status,
    ByProposal: _by_proposal,
    ExcludeSpam: _exclude_spam,
    ExcludeCanceled: _exclude_canceled,
    SortByActuality: _sort_by_actuality,
    SortByCreatedDesc: _sort_by_created_desc,
    Paginate: _paginate,
}


class FeedQuery:
    """Immutable bag of fragments. with_() returns a new query."""

    __slots__ = ("fragments",)

    def __init__(self, *fragments: Fragment):
        self.fragments: tuple[Fragment, ...] = tuple(fragments)

    def with_(self, *fragments: Fragment) -> FeedQuery:
        return FeedQuery(*self.fragments, *fragments)

    def filters_only(self) -> FeedQuery:
        """Same predicates, no sort and no paging (for count queries)."""
        return FeedQuery(*(f for f in self.fragments if not isinstance(f, (Paginate, *_SORT_TYPES))))

    def _apply(self, stmt: Select) -> Select:
        stmt = stmt.where(FeedItem.deleted_at.is_(None))
        # Paging goes last so it wraps every predicate and ordering
        ordered = sorted(self.fragments, key=lambda f: isinstance(f, Paginate))
        for fragment in ordered:
            applier = _APPLIERS.get(type(fragment))
            if applier is None:
                raise TypeError(f"unsupported feed query fragment: {fragment!r}")
            stmt = applier(stmt, fragment)
        return stmt

    def to_select(self) -> Select:
        return self._apply(select(FeedItem))

    def to_count(self) -> Select:
        return self.filters_only()._apply(select(func.count()).select_from(FeedItem))

    def __repr__(self) -> str:
        return f"FeedQuery{self.fragments!r}"
