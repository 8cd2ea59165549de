"""
Timeline reconciliation: raw (timestamp, action) events from upstream -> canonical history.

Upstream delivery is not causally ordered. Two known inconsistencies are repaired before sorting:
  - "created" entry later than other entries: its timestamp becomes the batch minimum.
  - quorum reached after voting ended: quorum timestamp is clamped to the ended timestamp.
Then entries sort by timestamp; equal timestamps break ties by action weight
(created=1 < generic=2 < quorum_reached=3 < ended=4), then by action name.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, NamedTuple

from inbox_feed.core.constants import (
    ACTION_WEIGHT_CREATED,
    ACTION_WEIGHT_DEFAULT,
    ACTION_WEIGHT_ENDED,
    ACTION_WEIGHT_QUORUM_REACHED,
)

logger = logging.getLogger(__name__)

DAO_CREATED = "dao.created"
DAO_UPDATED = "dao.updated"
PROPOSAL_CREATED = "proposal.created"
PROPOSAL_UPDATED = "proposal.updated"
PROPOSAL_VOTING_STARTS_SOON = "proposal.voting.starts_soon"
PROPOSAL_VOTING_ENDS_SOON = "proposal.voting.ends_soon"
PROPOSAL_VOTING_STARTED = "proposal.voting.started"
PROPOSAL_VOTING_QUORUM_REACHED = "proposal.voting.quorum_reached"
PROPOSAL_VOTING_ENDED = "proposal.voting.ended"
UNKNOWN_ACTION = "unknown"

KNOWN_ACTIONS = frozenset({
    DAO_CREATED,
    DAO_UPDATED,
    PROPOSAL_CREATED,
    PROPOSAL_UPDATED,
    PROPOSAL_VOTING_STARTS_SOON,
    PROPOSAL_VOTING_ENDS_SOON,
    PROPOSAL_VOTING_STARTED,
    PROPOSAL_VOTING_QUORUM_REACHED,
    PROPOSAL_VOTING_ENDED,
})
CREATED_ACTIONS = frozenset({DAO_CREATED, PROPOSAL_CREATED})

TYPE_DAO = "dao"
TYPE_PROPOSAL = "proposal"
KNOWN_TYPES = frozenset({TYPE_DAO, TYPE_PROPOSAL})


class TimelineEntry(NamedTuple):
    created_at: datetime
    action: str

    def to_json(self) -> dict[str, str]:
        return {"created_at": self.created_at.isoformat(), "action": self.action}


def parse_action(raw: str | None) -> str:
    """Known action string, or UNKNOWN_ACTION (logged) for anything else."""
    if raw in KNOWN_ACTIONS:
        return raw
    logger.warning("Unknown timeline action %r; stored as %s", raw, UNKNOWN_ACTION)
    return UNKNOWN_ACTION


def parse_type(raw: str | None) -> str:
    """Known item type, or '' (logged) for anything else."""
    if raw in KNOWN_TYPES:
        return raw
    logger.warning("Unknown feed item type %r", raw)
    return ""


def action_weight(action: str) -> int:
    if action in CREATED_ACTIONS:
        return ACTION_WEIGHT_CREATED
    if action == PROPOSAL_VOTING_QUORUM_REACHED:
        return ACTION_WEIGHT_QUORUM_REACHED
    if action == PROPOSAL_VOTING_ENDED:
        return ACTION_WEIGHT_ENDED
    return ACTION_WEIGHT_DEFAULT


def _sort_key(entry: TimelineEntry) -> tuple[datetime, int, str]:
    return entry.created_at, action_weight(entry.action), entry.action


def reconcile_timeline(events: Iterable[tuple[datetime, str]]) -> list[TimelineEntry]:
    """
    Canonical timeline for a batch of (timestamp, action) pairs.
    Output depends only on the multiset of inputs, never on their order.
    """
    entries = [TimelineEntry(_aware(ts), parse_action(action)) for ts, action in events]
    if not entries:
        return []

    earliest = min(e.created_at for e in entries)
    ended = [e.created_at for e in entries if e.action == PROPOSAL_VOTING_ENDED]
    voting_ended_at = min(ended) if ended else None

    repaired = []
    for e in entries:
        if e.action in CREATED_ACTIONS and e.created_at != earliest:
            e = e._replace(created_at=earliest)
        elif (
            e.action == PROPOSAL_VOTING_QUORUM_REACHED
            and voting_ended_at is not None
            and e.created_at > voting_ended_at
        ):
            e = e._replace(created_at=voting_ended_at)
        repaired.append(e)

    repaired.sort(key=_sort_key)
    return repaired


def timeline_to_json(entries: Iterable[TimelineEntry]) -> list[dict[str, str]]:
    return [e.to_json() for e in entries]


def timeline_from_json(raw: Any) -> list[TimelineEntry]:
    """Stored/remote JSON timeline -> entries. Malformed entries are logged and skipped."""
    if not isinstance(raw, list):
        return []
    out: list[TimelineEntry] = []
    for item in raw:
        try:
            ts = item["created_at"]
            if isinstance(ts, str):
                ts = datetime.fromisoformat(ts)
            out.append(TimelineEntry(_aware(ts), parse_action(item.get("action"))))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed timeline entry %r: %s", item, e)
    return out


def _aware(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts
