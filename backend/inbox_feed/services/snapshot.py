"""Typed read-only view over the opaque feed item snapshot.

Only these fields are ever read by the engine: state, end, created, spam, title, dao.name.
Everything else in the blob is passed through untouched.
"""
from datetime import datetime, timezone
from typing import Any

from inbox_feed.core.constants import ACTIVE_PROPOSAL_STATES

# JSON keys inside the snapshot blob (also used by SQL filters/ordering)
KEY_STATE = "state"
KEY_END = "end"
KEY_CREATED = "created"
KEY_SPAM = "spam"
KEY_TITLE = "title"
KEY_DAO = "dao"

STATE_CANCELED = "canceled"


def _epoch_to_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


class ProposalSnapshot:
    """Narrow accessor; tolerant of missing keys and non-dict blobs."""

    __slots__ = ("_raw",)

    def __init__(self, raw: Any):
        self._raw = raw if isinstance(raw, dict) else {}

    @property
    def state(self) -> str | None:
        v = self._raw.get(KEY_STATE)
        return v.lower() if isinstance(v, str) and v else None

    @property
    def end(self) -> datetime | None:
        return _epoch_to_datetime(self._raw.get(KEY_END))

    @property
    def created(self) -> datetime | None:
        return _epoch_to_datetime(self._raw.get(KEY_CREATED))

    @property
    def spam(self) -> bool:
        return self._raw.get(KEY_SPAM) is True

    @property
    def title(self) -> str | None:
        v = self._raw.get(KEY_TITLE)
        if not isinstance(v, str):
            return None
        return v.strip() or None

    @property
    def dao_name(self) -> str | None:
        dao = self._raw.get(KEY_DAO)
        if isinstance(dao, dict) and isinstance(dao.get("name"), str):
            return dao["name"].strip() or None
        return None

    def is_active(self) -> bool:
        return self.state in ACTIVE_PROPOSAL_STATES
