"""Normalized shapes returned by the core web service client."""
import uuid
from datetime import datetime, timezone
from typing import Any


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


class CoreFeedItem:
    """One historical feed item (proposal) from the content service, used for backfill."""

    __slots__ = (
        "id",
        "dao_id",
        "proposal_id",
        "discussion_id",
        "type",
        "action",
        "snapshot",
        "timeline",
        "created_at",
    )

    def __init__(
        self,
        *,
        id: uuid.UUID,
        dao_id: uuid.UUID,
        proposal_id: str,
        discussion_id: str,
        type: str,
        action: str,
        snapshot: Any,
        timeline: Any,
        created_at: datetime | None,
    ):
        self.id = id
        self.dao_id = dao_id
        self.proposal_id = proposal_id
        self.discussion_id = discussion_id
        self.type = type
        self.action = action
        self.snapshot = snapshot
        self.timeline = timeline
        self.created_at = created_at

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "CoreFeedItem":
        """Raises ValueError / KeyError for items without valid ids."""
        return cls(
            id=uuid.UUID(str(raw["id"])),
            dao_id=uuid.UUID(str(raw["dao_id"])),
            proposal_id=str(raw.get("proposal_id") or ""),
            discussion_id=str(raw.get("discussion_id") or ""),
            type=str(raw.get("type") or ""),
            action=str(raw.get("action") or ""),
            snapshot=raw.get("snapshot"),
            timeline=raw.get("timeline") or [],
            created_at=_parse_datetime(raw.get("created_at")),
        )
