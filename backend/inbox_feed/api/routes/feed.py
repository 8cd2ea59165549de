"""
User feed API: list with counts, read/unread, archive/unarchive, subscribe (backfill).

Ids in paths and bodies are validated here; malformed ids are 400 with no partial effect.
Dependency and store failures are a generic 500.
"""
import logging
from datetime import datetime
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from inbox_feed.core.errors import InvalidArgumentError, feed_error_to_http
from inbox_feed.core.ids import parse_uuid, parse_uuids
from inbox_feed.db.session import get_db
from inbox_feed.models.feed_item import FeedItem
from inbox_feed.services import feed_query
from inbox_feed.services.backfill import subscribe
from inbox_feed.services.collaborators import ContentService
from inbox_feed.services.feed_query import STATE_INCLUDE, StateFilter

router = APIRouter()
logger = logging.getLogger(__name__)


def get_content_service(request: Request) -> ContentService:
    return request.app.state.content


def _handle_feed_error(exc: Exception, log_message: str) -> NoReturn:
    if isinstance(exc, InvalidArgumentError):
        logger.warning("%s: %s", log_message, exc)
    else:
        logger.exception(log_message)
    raise feed_error_to_http(exc) from exc


def _item_to_dict(r: FeedItem) -> dict[str, Any]:
    return {
        "id": str(r.id),
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
        "read_at": r.read_at.isoformat() if r.read_at else None,
        "archived_at": r.archived_at.isoformat() if r.archived_at else None,
        "dao_id": str(r.dao_id),
        "proposal_id": r.proposal_id or None,
        "discussion_id": r.discussion_id or None,
        "type": r.type,
        "action": r.action,
        "snapshot": r.snapshot,
        "timeline": r.timeline or [],
    }


# --- List ---


@router.get("/feed/{subscriber_id}")
def get_user_feed(
    subscriber_id: str,
    db: Session = Depends(get_db),
    read_state: StateFilter = Query(STATE_INCLUDE),
    archived_state: StateFilter = Query(STATE_INCLUDE),
    limit: int = Query(0, ge=0),
    offset: int = Query(0, ge=0),
    exclude_spam: bool = Query(False),
    exclude_canceled: bool = Query(False),
) -> dict[str, Any]:
    """Subscriber feed ordered by actuality, with total and unread counts for the same filters.
    exclude_spam / exclude_canceled drop items whose snapshot is flagged spam or canceled (report views)."""
    try:
        sid = parse_uuid(subscriber_id, "subscriber id")
        page = feed_query.get_user_feed(
            db, sid, read_state, archived_state, limit, offset,
            exclude_spam=exclude_spam, exclude_canceled=exclude_canceled,
        )
    except Exception as e:
        _handle_feed_error(e, f"Get user feed for {subscriber_id} failed")
    return {
        "items": [_item_to_dict(r) for r in page.items],
        "total_count": page.total_count,
        "unread_count": page.unread_count,
    }


# --- Transitions ---


class MarkRequest(BaseModel):
    ids: list[str] = Field(default_factory=list, max_length=1000)
    before: datetime | None = None


def _mark(op, action: str, subscriber_id: str, body: MarkRequest, db: Session) -> dict[str, Any]:
    try:
        sid = parse_uuid(subscriber_id, "subscriber id")
        ids = parse_uuids(body.ids, "id")
        updated = op(db, sid, ids=ids, before=body.before)
    except Exception as e:
        _handle_feed_error(e, f"Unable to mark as {action} for {subscriber_id}")
    return {"ok": True, "marked_count": updated}


@router.post("/feed/{subscriber_id}/read")
def mark_as_read(subscriber_id: str, body: MarkRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    return _mark(feed_query.mark_as_read, "read", subscriber_id, body, db)


@router.post("/feed/{subscriber_id}/unread")
def mark_as_unread(subscriber_id: str, body: MarkRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    return _mark(feed_query.mark_as_unread, "unread", subscriber_id, body, db)


@router.post("/feed/{subscriber_id}/archive")
def mark_as_archived(subscriber_id: str, body: MarkRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    return _mark(feed_query.mark_as_archived, "archived", subscriber_id, body, db)


@router.post("/feed/{subscriber_id}/unarchive")
def mark_as_unarchived(subscriber_id: str, body: MarkRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    return _mark(feed_query.mark_as_unarchived, "unarchived", subscriber_id, body, db)


# --- Subscribe ---


class SubscribeRequest(BaseModel):
    dao_id: str | None = None
    dao_ids: list[str] = Field(default_factory=list, max_length=100)


@router.post("/feed/{subscriber_id}/subscribe")
def user_subscribe(
    subscriber_id: str,
    body: SubscribeRequest,
    db: Session = Depends(get_db),
    content: ContentService = Depends(get_content_service),
) -> dict[str, Any]:
    """Backfill the subscriber's feed from the DAO(s) they just subscribed to."""
    try:
        sid = parse_uuid(subscriber_id, "subscriber id")
        raw_ids = ([body.dao_id] if body.dao_id else []) + body.dao_ids
        if not raw_ids:
            raise InvalidArgumentError("dao_id or dao_ids is required")
        dao_ids = parse_uuids(raw_ids, "dao id")
        saved = subscribe(db, content, sid, dao_ids)
    except Exception as e:
        _handle_feed_error(e, f"Subscribe {subscriber_id} to {body.dao_id or body.dao_ids} failed")
    return {"ok": True, "backfilled_count": saved}
