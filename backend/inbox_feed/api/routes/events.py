"""
Event ingress: upstream publishes FeedUpdated / VoteCreated / FeedSettingsUpdated here.

The request returns only after the subject's consumer handled the message: 2xx = ack,
5xx = not acked (publisher redelivers), 503 = consumer busy/stopped or ack wait exceeded.
Malformed bodies are 422 and never reach a consumer.
"""
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from inbox_feed.core.constants import SUBJECT_FEED_SETTINGS_UPDATED, SUBJECT_FEED_UPDATED, SUBJECT_VOTE_CREATED
from inbox_feed.core.errors import MSG_INTERNAL_ERROR, STATUS_INTERNAL_ERROR
from inbox_feed.events.consumer import ConsumerUnavailableError, FeedConsumer
from inbox_feed.events.payloads import FeedSettingsUpdatedPayload, FeedUpdatedPayload, VoteCreatedPayload

router = APIRouter()
logger = logging.getLogger(__name__)

STATUS_UNAVAILABLE = 503


def get_consumer(request: Request) -> FeedConsumer:
    return request.app.state.consumer


def _dispatch(consumer: FeedConsumer, subject: str, payload: Any) -> dict[str, Any]:
    try:
        consumer.dispatch(subject, payload)
    except ConsumerUnavailableError as e:
        raise HTTPException(status_code=STATUS_UNAVAILABLE, detail=str(e))
    except FutureTimeoutError:
        logger.warning("Ack wait exceeded for %s; message will be redelivered", subject)
        raise HTTPException(status_code=STATUS_UNAVAILABLE, detail="handler timeout")
    except Exception:
        # Already logged by the handler; not acked so the publisher redelivers
        raise HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=MSG_INTERNAL_ERROR)
    return {"ok": True, "subject": subject}


@router.post("/events/feed-updated")
def feed_updated(body: FeedUpdatedPayload, consumer: FeedConsumer = Depends(get_consumer)) -> dict[str, Any]:
    return _dispatch(consumer, SUBJECT_FEED_UPDATED, body)


@router.post("/events/vote-created")
def vote_created(body: VoteCreatedPayload, consumer: FeedConsumer = Depends(get_consumer)) -> dict[str, Any]:
    return _dispatch(consumer, SUBJECT_VOTE_CREATED, body)


@router.post("/events/feed-settings-updated")
def feed_settings_updated(
    body: FeedSettingsUpdatedPayload,
    consumer: FeedConsumer = Depends(get_consumer),
) -> dict[str, Any]:
    return _dispatch(consumer, SUBJECT_FEED_SETTINGS_UPDATED, body)
