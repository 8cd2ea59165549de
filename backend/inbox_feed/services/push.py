"""
Publish PushCreated events for feed items (proposal created, quorum reached, voting ends soon).
Events are POSTed as JSON to PUSH_EVENTS_URL. If not configured, publish no-ops (log and return False).
Best effort: failures are logged, never raised.
"""
import logging
from typing import Any

import httpx

from inbox_feed.config import settings
from inbox_feed.services.timeline import (
    PROPOSAL_CREATED,
    PROPOSAL_VOTING_ENDS_SOON,
    PROPOSAL_VOTING_QUORUM_REACHED,
)

logger = logging.getLogger(__name__)

PUSH_ELIGIBLE_ACTIONS = frozenset({
    PROPOSAL_CREATED,
    PROPOSAL_VOTING_QUORUM_REACHED,
    PROPOSAL_VOTING_ENDS_SOON,
})

# Body templates per action; {title} is the proposal title
_PUSH_BODY_TEMPLATES = {
    PROPOSAL_CREATED: "New proposal: {title}",
    PROPOSAL_VOTING_QUORUM_REACHED: "Quorum reached: {title}",
    PROPOSAL_VOTING_ENDS_SOON: "Voting ends soon: {title}",
}
DEFAULT_PUSH_TITLE = "Governance update"


def allow_sending(action: str) -> bool:
    """Only these lifecycle actions produce a push."""
    return action in PUSH_ELIGIBLE_ACTIONS


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def build_push_content(action: str, dao_name: Any, proposal_title: Any) -> tuple[str, str]:
    """(title, body) for a push: DAO name as title, action sentence with proposal title as body.
    Missing or non-string names fall back to generic wording."""
    title = _clean(dao_name) or DEFAULT_PUSH_TITLE
    template = _PUSH_BODY_TEMPLATES.get(action, "{title}")
    body = template.format(title=_clean(proposal_title) or "proposal")
    return title, body


class HttpPushPublisher:
    """PushCreated{title, body, user_id} -> POST {push_events_url}."""

    def __init__(self, url: str | None = None, *, timeout: float | None = None) -> None:
        self._url = url if url is not None else settings.push_events_url
        self._timeout = timeout or settings.http_timeout_seconds

    def publish_push(self, user_id: str, title: str, body: str) -> bool:
        if not self._url:
            logger.debug("PUSH_EVENTS_URL not set; skipping push for %s", user_id)
            return False
        payload = {"title": title, "body": body, "user_id": user_id}
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(self._url, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Push publish failed for %s: %s", user_id, e)
            return False
        if resp.is_success:
            return True
        logger.warning("Push sink returned %s for %s: %s", resp.status_code, user_id, resp.text[:200])
        return False
