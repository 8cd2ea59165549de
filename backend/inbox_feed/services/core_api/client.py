"""Core web service client: proposals, DAOs and feed history. Lowest level, sends requests only."""
import logging
from typing import Any

import httpx

from inbox_feed.config import settings
from inbox_feed.core.errors import DependencyError
from inbox_feed.services.core_api.types import CoreFeedItem

logger = logging.getLogger(__name__)


class CoreClient:
    """Read-only client for the content service."""

    def __init__(self, base_url: str | None = None, *, timeout: float | None = None) -> None:
        self._base_url = (base_url or settings.core_api_url).rstrip("/")
        self._timeout = timeout or settings.http_timeout_seconds

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            with httpx.Client(timeout=self._timeout) as c:
                r = c.get(url, params=params)
        except httpx.HTTPError as e:
            raise DependencyError(f"core api {path}: {e}") from e
        if not r.is_success:
            raise DependencyError(f"core api {path}: status {r.status_code}: {r.text[:500] if r.text else ''}")
        try:
            return r.json() if r.content else {}
        except ValueError as e:
            raise DependencyError(f"core api {path}: invalid json: {e}") from e

    def get_feed_by_filters(
        self,
        dao_ids: list[str],
        *,
        is_active: bool | None = None,
        types: list[str] | None = None,
        limit: int = 200,
    ) -> list[CoreFeedItem]:
        """Feed items for the given DAOs, newest first as returned by the service."""
        params: dict[str, Any] = {"dao": dao_ids, "limit": limit}
        if types:
            params["types"] = types
        if is_active is not None:
            params["is_active"] = "true" if is_active else "false"
        raw = self._get("/feed", params)
        items: list[CoreFeedItem] = []
        for r in (raw.get("items") if isinstance(raw, dict) else None) or []:
            try:
                items.append(CoreFeedItem.from_json(r))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed core feed item %r: %s", r, e)
        return items

    def get_proposal(self, proposal_id: str) -> dict[str, Any]:
        raw = self._get(f"/proposals/{proposal_id}")
        return raw if isinstance(raw, dict) else {}

    def get_dao(self, dao_id: str) -> dict[str, Any]:
        raw = self._get(f"/daos/{dao_id}")
        return raw if isinstance(raw, dict) else {}
