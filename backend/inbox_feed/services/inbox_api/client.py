"""Inbox storage client: subscriber directory and user feed settings. Lowest level, sends requests only."""
from typing import Any

import httpx

from inbox_feed.config import settings
from inbox_feed.core.errors import DependencyError


class InboxClient:
    """Resolves who is subscribed to a DAO and what feed preferences a user has."""

    def __init__(self, base_url: str | None = None, *, timeout: float | None = None) -> None:
        self._base_url = (base_url or settings.inbox_api_url).rstrip("/")
        self._timeout = timeout or settings.http_timeout_seconds

    def _get(self, path: str) -> Any:
        url = f"{self._base_url}{path}"
        try:
            with httpx.Client(timeout=self._timeout) as c:
                r = c.get(url)
        except httpx.HTTPError as e:
            raise DependencyError(f"inbox api {path}: {e}") from e
        if not r.is_success:
            raise DependencyError(f"inbox api {path}: status {r.status_code}: {r.text[:500] if r.text else ''}")
        try:
            return r.json() if r.content else {}
        except ValueError as e:
            raise DependencyError(f"inbox api {path}: invalid json: {e}") from e

    def find_subscribers(self, dao_id: str) -> list[str]:
        """Subscriber ids as returned (unvalidated), in directory order."""
        raw = self._get(f"/daos/{dao_id}/subscribers")
        users = (raw.get("users") if isinstance(raw, dict) else None) or []
        return [str(u.get("user_id") or "") if isinstance(u, dict) else str(u) for u in users]

    def get_feed_settings(self, user_id: str) -> dict[str, Any]:
        """The user's feed_settings object; {} when absent."""
        raw = self._get(f"/users/{user_id}/feed-settings")
        settings_obj = raw.get("feed_settings") if isinstance(raw, dict) else None
        return settings_obj if isinstance(settings_obj, dict) else {}
