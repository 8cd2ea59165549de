"""UUID parsing for ids coming from clients and upstream services."""
import uuid
from typing import Iterable

from inbox_feed.core.errors import InvalidArgumentError


def parse_uuid(value: str | uuid.UUID, what: str = "id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError as e:
        raise InvalidArgumentError(f"invalid {what}: {value!r}") from e


def parse_uuids(values: Iterable[str | uuid.UUID], what: str = "id") -> list[uuid.UUID]:
    """All or nothing: the first malformed value raises."""
    return [parse_uuid(v, what) for v in values]
