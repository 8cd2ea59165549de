"""
Centralized error handling for feed engine and API failures.
Exception types plus a reusable helper so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Exception taxonomy
# ---------------------------------------------------------------------------


class FeedError(Exception):
    """Base class for errors raised by the feed engine."""


class DependencyError(FeedError):
    """An external collaborator (directory, content service, push sink) failed or is unreachable."""


class InvalidArgumentError(FeedError):
    """Caller supplied malformed input (bad id, bad enum, bad value)."""


class MalformedSubscriberError(InvalidArgumentError):
    """Directory returned a subscriber id that is not a UUID; fanout of the batch stops."""


# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_INVALID_ARGUMENT = 400
STATUS_INTERNAL_ERROR = 500
MSG_INTERNAL_ERROR = "something went wrong"


# ---------------------------------------------------------------------------
# Error rules: (predicate, status_code, detail builder)
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

def _is_invalid_argument(exc: Exception) -> bool:
    return isinstance(exc, InvalidArgumentError)


# List of (predicate, status_code, detail). First match wins.
FEED_ERROR_RULES: list[tuple[Callable[[Exception], bool], int, Callable[[Exception], str]]] = [
    (_is_invalid_argument, STATUS_INVALID_ARGUMENT, lambda exc: str(exc) or "invalid argument"),
]


def feed_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from a feed operation into an HTTPException.
    Uses FEED_ERROR_RULES for known error types; everything else is a generic 500
    so dependency and store details never leak to clients.
    """
    for predicate, status_code, detail in FEED_ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=MSG_INTERNAL_ERROR)
