"""Exception hierarchy for the news cache."""

from __future__ import annotations


class NewsroomError(Exception):
    """Base class for errors raised by the news cache."""


class FeedFetchError(NewsroomError):
    """Raised when an RSS/Atom feed cannot be fetched or parsed."""


class CacheError(NewsroomError):
    """Raised when a cache snapshot cannot be persisted."""
