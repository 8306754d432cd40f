"""Feed fetching: one configured source in, raw entries out."""

from __future__ import annotations

import calendar
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import feedparser
import requests

from .exceptions import FeedFetchError
from .models import Article, MediaAttributes, MediaRef, RawEntry, Source
from .normalizer import is_valid, normalize, to_iso

LOGGER = logging.getLogger(__name__)

USER_AGENT = "newsroom/1.0 (RSS reader)"


@dataclass
class FetchResult:
    """Outcome of fetching one source; failures carry an error message."""

    source: Source
    entries: List[RawEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _media_attributes(value: Mapping[str, Any]) -> Optional[MediaAttributes]:
    url = value.get("url") or value.get("href")
    if not isinstance(url, str) or not url:
        return None
    return MediaAttributes(url=url, type=value.get("type"), medium=value.get("medium"))


def to_media_ref(value: Any) -> Optional[MediaRef]:
    """Coerce a loosely-typed media field into the ``MediaRef`` union."""

    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        return _media_attributes(value)
    if isinstance(value, (list, tuple)):
        for item in value:
            ref = to_media_ref(item)
            if ref is not None:
                return ref
    return None


def _enclosure(entry: Mapping[str, Any]) -> Optional[MediaAttributes]:
    enclosures = list(entry.get("enclosures") or [])
    enclosures.extend(link for link in entry.get("links") or [] if link.get("rel") == "enclosure")
    for candidate in enclosures:
        if isinstance(candidate, Mapping):
            attributes = _media_attributes(candidate)
            if attributes is not None:
                return attributes
    return None


def _iso_date(entry: Mapping[str, Any]) -> Optional[str]:
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        value = entry.get(key)
        if isinstance(value, time.struct_time):
            try:
                return to_iso(datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc))
            except (OverflowError, ValueError):
                continue
    return None


def _content(entry: Mapping[str, Any]) -> str:
    for block in entry.get("content") or []:
        if isinstance(block, Mapping) and block.get("value"):
            return block["value"]
    return ""


def to_raw_entry(entry: Mapping[str, Any]) -> RawEntry:
    """Map a ``feedparser`` entry onto :class:`RawEntry`."""

    categories = []
    for tag in entry.get("tags") or []:
        if isinstance(tag, Mapping):
            categories.append(_text(tag.get("term")))
        elif isinstance(tag, str):
            categories.append(tag.strip())

    guid = _text(entry.get("id")) or _text(entry.get("guid")) or None
    summary = _text(entry.get("summary"))

    return RawEntry(
        title=_text(entry.get("title")),
        link=_text(entry.get("link")),
        guid=guid,
        summary=summary,
        description=_text(entry.get("description")) or summary,
        content=_content(entry),
        content_encoded=_text(entry.get("content_encoded")),
        pub_date=_text(entry.get("published")) or None,
        dc_date=_text(entry.get("updated")) or _text(entry.get("dc_date")) or None,
        iso_date=_iso_date(entry),
        author=_text(entry.get("author")) or _text(entry.get("dc_creator")) or None,
        categories=tuple(category for category in categories if category),
        enclosure=_enclosure(entry),
        media_content=to_media_ref(entry.get("media_content")),
        media_thumbnail=to_media_ref(entry.get("media_thumbnail")),
    )


class FeedFetcher:
    """Fetch and parse RSS/Atom feeds with bounded time and redirects."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_redirects: int = 3,
        max_items: int = 20,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.max_items = max_items
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects
        self.session.headers["User-Agent"] = USER_AGENT

    def fetch_entries(self, source: Source) -> List[RawEntry]:
        """Fetch one source.

        Raises FeedFetchError on network/parse issues, timeouts, too many
        redirects, or a malformed feed without entries.
        """

        try:
            response = self.session.get(source.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FeedFetchError(f"Request failed for {source.name} ({source.url}): {exc}") from exc

        feed = feedparser.parse(response.content)
        entries = list(getattr(feed, "entries", None) or [])
        if getattr(feed, "bozo", 0):
            if not entries:
                raise FeedFetchError(
                    f"Invalid RSS/Atom feed: {source.name} ({getattr(feed, 'bozo_exception', None)})"
                )
            LOGGER.warning("Feed %s is malformed but has entries: %s", source.name, feed.bozo_exception)

        if not entries:
            LOGGER.warning("No items found in feed: %s", source.name)
            return []

        return [to_raw_entry(entry) for entry in entries[: self.max_items]]

    def fetch(self, source: Source) -> FetchResult:
        """Fetch one source, converting any failure into an empty result."""

        try:
            entries = self.fetch_entries(source)
        except FeedFetchError as exc:
            LOGGER.error("Error parsing RSS feed %s: %s", source.name, exc)
            return FetchResult(source=source, error=str(exc))
        except Exception as exc:
            LOGGER.exception("Unexpected failure fetching %s", source.name)
            return FetchResult(source=source, error=f"{type(exc).__name__}: {exc}")
        return FetchResult(source=source, entries=entries)

    def fetch_articles(self, source: Source) -> List[Article]:
        """Fetch and normalize one source, dropping invalid articles."""

        _, articles = fetch_and_normalize(self, source)
        return articles


def normalize_entries(entries: Iterable[RawEntry], source: Source) -> List[Article]:
    articles = (normalize(entry, source) for entry in entries)
    return [article for article in articles if is_valid(article)]


def fetch_and_normalize(fetcher: FeedFetcher, source: Source) -> Tuple[FetchResult, List[Article]]:
    """Run one source through ``fetcher`` and keep the valid articles."""

    result = fetcher.fetch(source)
    articles = normalize_entries(result.entries, source)
    if result.ok:
        LOGGER.info("Parsed %d articles from %s", len(articles), source.name)
    return result, articles
