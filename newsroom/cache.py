"""Versioned, TTL-bounded article cache on top of a snapshot store."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import CACHE_VERSION, DEFAULT_CACHE_TTL_MS
from .exceptions import CacheError
from .models import Article, CacheSnapshot, CacheStats, FeedSnapshot, Source, newest_first
from .normalizer import is_valid
from .store import SnapshotStore

LOGGER = logging.getLogger(__name__)

ARTICLES_KEY = "articles"
FEEDS_KEY = "feeds"
SNAPSHOT_KEYS = (ARTICLES_KEY, FEEDS_KEY)


def _load_articles(records: Iterable[Any]) -> List[Article]:
    articles = []
    for record in records:
        try:
            article = Article.from_dict(record)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            LOGGER.warning("Skipping malformed cached article: %s", exc)
            continue
        if not is_valid(article):
            LOGGER.warning("Skipping cached article %s without title or link", article.id)
            continue
        articles.append(article)
    return articles


def _list_field(data: Dict[str, Any], name: str, key: str) -> Optional[List[Any]]:
    value = data.get(name)
    if not isinstance(value, list):
        LOGGER.warning("Cache file %s has no %s list, treating it as missing", key, name)
        return None
    return value


class ArticleCache:
    """Article snapshots persisted through a :class:`SnapshotStore`.

    A snapshot is only served while it is younger than the TTL, measured
    from the store's modification time, and carries the current version.
    """

    def __init__(
        self,
        store: SnapshotStore,
        ttl_seconds: float = DEFAULT_CACHE_TTL_MS / 1000,
        max_articles: int = 1000,
        version: str = CACHE_VERSION,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.max_articles = max_articles
        self.version = version

    def _is_fresh(self, key: str) -> bool:
        info = self.store.stat(key)
        if info is None:
            return False
        return time.time() - info.modified < self.ttl_seconds

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        if not self._is_fresh(key):
            LOGGER.debug("Cache file %s is expired or doesn't exist", key)
            return None

        data = self.store.read(key)
        if data is None:
            return None
        if data.get("version") != self.version:
            LOGGER.info("Cache version mismatch for %s, invalidating", key)
            return None
        return data

    def write(self, key: str, payload: Dict[str, Any]) -> None:
        record = dict(payload)
        record["version"] = self.version
        record["lastUpdated"] = int(time.time() * 1000)
        try:
            self.store.write(key, record)
        except OSError as exc:
            LOGGER.error("Error writing cache file %s: %s", key, exc)
            raise CacheError(f"Could not write cache snapshot {key!r}: {exc}") from exc
        LOGGER.debug("Cache file %s updated successfully", key)

    def get_snapshot(self) -> Optional[CacheSnapshot]:
        data = self.read(ARTICLES_KEY)
        if data is None:
            return None
        records = _list_field(data, "articles", ARTICLES_KEY)
        if records is None:
            return None
        return CacheSnapshot(
            articles=_load_articles(records),
            last_updated=data.get("lastUpdated"),
            version=data["version"],
        )

    def get_articles(self) -> List[Article]:
        snapshot = self.get_snapshot()
        return snapshot.articles if snapshot else []

    def cache_articles(self, articles: Sequence[Article]) -> None:
        self.write(ARTICLES_KEY, {"articles": [article.to_dict() for article in articles]})

    def merge_articles(self, new_articles: Iterable[Article]) -> List[Article]:
        """Merge ``new_articles`` into the cached set and persist the result.

        Articles whose id is already cached are ignored. The merged list is
        sorted newest first and truncated to ``max_articles``. Nothing is
        written when no article is new.
        """

        existing = self.get_articles()
        existing_ids = {article.id for article in existing}

        fresh: List[Article] = []
        for article in new_articles:
            if article.id in existing_ids:
                continue
            existing_ids.add(article.id)
            fresh.append(article)

        if not fresh:
            LOGGER.info("No new articles to add to cache")
            return existing

        merged = newest_first(fresh + existing)[: self.max_articles]
        self.cache_articles(merged)
        LOGGER.info("Added %d new articles to cache", len(fresh))
        return merged

    def get_feed_snapshot(self) -> Optional[FeedSnapshot]:
        data = self.read(FEEDS_KEY)
        if data is None:
            return None
        feeds = _list_field(data, "feeds", FEEDS_KEY)
        records = _list_field(data, "articles", FEEDS_KEY)
        if feeds is None or records is None:
            return None
        return FeedSnapshot(
            feeds=[Source.from_dict(feed) for feed in feeds if isinstance(feed, dict)],
            articles=_load_articles(records),
            last_updated=data.get("lastUpdated"),
            version=data["version"],
        )

    def cache_feed_snapshot(self, sources: Sequence[Source], articles: Sequence[Article]) -> None:
        self.write(
            FEEDS_KEY,
            {
                "feeds": [source.to_dict() for source in sources],
                "articles": [article.to_dict() for article in articles],
            },
        )

    def clear(self) -> None:
        for key in SNAPSHOT_KEYS:
            if self.store.delete(key):
                LOGGER.info("Deleted cache file: %s", key)
            else:
                LOGGER.info("Cache file %s not found, skipping", key)
        LOGGER.info("Cache cleared successfully")

    def stats(self) -> CacheStats:
        snapshot = self.get_snapshot()
        info = self.store.stat(ARTICLES_KEY)
        return CacheStats(
            articles_count=len(snapshot.articles) if snapshot else 0,
            last_updated=snapshot.last_updated if snapshot else None,
            cache_size=info.size if info else 0,
            is_expired=not self._is_fresh(ARTICLES_KEY),
        )

    def by_category(self, category: str) -> List[Article]:
        return [article for article in self.get_articles() if article.category == category]

    def by_slug(self, slug: str) -> Optional[Article]:
        return next((article for article in self.get_articles() if article.slug == slug), None)

    def search(self, query: str) -> List[Article]:
        """Case-insensitive substring search over text fields and tags."""

        needle = query.lower()
        return [
            article
            for article in self.get_articles()
            if needle in article.title.lower()
            or needle in article.description.lower()
            or needle in article.content.lower()
            or any(needle in tag.lower() for tag in article.tags)
        ]


__all__ = ["ARTICLES_KEY", "ArticleCache", "FEEDS_KEY"]
