"""High-level news service: refresh orchestration and the read API."""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Dict, List, Optional, Sequence

from .aggregator import aggregate_all
from .cache import ArticleCache
from .config import Config, load_config
from .fetchers import FeedFetcher
from .models import Article, CacheInfo, Page, Source, newest_first
from .sources import NEWS_SOURCES
from .store import FileSnapshotStore

LOGGER = logging.getLogger(__name__)

FEATURED_POOL = 20
FEATURED_WITH_IMAGES = 12
FEATURED_TOTAL = 15
TRENDING_POOL = 100
TRENDING_PER_CATEGORY = 4

Aggregate = Callable[[Sequence[Source]], List[Article]]


def _with_and_without_images(articles: Sequence[Article]):
    with_images = [article for article in articles if article.image]
    without_images = [article for article in articles if not article.image]
    return with_images, without_images


class NewsService:
    """Serves cached articles and keeps them fresh.

    Only one refresh mutates the cache at a time. A non-forced refresh
    requested while another is running is answered from the cache.
    """

    def __init__(
        self,
        cache: ArticleCache,
        sources: Optional[Sequence[Source]] = None,
        aggregate: Optional[Aggregate] = None,
    ) -> None:
        self.cache = cache
        self.sources = list(NEWS_SOURCES if sources is None else sources)
        self._aggregate = aggregate or aggregate_all
        self._refresh_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[Config] = None, sources: Optional[Sequence[Source]] = None) -> "NewsService":
        config = config or load_config()
        cache = ArticleCache(
            FileSnapshotStore(config.cache_dir),
            ttl_seconds=config.cache_ttl,
            max_articles=config.max_articles,
        )
        fetcher = FeedFetcher(
            timeout=config.fetch_timeout,
            max_redirects=config.max_redirects,
            max_items=config.max_items_per_feed,
        )

        def aggregate(selected: Sequence[Source]) -> List[Article]:
            return aggregate_all(selected, fetcher=fetcher, max_workers=config.max_workers)

        return cls(cache, sources=sources, aggregate=aggregate)

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def refresh_articles(self, force: bool = False) -> List[Article]:
        """Refresh the cache from all sources and return the cached articles.

        Never raises: failures are logged and answered with the cached set.
        """

        if not self._refresh_lock.acquire(blocking=force):
            LOGGER.info("Article refresh already in progress, returning cached articles")
            return self.cache.get_articles()

        try:
            LOGGER.info("Starting article refresh...")
            if not force:
                stats = self.cache.stats()
                if not stats.is_expired and stats.articles_count > 0:
                    LOGGER.info("Cache is still valid, returning cached articles")
                    return self.cache.get_articles()

            fresh = self._aggregate(self.sources)
            if not fresh:
                LOGGER.warning("No articles fetched from any source")
                return self.cache.get_articles()

            articles = self.cache.merge_articles(fresh)
            self.cache.cache_feed_snapshot(self.sources, articles)
            LOGGER.info("Article refresh completed. Total articles: %d", len(articles))
            return articles
        except Exception:
            LOGGER.exception("Error refreshing articles")
            cached = self.cache.get_articles()
            LOGGER.info("Returning %d cached articles as fallback", len(cached))
            return cached
        finally:
            self._refresh_lock.release()

    def get_articles(self) -> List[Article]:
        articles = self.cache.get_articles()
        if not articles:
            LOGGER.info("No cached articles found, fetching fresh articles...")
            return self.refresh_articles()
        return articles

    def get_articles_by_category(self, category: str) -> List[Article]:
        return self.cache.by_category(category)

    def get_article_by_slug(self, slug: str) -> Optional[Article]:
        return self.cache.by_slug(slug)

    def get_articles_by_source(self, source_name: str) -> List[Article]:
        name = source_name.lower()
        return [article for article in self.get_articles() if article.source.lower() == name]

    def search_articles(self, query: str) -> List[Article]:
        if not query or not query.strip():
            return []
        return self.cache.search(query.strip())

    def get_latest_articles(self, limit: int = 50) -> List[Article]:
        return newest_first(self.get_articles())[:limit]

    def get_featured_articles(self) -> List[Article]:
        """Homepage selection drawn from the newest 20 articles.

        The first item has an image whenever one of those 20 does. Older
        articles with images are not considered, so a pool without images
        yields the newest articles as they are.
        """

        with_images, without_images = _with_and_without_images(self.get_latest_articles(FEATURED_POOL))
        if not with_images:
            LOGGER.warning("No articles with images found for featured articles")
            return without_images[:FEATURED_TOTAL]

        featured = with_images[:FEATURED_WITH_IMAGES]
        remaining = max(0, FEATURED_TOTAL - len(featured))
        return featured + without_images[:remaining]

    def get_trending_by_category(self) -> Dict[str, List[Article]]:
        articles = self.get_latest_articles(TRENDING_POOL)
        trending: Dict[str, List[Article]] = {}
        categories = list(dict.fromkeys(article.category for article in articles))

        for category in categories:
            in_category = [article for article in articles if article.category == category]
            with_images, without_images = _with_and_without_images(in_category)
            fill = max(0, TRENDING_PER_CATEGORY - len(with_images))
            selected = (with_images[:TRENDING_PER_CATEGORY] + without_images[:fill])[:TRENDING_PER_CATEGORY]
            if selected:
                trending[category] = selected
        return trending

    def get_related_articles(self, article: Article, limit: int = 5) -> List[Article]:
        """Articles from the same category ranked by shared tags, source and recency."""

        article_tags = {tag.lower() for tag in article.tags}
        published = article.published_at
        scored = []
        for candidate in self.get_articles():
            if candidate.id == article.id or candidate.category != article.category:
                continue

            score = 1
            score += 2 * sum(1 for tag in candidate.tags if tag.lower() in article_tags)
            if candidate.source == article.source:
                score += 1

            hours_apart = abs((candidate.published_at - published).total_seconds()) / 3600
            if hours_apart <= 24:
                score += 2
            elif hours_apart <= 72:
                score += 1

            scored.append((score, candidate))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [candidate for _, candidate in scored[:limit]]

    def get_articles_paginated(self, page: int = 1, limit: int = 12, category: Optional[str] = None) -> Page:
        if category and category != "all":
            articles = self.get_articles_by_category(category)
        else:
            articles = self.get_articles()
        articles = newest_first(articles)

        # Page one leads with an image, then one without, then the rest.
        if page == 1 and articles:
            with_images, without_images = _with_and_without_images(articles)
            if with_images:
                articles = with_images[:1] + without_images[:1] + with_images[1:] + without_images[1:]

        total = len(articles)
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        start = (page - 1) * limit
        return Page(
            articles=articles[start:start + limit],
            current_page=page,
            total_pages=total_pages,
            total_articles=total,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )

    def get_cache_info(self) -> CacheInfo:
        stats = self.cache.stats()
        return CacheInfo(
            articles_count=stats.articles_count,
            last_updated=stats.last_updated,
            cache_size=stats.cache_size,
            is_expired=stats.is_expired,
            is_refreshing=self.is_refreshing,
        )


__all__ = ["NewsService"]
