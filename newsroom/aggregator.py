"""Concurrent aggregation of articles across all configured sources."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .fetchers import FeedFetcher, fetch_and_normalize
from .models import Article, Source, newest_first

LOGGER = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")


@dataclass
class AggregationResult:
    articles: List[Article] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def dedup_key(article: Article) -> str:
    normalized_title = _PUNCTUATION.sub("", article.title.lower()).strip()
    return f"{normalized_title}-{article.link}"


def remove_duplicates(articles: Iterable[Article]) -> List[Article]:
    """Drop articles whose normalized title and link were already seen.

    Keeps the first occurrence and preserves original order.
    """

    seen = set()
    unique: List[Article] = []
    total = 0
    for article in articles:
        total += 1
        key = dedup_key(article)
        if key in seen:
            continue
        seen.add(key)
        unique.append(article)
    LOGGER.info("Removed %d duplicate articles", total - len(unique))
    return unique


def collect(
    sources: Sequence[Source],
    fetcher: Optional[FeedFetcher] = None,
    max_workers: int = 8,
) -> AggregationResult:
    """Fetch every source concurrently and wait for all of them to settle."""

    fetcher = fetcher or FeedFetcher()
    outcome = AggregationResult()
    if not sources:
        return outcome

    LOGGER.info("Fetching articles from %d sources...", len(sources))
    collected: List[Article] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(sources)))) as executor:
        futures = [(source, executor.submit(fetch_and_normalize, fetcher, source)) for source in sources]
        for source, future in futures:
            try:
                result, articles = future.result()
            except Exception:
                LOGGER.exception("Failed to fetch from %s", source.name)
                outcome.failed.append(source.name)
                continue
            if result.ok:
                outcome.succeeded.append(source.name)
            else:
                outcome.failed.append(source.name)
            collected.extend(articles)

    LOGGER.info(
        "Successfully fetched from %d sources, %d failed",
        len(outcome.succeeded),
        len(outcome.failed),
    )
    LOGGER.info("Total articles fetched: %d", len(collected))

    outcome.articles = newest_first(remove_duplicates(collected))
    return outcome


def aggregate_all(
    sources: Sequence[Source],
    fetcher: Optional[FeedFetcher] = None,
    max_workers: int = 8,
) -> List[Article]:
    """Aggregate, deduplicate and sort articles from ``sources``."""

    return collect(sources, fetcher=fetcher, max_workers=max_workers).articles


__all__ = [
    "AggregationResult",
    "aggregate_all",
    "collect",
    "dedup_key",
    "remove_duplicates",
]
