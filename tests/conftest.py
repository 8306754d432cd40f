"""Shared fixtures for newsroom tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from newsroom.cache import ArticleCache
from newsroom.models import Article, Source
from newsroom.normalizer import to_iso
from newsroom.store import FileSnapshotStore

BASE_TIME = datetime(2024, 1, 5, 10, 0, 0, tzinfo=timezone.utc)

BBC = Source("BBC News", "https://feeds.example.com/bbc.xml", "general", "bg-red-600")
TECH = Source("TechCrunch", "https://feeds.example.com/tc.xml", "technology", "bg-green-500")


def make_article(
    n: int,
    *,
    hours_ago: float = 0,
    title: Optional[str] = None,
    link: Optional[str] = None,
    image: Optional[str] = None,
    category: str = "general",
    source: str = "BBC News",
    tags=(),
) -> Article:
    title = title or f"Story number {n}"
    return Article(
        id=f"id-{n}",
        title=title,
        description=f"Description {n}",
        content=f"Content of story {n}",
        link=link or f"https://example.com/{n}",
        pub_date=to_iso(BASE_TIME - timedelta(hours=hours_ago)),
        source=source,
        source_color="bg-red-600",
        category=category,
        slug=f"2024-01-05-story-number-{n}",
        reading_time=1,
        tags=tuple(tags),
        image=image,
    )


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_dir) -> ArticleCache:
    return ArticleCache(FileSnapshotStore(cache_dir))
