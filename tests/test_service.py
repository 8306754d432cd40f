"""Tests for newsroom.service.NewsService."""

import os
import threading
import time
from unittest.mock import Mock, patch

import pytest

from newsroom.cache import ARTICLES_KEY, FEEDS_KEY
from newsroom.config import Config
from newsroom.service import NewsService
from tests.conftest import BBC, TECH, make_article


@pytest.fixture
def aggregate():
    return Mock(return_value=[])


@pytest.fixture
def service(cache, aggregate):
    return NewsService(cache, sources=[BBC, TECH], aggregate=aggregate)


def _expire(cache) -> None:
    past = time.time() - 31 * 60
    os.utime(cache.store.path_for(ARTICLES_KEY), (past, past))


class TestRefreshArticles:
    def test_first_refresh_merges_and_writes_feed_snapshot(self, service, cache, aggregate) -> None:
        aggregate.return_value = [make_article(1), make_article(2, hours_ago=1)]

        articles = service.refresh_articles()

        aggregate.assert_called_once_with([BBC, TECH])
        assert [article.id for article in articles] == ["id-1", "id-2"]
        assert cache.get_articles() == articles
        snapshot = cache.get_feed_snapshot()
        assert snapshot.feeds == [BBC, TECH]
        assert len(snapshot.articles) == 2

    def test_fresh_cache_short_circuits(self, service, cache, aggregate) -> None:
        cache.cache_articles([make_article(1)])

        articles = service.refresh_articles()

        aggregate.assert_not_called()
        assert [article.id for article in articles] == ["id-1"]

    def test_force_ignores_fresh_cache(self, service, cache, aggregate) -> None:
        cache.cache_articles([make_article(1)])
        aggregate.return_value = [make_article(2, hours_ago=-1)]

        articles = service.refresh_articles(force=True)

        aggregate.assert_called_once()
        assert [article.id for article in articles] == ["id-2", "id-1"]

    def test_expired_cache_triggers_real_refresh(self, service, cache, aggregate) -> None:
        cache.cache_articles([make_article(1)])
        _expire(cache)
        aggregate.return_value = [make_article(2)]

        articles = service.refresh_articles(force=False)

        aggregate.assert_called_once()
        assert [article.id for article in articles] == ["id-2"]

    def test_empty_aggregation_keeps_cache(self, service, cache, aggregate) -> None:
        cache.cache_articles([make_article(1)])

        with patch.object(cache, "merge_articles") as merge:
            articles = service.refresh_articles(force=True)

        merge.assert_not_called()
        assert [article.id for article in articles] == ["id-1"]
        assert not (cache.store.path_for(FEEDS_KEY)).exists()

    def test_errors_fall_back_to_cache_and_release_lock(self, service, cache, aggregate) -> None:
        cache.cache_articles([make_article(1)])
        aggregate.side_effect = RuntimeError("network down")

        assert [article.id for article in service.refresh_articles(force=True)] == ["id-1"]
        assert not service.is_refreshing

        aggregate.side_effect = None
        aggregate.return_value = [make_article(2)]
        assert len(service.refresh_articles(force=True)) == 2

    def test_write_failure_returns_cached(self, service, cache, aggregate) -> None:
        cache.cache_articles([make_article(1)])
        aggregate.return_value = [make_article(2)]

        with patch.object(cache.store, "write", side_effect=OSError("read-only")):
            articles = service.refresh_articles(force=True)

        assert [article.id for article in articles] == ["id-1"]
        assert not service.is_refreshing

    @pytest.mark.parametrize("failure", [None, RuntimeError("network down")])
    def test_undecodable_cache_file_never_raises(self, service, cache, aggregate, failure) -> None:
        path = cache.store.path_for(ARTICLES_KEY)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b'{"version": "1.0.0", "articles": [\xff\xfe]}')
        aggregate.side_effect = failure

        assert service.refresh_articles() == []
        assert service.get_cache_info().articles_count == 0
        assert service.search_articles("story") == []
        assert not service.is_refreshing

    def test_single_flight(self, cache) -> None:
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_aggregate(sources):
            calls.append(sources)
            started.set()
            release.wait(5)
            return [make_article(1)]

        service = NewsService(cache, sources=[BBC], aggregate=slow_aggregate)
        results = {}
        worker = threading.Thread(target=lambda: results.setdefault("first", service.refresh_articles()))
        worker.start()
        assert started.wait(5)

        assert service.is_refreshing
        assert service.get_cache_info().is_refreshing
        assert service.refresh_articles(force=False) == []

        release.set()
        worker.join(5)

        assert len(calls) == 1
        assert [article.id for article in results["first"]] == ["id-1"]
        assert not service.is_refreshing


class TestReadApi:
    def test_get_articles_refreshes_empty_cache(self, service, aggregate) -> None:
        aggregate.return_value = [make_article(1)]
        assert [article.id for article in service.get_articles()] == ["id-1"]
        aggregate.assert_called_once()

    def test_empty_cache_queries_return_empty(self, service) -> None:
        assert service.get_articles() == []
        assert service.get_articles_by_category("general") == []
        assert service.get_article_by_slug("anything") is None
        assert service.search_articles("anything") == []
        assert service.get_featured_articles() == []
        assert service.get_trending_by_category() == {}
        assert service.get_articles_paginated().total_articles == 0

    def test_search_blank_query(self, service, cache) -> None:
        cache.cache_articles([make_article(1)])
        assert service.search_articles("   ") == []
        assert [article.id for article in service.search_articles("  story number 1 ")] == ["id-1"]

    def test_latest_articles(self, service, cache) -> None:
        cache.cache_articles([make_article(1, hours_ago=5), make_article(2, hours_ago=1), make_article(3, hours_ago=3)])
        assert [article.id for article in service.get_latest_articles(2)] == ["id-2", "id-3"]

    def test_articles_by_source_is_case_insensitive(self, service, cache) -> None:
        cache.cache_articles([make_article(1, source="BBC News"), make_article(2, source="TechCrunch")])
        assert [article.id for article in service.get_articles_by_source("bbc news")] == ["id-1"]

    def test_featured_first_article_has_image(self, service, cache) -> None:
        articles = [make_article(n, hours_ago=n) for n in range(10)]
        articles.append(make_article(10, hours_ago=10, image="https://img.example.com/10.jpg"))
        cache.cache_articles(articles)

        featured = service.get_featured_articles()

        assert featured[0].image == "https://img.example.com/10.jpg"
        assert len(featured) == 11

    def test_featured_caps_images_and_total(self, service, cache) -> None:
        articles = [make_article(n, hours_ago=n, image=f"https://img.example.com/{n}.jpg") for n in range(14)]
        articles += [make_article(n, hours_ago=n) for n in range(14, 20)]
        cache.cache_articles(articles)

        featured = service.get_featured_articles()

        assert len(featured) == 15
        assert [article.id for article in featured[:12]] == [f"id-{n}" for n in range(12)]
        assert [article.id for article in featured[12:]] == ["id-14", "id-15", "id-16"]

    def test_featured_only_looks_at_newest_twenty(self, service, cache) -> None:
        articles = [make_article(n, hours_ago=n) for n in range(20)]
        articles.append(make_article(20, hours_ago=20, image="https://img.example.com/20.jpg"))
        cache.cache_articles(articles)

        featured = service.get_featured_articles()

        assert featured[0].id == "id-0"
        assert featured[0].image is None
        assert all(article.id != "id-20" for article in featured)

    def test_featured_without_images(self, service, cache) -> None:
        cache.cache_articles([make_article(n, hours_ago=n) for n in range(20)])
        featured = service.get_featured_articles()
        assert len(featured) == 15
        assert featured[0].id == "id-0"

    def test_trending_prefers_images(self, service, cache) -> None:
        articles = [make_article(n, hours_ago=n, category="sports") for n in range(5)]
        articles.append(make_article(9, hours_ago=9, category="sports", image="https://img.example.com/9.jpg"))
        articles.append(make_article(20, hours_ago=20, category="science"))
        cache.cache_articles(articles)

        trending = service.get_trending_by_category()

        assert [article.id for article in trending["sports"]] == ["id-9", "id-0", "id-1", "id-2"]
        assert [article.id for article in trending["science"]] == ["id-20"]

    def test_related_articles_scoring(self, service, cache) -> None:
        target = make_article(1, category="technology", source="TechCrunch", tags=("AI", "Chips"))
        shared_tags = make_article(2, hours_ago=100, category="technology", source="Other", tags=("ai", "chips"))
        same_source_recent = make_article(3, hours_ago=2, category="technology", source="TechCrunch")
        within_three_days = make_article(4, hours_ago=48, category="technology", source="Other")
        other_category = make_article(5, category="sports", tags=("AI",))
        cache.cache_articles([target, shared_tags, same_source_recent, within_three_days, other_category])

        related = service.get_related_articles(target)

        # scores: id-2 = 1 + 4, id-3 = 1 + 1 + 2, id-4 = 1 + 1
        assert [article.id for article in related] == ["id-2", "id-3", "id-4"]
        assert [article.id for article in service.get_related_articles(target, limit=1)] == ["id-2"]

    def test_paginated_first_page_leads_with_image(self, service, cache) -> None:
        articles = [make_article(n, hours_ago=n) for n in range(5)]
        articles.append(make_article(5, hours_ago=5, image="https://img.example.com/5.jpg"))
        articles.append(make_article(6, hours_ago=6, image="https://img.example.com/6.jpg"))
        cache.cache_articles(articles)

        page = service.get_articles_paginated(page=1, limit=4)

        assert [article.id for article in page.articles] == ["id-5", "id-0", "id-6", "id-1"]
        assert page.total_articles == 7
        assert page.total_pages == 2
        assert page.has_next_page
        assert not page.has_previous_page

        second = service.get_articles_paginated(page=2, limit=4)
        assert [article.id for article in second.articles] == ["id-4", "id-5", "id-6"]
        assert second.has_previous_page
        assert not second.has_next_page

    def test_paginated_category_filter(self, service, cache) -> None:
        cache.cache_articles([
            make_article(1, category="business"),
            make_article(2, category="sports"),
        ])
        assert [article.id for article in service.get_articles_paginated(category="sports").articles] == ["id-2"]
        assert service.get_articles_paginated(category="all").total_articles == 2

    def test_cache_info(self, service, cache) -> None:
        cache.cache_articles([make_article(1)])
        info = service.get_cache_info()
        assert info.articles_count == 1
        assert not info.is_expired
        assert not info.is_refreshing
        assert info.cache_size > 0


class TestFromConfig:
    def test_builds_file_backed_service(self, tmp_path) -> None:
        config = Config(cache_dir=tmp_path / "news", max_articles=50, cache_ttl_ms=60_000)
        service = NewsService.from_config(config, sources=[BBC])

        assert service.sources == [BBC]
        assert service.cache.max_articles == 50
        assert service.cache.ttl_seconds == 60
        assert service.cache.store.directory == tmp_path / "news"
