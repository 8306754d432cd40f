"""Command-line entry point for refreshing and inspecting the news cache."""

from __future__ import annotations

import argparse
import logging
import signal
from collections import Counter
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .models import Article, CacheInfo
from .scheduler import RefreshScheduler
from .service import NewsService

LOGGER = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Refresh and inspect the news article cache")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-f", "--force", action="store_true", help="Refresh even if the cache is still valid")
    parser.add_argument("--watch", action="store_true", help="Keep refreshing on the configured interval")
    parser.add_argument("--interval-ms", type=int, help="Override the refresh interval in milliseconds")
    parser.add_argument("--cache-dir", type=Path, help="Override the cache directory")
    parser.add_argument("--clear", action="store_true", help="Delete cached snapshots and exit")
    parser.add_argument("--info", action="store_true", help="Print cache information and exit")
    return parser.parse_args(argv)


def format_cache_info(info: CacheInfo) -> str:
    last_updated = (
        datetime.fromtimestamp(info.last_updated / 1000).strftime("%Y-%m-%d %H:%M:%S")
        if info.last_updated
        else "Never"
    )
    return (
        f"articles={info.articles_count} last_updated={last_updated} "
        f"expired={info.is_expired} size={round(info.cache_size / 1024)} KB"
    )


def summarize(articles: List[Article], latest: int = 5) -> str:
    lines = [f"Total articles in cache: {len(articles)}", "Articles by category:"]
    for category, count in Counter(article.category for article in articles).most_common():
        lines.append(f"  {category}: {count} articles")
    lines.append("Latest articles:")
    for index, article in enumerate(articles[:latest], start=1):
        lines.append(f"  {index}. {article.title} ({article.source})")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    config = load_config()
    if args.cache_dir:
        config = replace(config, cache_dir=args.cache_dir)
    if args.interval_ms:
        config = replace(config, refresh_interval_ms=args.interval_ms)

    service = NewsService.from_config(config)

    if args.clear:
        service.cache.clear()
        return 0

    print(f"Current cache info: {format_cache_info(service.get_cache_info())}")
    if args.info:
        return 0

    if args.watch:
        scheduler = RefreshScheduler(service, interval=config.refresh_interval)

        def _shutdown(signum, frame):
            LOGGER.info("Received signal %d, stopping background jobs...", signum)
            scheduler.stop()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)
        scheduler.start()
        scheduler.wait()
        return 0

    if args.force:
        LOGGER.info("Force refresh requested")
    articles = service.refresh_articles(force=args.force)
    print(summarize(articles))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
