"""Configuration utilities for the news cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CACHE_DIR = Path(os.getenv("NEWSROOM_CACHE_DIR", ".cache/news"))
DEFAULT_REFRESH_INTERVAL_MS = 20 * 60 * 1000
DEFAULT_CACHE_TTL_MS = 30 * 60 * 1000
CACHE_VERSION = "1.0.0"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration values for the cache and its refresher."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS
    max_articles: int = 1000
    fetch_timeout: float = 10.0
    max_redirects: int = 3
    max_items_per_feed: int = 20
    max_workers: int = 8

    @property
    def refresh_interval(self) -> float:
        """Refresh interval in seconds."""
        return self.refresh_interval_ms / 1000

    @property
    def cache_ttl(self) -> float:
        return self.cache_ttl_ms / 1000


def load_config() -> Config:
    """Load configuration from environment variables and defaults."""

    config = Config(
        cache_dir=Path(os.getenv("NEWSROOM_CACHE_DIR", str(DEFAULT_CACHE_DIR))),
        refresh_interval_ms=_env_int("RSS_REFRESH_INTERVAL_MS", DEFAULT_REFRESH_INTERVAL_MS),
        cache_ttl_ms=_env_int("NEWSROOM_CACHE_TTL_MS", DEFAULT_CACHE_TTL_MS),
        max_articles=_env_int("NEWSROOM_MAX_ARTICLES", 1000),
        fetch_timeout=float(_env_int("NEWSROOM_FETCH_TIMEOUT", 10)),
        max_redirects=_env_int("NEWSROOM_MAX_REDIRECTS", 3),
        max_items_per_feed=_env_int("NEWSROOM_MAX_ITEMS_PER_FEED", 20),
        max_workers=_env_int("NEWSROOM_MAX_WORKERS", 8),
    )

    # Ensure the cache directory exists when configuration is loaded.
    config.cache_dir.mkdir(parents=True, exist_ok=True)

    return config
