"""Background driver that keeps the article cache fresh."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .config import DEFAULT_REFRESH_INTERVAL_MS
from .service import NewsService

LOGGER = logging.getLogger(__name__)


class RefreshScheduler:
    """Run ``service.refresh_articles()`` now and then every ``interval`` seconds."""

    def __init__(self, service: NewsService, interval: float = DEFAULT_REFRESH_INTERVAL_MS / 1000) -> None:
        if interval <= 0:
            raise ValueError("Refresh interval must be positive")
        self.service = service
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            LOGGER.info("RSS refresh job is already running")
            return

        LOGGER.info("Starting RSS refresh job with %.1f minute intervals", self.interval / 60)
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="rss-refresh", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel pending runs; an in-flight refresh is left to finish."""

        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        LOGGER.info("RSS refresh job stopped")

    def wait(self) -> None:
        """Block until the scheduler is stopped."""

        while self.is_running:
            self._stop.wait(1.0)

    def _run(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval):
                break

    def run_once(self) -> None:
        try:
            LOGGER.info("Starting scheduled RSS refresh...")
            started = time.monotonic()
            articles = self.service.refresh_articles()
            duration_ms = (time.monotonic() - started) * 1000
            LOGGER.info("RSS refresh completed in %dms. Articles: %d", duration_ms, len(articles))

            info = self.service.get_cache_info()
            LOGGER.info("Cache stats: %d articles, %dKB", info.articles_count, round(info.cache_size / 1024))
        except Exception:
            LOGGER.exception("Error during scheduled RSS refresh")


__all__ = ["RefreshScheduler"]
