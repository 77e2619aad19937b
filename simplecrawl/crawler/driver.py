"""
Crawl driver: repeats scheduling rounds until the frontier is exhausted or a
limit stops the crawl, and returns the final report.
"""

import asyncio
import time
from typing import Optional

from .dispatcher import CallbackDispatcher, PageCallback
from .fetcher import WebFetcher
from .limits import CrawlLimitReached, CrawlResult, CrawlState, LimitEnforcer
from .scheduler import Fetcher, FetchScheduler
from .url_frontier import URLFrontier
from ..storage.file_store import FileStore
from ..utils.config import Config
from ..utils.logger import CrawlerLogAdapter, get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class Crawler:
    """
    Crawls from the first seed URL of ``config``.

    ``fetcher`` defaults to a WebFetcher built from ``config.http`` whose
    session is opened and closed around the crawl. ``store`` defaults to a
    FileStore in the configured working directory.

    A Crawler runs once; build a new one for another crawl.
    """

    def __init__(self, config: Config,
                 fetcher: Optional[Fetcher] = None,
                 store: Optional[FileStore] = None,
                 fulfilled: Optional[PageCallback] = None,
                 rejected: Optional[PageCallback] = None,
                 logger: Optional[CrawlerLogAdapter] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.logger = get_crawler_logger(logger=logger)
        self.monitor = monitor

        self.state = CrawlState()
        self.frontier = URLFrontier(
            config.crawler.seed_urls,
            follow_mode=config.crawler.follow_mode,
            port=config.http.port,
            logger=self.logger,
            monitor=monitor
        )
        self.limits = LimitEnforcer(config.limits)
        self.dispatcher = CallbackDispatcher(fulfilled, rejected, logger=self.logger)
        self.store = store if store is not None else FileStore(config.crawler.working_directory)

        self._fetcher = fetcher
        self._started = False
        self.scheduler: Optional[FetchScheduler] = None
        self.result: Optional[CrawlResult] = None

    async def crawl(self) -> CrawlResult:
        """Run the crawl to completion and return the report."""
        if self._started:
            raise RuntimeError("This crawler has already been run")
        self._started = True

        owns_fetcher = self._fetcher is None
        fetcher = self._fetcher if not owns_fetcher else WebFetcher(self.config.http)

        self.scheduler = FetchScheduler(
            fetcher,
            self.frontier,
            self.limits,
            self.state,
            dispatcher=self.dispatcher,
            store=self.store,
            concurrency=self.config.http.concurrency,
            logger=self.logger,
            monitor=self.monitor
        )

        self.logger.info(
            f"Crawling {self.frontier.root_url} "
            f"(follow mode {self.config.crawler.follow_mode}, "
            f"concurrency {self.config.http.concurrency})"
        )
        start_time = time.time()

        try:
            if owns_fetcher:
                await fetcher.start()
            self.result = await self._run_rounds()
        finally:
            if owns_fetcher:
                self.logger.debug(f"Fetcher stats: {fetcher.get_stats()}")
                await fetcher.close()

        self._log_final_stats(time.time() - start_time)
        return self.result

    def run(self) -> CrawlResult:
        """Synchronous entry point."""
        return asyncio.run(self.crawl())

    async def _run_rounds(self) -> CrawlResult:
        rounds = 0
        try:
            while not self.frontier.is_empty() or self.state.active_requests > 0:
                rounds += 1
                self.logger.debug(f"Round {rounds}: {self.frontier.pending_count} pending")
                await self.scheduler.run_round()
        except CrawlLimitReached as e:
            self.logger.info(f"Crawl terminated: {e.reason}")
            # In-flight fetches have finished, so the counters include them.
            return self.state.to_result(e.reason)

        return self.state.to_result()

    def _log_final_stats(self, elapsed: float):
        result = self.result
        frontier_stats = self.frontier.get_stats()
        store_stats = self.store.get_stats()

        self.logger.info("=== CRAWL COMPLETED ===")
        if result.terminated:
            self.logger.info(f"Stopped by limit: {result.reason}")
        self.logger.info(f"Total pages: {result.total_pages}")
        self.logger.info(f"Total traffic: {result.total_traffic} bytes")
        self.logger.info(f"Links followed: {result.links_followed}")
        self.logger.info(f"URLs pending: {frontier_stats['pending']}, visited: {frontier_stats['visited']}")
        self.logger.info(f"Files stored: {store_stats['total_stored']} ({store_stats['total_size_bytes']} bytes)")
        self.logger.info(f"Errors: {self.scheduler.errors}, callback failures: {self.dispatcher.failures}")
        self.logger.info(f"Total time: {elapsed:.2f} seconds")
