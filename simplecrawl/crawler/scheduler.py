"""
Fetch scheduler that keeps a bounded number of fetches in flight.
"""

import asyncio
from typing import Optional, Protocol, Set

from .dispatcher import CallbackDispatcher, FetchCompleted
from .fetcher import FetchResult
from .limits import CrawlLimitReached, CrawlState, LimitEnforcer
from .parser import LinkExtractor, create_document
from .url_frontier import URLEntry, URLFrontier
from ..storage.file_store import FileStore, StorageError
from ..utils.logger import CrawlerLogAdapter, get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


DEFAULT_CONCURRENCY = 5


class Fetcher(Protocol):
    """Anything that can fetch a URL the way WebFetcher does."""

    async def fetch(self, url: str) -> FetchResult:
        ...


class FetchScheduler:
    """
    Runs scheduling rounds against the frontier.

    Each round pulls candidates lazily from the frontier and keeps at most
    ``concurrency`` fetches in flight. Completions are handled in arrival
    order: count the response against the limits, store the body, queue the
    page's links and dispatch callbacks.
    """

    def __init__(self, fetcher: Fetcher, frontier: URLFrontier,
                 limits: LimitEnforcer, state: CrawlState,
                 dispatcher: Optional[CallbackDispatcher] = None,
                 store: Optional[FileStore] = None,
                 concurrency: int = DEFAULT_CONCURRENCY,
                 logger: Optional[CrawlerLogAdapter] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.fetcher = fetcher
        self.frontier = frontier
        self.limits = limits
        self.state = state
        self.store = store
        self.concurrency = concurrency
        self.logger = get_crawler_logger(logger=logger)
        self.dispatcher = dispatcher or CallbackDispatcher(logger=self.logger)
        self.monitor = monitor

        # Links are resolved against the crawl root, not the page they came from.
        self.extractor = LinkExtractor(frontier.root_url)
        self.peak_in_flight = 0
        self.errors = 0

    def _gate(self):
        self.limits.check_before_fetch(self.state)

    def _can_admit(self, tasks: Set[asyncio.Task]) -> bool:
        if len(tasks) >= self.concurrency:
            return False
        slots = self.limits.request_slots(self.state)
        return slots is None or slots > 0

    async def run_round(self):
        """
        Schedule fetches until the frontier has nothing left to offer and every
        fetch started in this round has completed.

        Raises CrawlLimitReached once the fetches already in flight have
        finished.
        """
        tasks: Set[asyncio.Task] = set()
        candidates = self.frontier.candidates(gate=self._gate)

        try:
            while True:
                while tasks and not self._can_admit(tasks):
                    await self._wait_for_completion(tasks)

                try:
                    entry = next(candidates)
                except StopIteration:
                    break

                tasks.add(self._dispatch(entry))

            while tasks:
                await self._wait_for_completion(tasks)

        except CrawlLimitReached as e:
            self.logger.info(f"Stopping: {e.reason}, waiting for {len(tasks)} in-flight requests")
            await self._drain(tasks)
            raise
        finally:
            candidates.close()
            for task in tasks:
                task.cancel()

    def _dispatch(self, entry: URLEntry) -> asyncio.Task:
        self.state.active_requests += 1
        self.state.links_followed += 1
        self.peak_in_flight = max(self.peak_in_flight, self.state.active_requests)

        self.logger.success(f"Crawling URL: {entry.url}")
        if self.monitor:
            self.monitor.update_active_requests(self.state.active_requests)
            self.monitor.update_queue_size(self.frontier.pending_count)

        return asyncio.create_task(self._fetch_and_process(entry))

    async def _wait_for_completion(self, tasks: Set[asyncio.Task]):
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        tasks.difference_update(done)

        limit_reached: Optional[CrawlLimitReached] = None
        for task in done:
            error = task.exception()
            if isinstance(error, CrawlLimitReached):
                limit_reached = limit_reached or error
            elif error is not None:
                raise error

        if limit_reached is not None:
            raise limit_reached

    async def _drain(self, tasks: Set[asyncio.Task]):
        """Let in-flight fetches finish; later limit signals are ignored."""
        if not tasks:
            return

        results = await asyncio.gather(*tasks, return_exceptions=True)
        tasks.clear()
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, CrawlLimitReached):
                self.logger.error(f"Error while finishing in-flight request: {result}")

    async def _fetch_and_process(self, entry: URLEntry):
        try:
            result = await self.fetcher.fetch(entry.url)
            await self._handle_response(entry, result)
        except CrawlLimitReached:
            raise
        except Exception as e:
            self.errors += 1
            self.logger.error(f"Error processing {entry.url}: {e}", exc_info=True)
            if self.monitor:
                self.monitor.record_error('processing')
        finally:
            self.state.active_requests -= 1
            if self.monitor:
                self.monitor.update_active_requests(self.state.active_requests)

    async def _handle_response(self, entry: URLEntry, result: FetchResult):
        """Per-response pipeline. Raises CrawlLimitReached."""
        url = result.url
        duplicate = url != entry.url and not self.frontier.mark_visited(url)

        if self.monitor:
            self.monitor.record_url_fetched(url, result.status_code, result.fetch_time, result.size)

        if not result.ok:
            self.errors += 1
            self.logger.error(f"Failed to fetch {url}: {result.error}")
            if self.monitor:
                self.monitor.record_error('transport')

        self.limits.record_response(self.state, result.status_code, result.size)

        if duplicate:
            self.logger.info(f"Skipping (already visited): {entry.url} redirected to {url}")
            return

        links = []
        if result.ok:
            await self._store(url, result.body)

            document = create_document(result.body)
            self.logger.info(f"Extracting links from URL: {url} (Root: {self.frontier.root_url})")
            links = self.extractor.extract_from_document(document)
            added = sum(1 for link in links if self.frontier.enqueue(link))
            self.logger.success(f"Added {added} of {len(links)} links!")
            self.logger.info(f"Total pages: {self.state.total_pages}")
        else:
            document = create_document(b'')

        await self.dispatcher.dispatch(FetchCompleted(
            url=url,
            status=result.status_code,
            body=result.body,
            document=document,
            links=links,
            error=result.error
        ))

    async def _store(self, url: str, body: bytes):
        if self.store is None:
            return

        self.logger.info(f"Storing temporary file for URL: {url}")
        try:
            await self.store.store(url, body)
        except StorageError as e:
            self.errors += 1
            self.logger.error(str(e))
            if self.monitor:
                self.monitor.record_error('storage')
