"""
URL Frontier for a single crawl session.

Holds the pending URLs in discovery order and the set of URLs already selected
for fetching. The first seed URL is the root of the crawl; the follow mode is
always evaluated against it.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, Iterator, Optional
from urllib.parse import urlsplit

from ..utils.config import (
    FOLLOW_ALL, FOLLOW_SAME_DOMAIN, FOLLOW_SAME_HOST, FOLLOW_SAME_PATH, FOLLOW_MODES
)
from ..utils.logger import CrawlerLogAdapter, get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


DEFAULT_PORTS = (80, 443)


@dataclass(frozen=True)
class URLEntry:
    """An absolute URL and the components the crawler filters on."""
    url: str
    scheme: str
    host: str
    path: str

    @classmethod
    def from_url(cls, url: str) -> 'URLEntry':
        """Parse ``url``. Raises ValueError for URLs that cannot be split."""
        parts = urlsplit(url)
        return cls(
            url=url,
            scheme=parts.scheme,
            host=parts.hostname or '',
            path=parts.path
        )

    def with_port(self, port: int) -> 'URLEntry':
        """Rewrite to ``scheme://host:port`` followed by the path."""
        # IPv6 literals keep their brackets in the netloc
        host = f"[{self.host}]" if ':' in self.host else self.host
        return URLEntry(
            url=f"{self.scheme}://{host}:{port}{self.path}",
            scheme=self.scheme,
            host=self.host,
            path=self.path
        )


class URLFrontier:
    """
    Pending URLs plus the visited set.

    A URL is marked visited when it is handed out as a candidate, not when it
    is discovered, so it can be queued several times but is fetched once.
    """

    def __init__(self, seed_urls: Iterable[str], follow_mode: int = FOLLOW_SAME_HOST,
                 port: Optional[int] = None,
                 logger: Optional[CrawlerLogAdapter] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        if follow_mode not in FOLLOW_MODES:
            raise ValueError(f"Invalid follow mode: {follow_mode}")

        self.pending: Deque[URLEntry] = deque(URLEntry.from_url(url) for url in seed_urls)
        if not self.pending:
            raise ValueError("The frontier needs at least one seed URL")

        self.root = self.pending[0]
        self.follow_mode = follow_mode
        self.port = port if port not in DEFAULT_PORTS else None
        self.visited: Dict[str, bool] = {}
        self.logger = get_crawler_logger(logger=logger)
        self.monitor = monitor

    @property
    def root_url(self) -> str:
        return self.root.url

    def enqueue(self, url: str) -> bool:
        """
        Queue a discovered URL.
        Returns True if the URL was queued, False if already visited or invalid.
        """
        if url in self.visited:
            return False

        try:
            entry = URLEntry.from_url(url)
        except ValueError as e:
            self.logger.error(f"Skipping (invalid URL): {url} ({e})")
            return False

        self.pending.append(entry)
        return True

    def candidates(self, gate: Optional[Callable[[], None]] = None) -> Iterator[URLEntry]:
        """
        Lazily yield pending URLs that should be fetched next.

        ``gate`` is called before each pending URL is examined and may raise to
        end the crawl. URLs queued while the generator is suspended are picked
        up by the same generator.
        """
        while self.pending:
            if gate is not None:
                gate()

            entry = self.pending.popleft()
            if self.port is not None:
                entry = entry.with_port(self.port)

            reason = self._rejection_reason(entry)
            if reason:
                self.logger.log_url_event(logging.INFO, entry.url, f"Skipping ({reason})")
                if self.monitor:
                    self.monitor.record_url_skipped(entry.url, reason)
                continue

            if entry.url in self.visited:
                continue

            self.visited[entry.url] = True
            yield entry

    def mark_visited(self, url: str) -> bool:
        """
        Record a URL reached without being handed out, such as a redirect
        target. Returns False if it was already visited.
        """
        if url in self.visited:
            return False
        self.visited[url] = True
        return True

    def _rejection_reason(self, entry: URLEntry) -> Optional[str]:
        if self.follow_mode == FOLLOW_ALL:
            return None

        # Modes 1 and 2 do not distinguish subdomains.
        if self.follow_mode in (FOLLOW_SAME_DOMAIN, FOLLOW_SAME_HOST):
            if entry.host != self.root.host:
                return 'wrong domain/subdomain'
            return None

        if self.follow_mode == FOLLOW_SAME_PATH:
            if not entry.path.startswith(self.root.path):
                return 'wrong path'

        return None

    def is_visited(self, url: str) -> bool:
        return url in self.visited

    def is_empty(self) -> bool:
        return not self.pending

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def visited_count(self) -> int:
        return len(self.visited)

    def get_stats(self) -> Dict[str, int]:
        return {
            'pending': self.pending_count,
            'visited': self.visited_count,
        }
