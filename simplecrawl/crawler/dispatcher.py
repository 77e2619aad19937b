"""
Delivers fetch completions to user callbacks.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from bs4 import BeautifulSoup

from ..utils.logger import CrawlerLogAdapter, get_crawler_logger


# fulfilled(url, document) / rejected(url, document); may be coroutine functions
PageCallback = Callable[[str, BeautifulSoup], Any]


@dataclass
class FetchCompleted:
    """A fetch that has been through the response pipeline."""
    url: str
    status: int
    body: bytes
    document: BeautifulSoup
    links: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def received(self) -> bool:
        return self.error is None


class CallbackDispatcher:
    """
    Calls the fulfilled handler for every received response and, in addition,
    the rejected handler for every non-200 outcome. Handler exceptions are
    logged and never reach the scheduler.
    """

    def __init__(self, fulfilled: Optional[PageCallback] = None,
                 rejected: Optional[PageCallback] = None,
                 logger: Optional[CrawlerLogAdapter] = None):
        self.fulfilled = fulfilled
        self.rejected = rejected
        self.logger = get_crawler_logger(logger=logger)
        self.failures = 0

    async def dispatch(self, event: FetchCompleted):
        if self.fulfilled is not None and event.received:
            await self._invoke(self.fulfilled, event)

        if self.rejected is not None and event.status != 200:
            await self._invoke(self.rejected, event)

    async def _invoke(self, callback: PageCallback, event: FetchCompleted):
        try:
            outcome = callback(event.url, event.document)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self.failures += 1
            name = getattr(callback, '__name__', repr(callback))
            self.logger.error(f"Callback {name} failed for {event.url}: {e}", exc_info=True)
