"""
Crawl counters, the terminal report and limit enforcement.
"""

from dataclasses import dataclass
from typing import Optional

from ..utils.config import LimitsConfig


REQUEST_LIMIT_REACHED = 'Request limit reached'
CONTENT_SIZE_LIMIT_EXCEEDED = 'Content size limit exceeded'
TRAFFIC_LIMIT_EXCEEDED = 'Traffic limit exceeded'

STATUS_DONE = 'done'
STATUS_TERMINATED = 'terminated'


@dataclass(frozen=True)
class CrawlResult:
    """Final report of a crawl."""
    total_pages: int
    total_traffic: int
    links_followed: int
    status: str = STATUS_DONE
    reason: Optional[str] = None

    @property
    def terminated(self) -> bool:
        return self.status == STATUS_TERMINATED


@dataclass
class CrawlState:
    """Counters for one crawl session."""
    total_pages: int = 0
    total_traffic: int = 0
    links_followed: int = 0
    active_requests: int = 0

    def to_result(self, reason: Optional[str] = None) -> CrawlResult:
        return CrawlResult(
            total_pages=self.total_pages,
            total_traffic=self.total_traffic,
            links_followed=self.links_followed,
            status=STATUS_TERMINATED if reason else STATUS_DONE,
            reason=reason
        )


class CrawlLimitReached(Exception):
    """Signals that a limit stopped the crawl. Carries the report at that point."""

    def __init__(self, reason: str, result: CrawlResult):
        super().__init__(reason)
        self.reason = reason
        self.result = result


class LimitEnforcer:
    """Evaluates the configured limits against the crawl state."""

    def __init__(self, limits: Optional[LimitsConfig] = None):
        self.limits = limits or LimitsConfig()

    def _stop(self, reason: str, state: CrawlState):
        raise CrawlLimitReached(reason, state.to_result(reason))

    def check_before_fetch(self, state: CrawlState):
        """Raise CrawlLimitReached if no further fetch may be issued."""
        limits = self.limits

        if limits.request_limit is not None and state.total_pages >= limits.request_limit:
            self._stop(REQUEST_LIMIT_REACHED, state)

        # In-flight fetches were allowed to complete; stop before the next one.
        if (limits.traffic_limit is not None and limits.complete_requested_files
                and state.total_traffic > limits.traffic_limit):
            self._stop(TRAFFIC_LIMIT_EXCEEDED, state)

    def record_response(self, state: CrawlState, status_code: int, size: int):
        """Count a completed response and raise CrawlLimitReached if it breaks a limit."""
        limits = self.limits

        state.total_pages += 1
        if limits.only_count_received_documents and status_code != 200:
            state.total_pages -= 1

        if limits.content_size_limit is not None and size > limits.content_size_limit:
            self._stop(CONTENT_SIZE_LIMIT_EXCEEDED, state)

        if limits.traffic_limit is not None:
            state.total_traffic += size
            if not limits.complete_requested_files and state.total_traffic > limits.traffic_limit:
                self._stop(TRAFFIC_LIMIT_EXCEEDED, state)

    def request_slots(self, state: CrawlState) -> Optional[int]:
        """
        How many more fetches may be started without overshooting the request
        limit, counting in-flight fetches as pages. None means unlimited.
        """
        if self.limits.request_limit is None:
            return None
        return self.limits.request_limit - state.total_pages - state.active_requests
