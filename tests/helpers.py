import asyncio
from typing import Callable, Dict, List, Optional, Tuple, Union

from simplecrawl.crawler.fetcher import FetchResult
from simplecrawl.utils.config import Config, CrawlerConfig, HttpConfig, LimitsConfig


TIMEOUT = object()

Page = Union[str, Tuple[int, str], object]


def make_page(*hrefs: str, title: str = "page", size: Optional[int] = None) -> str:
    """HTML with one anchor per href, padded with spaces to ``size`` bytes."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    html = f"<html><head><title>{title}</title></head><body>{anchors}</body></html>"
    if size is not None:
        assert len(html) <= size, "page content does not fit the requested size"
        html += " " * (size - len(html))
    return html


def make_config(tmp_path, seed_urls=("http://a.test/",), follow_mode=2,
                limits: Optional[LimitsConfig] = None, **http) -> Config:
    return Config(
        crawler=CrawlerConfig(
            seed_urls=seed_urls,
            follow_mode=follow_mode,
            working_directory=str(tmp_path)
        ),
        limits=limits or LimitsConfig(),
        http=HttpConfig(**http)
    )


class FakeFetcher:
    """
    In-memory stand-in for WebFetcher.

    ``pages`` maps URL to HTML (status 200), to ``(status, html)``, or to
    TIMEOUT for a transport failure. Unknown URLs are 404s. ``redirects``
    maps a requested URL to the final URL whose page is served.
    """

    def __init__(self, pages: Dict[str, Page], delay: float = 0.0,
                 on_fetch: Optional[Callable[[str], None]] = None,
                 redirects: Optional[Dict[str, str]] = None):
        self.pages = pages
        self.redirects = redirects or {}
        self.delay = delay
        self.on_fetch = on_fetch
        self.requests: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, url: str) -> FetchResult:
        if self.on_fetch:
            self.on_fetch(url)
        self.requests.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            url = self.redirects.get(url, url)
            page = self.pages.get(url)
            if page is TIMEOUT:
                return FetchResult(url=url, status_code=0, error="Request timeout")
            if page is None:
                return FetchResult(url=url, status_code=404, body=b"<html>not found</html>")
            status, html = page if isinstance(page, tuple) else (200, page)
            return FetchResult(url=url, status_code=status, body=html.encode("utf-8"))
        finally:
            self.in_flight -= 1
