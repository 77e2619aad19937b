"""
HTTP fetcher built on aiohttp.

The fetcher never raises for transport problems: timeouts and connection
errors come back as a FetchResult with status code 0 and an error message.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass, field
from aiohttp import ClientSession, ClientTimeout, ClientError

from ..utils.config import HttpConfig


CHUNK_SIZE = 8192


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when a response was received, whatever its status."""
        return self.error is None

    @property
    def size(self) -> int:
        return len(self.body)

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or 'utf-8', errors='replace')


class WebFetcher:
    """
    Fetches pages with a shared aiohttp session.

    Concurrency is bounded by the scheduler; the connector limit only sizes
    the connection pool to match.
    """

    def __init__(self, http_config: Optional[HttpConfig] = None):
        self.config = http_config or HttpConfig()
        self.logger = logging.getLogger(__name__)

        self.session: Optional[ClientSession] = None
        self.proxy_auth: Optional[aiohttp.BasicAuth] = None
        if self.config.proxy and self.config.proxy.has_credentials:
            self.proxy_auth = aiohttp.BasicAuth(self.config.proxy.username,
                                                self.config.proxy.password)

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(
                total=None,
                connect=self.config.connect_timeout,
                sock_read=self.config.stream_timeout
            )
            headers = {}
            if self.config.user_agent:
                headers['User-Agent'] = self.config.user_agent

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.config.concurrency * 2,
                    ssl=self.config.verify_ssl
                )
            )
            self.logger.debug("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL, reading the body as a stream.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with the final URL after redirects, or an error
        """
        if self.session is None:
            await self.start()

        if self.config.request_delay:
            await asyncio.sleep(self.config.request_delay)

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(
                url,
                allow_redirects=self.config.follow_redirects,
                proxy=self.config.proxy.url if self.config.proxy else None,
                proxy_auth=self.proxy_auth
            ) as response:
                body = bytearray()
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    body.extend(chunk)

                self.stats['successful_requests'] += 1
                self.stats['total_bytes_downloaded'] += len(body)

                result = FetchResult(
                    url=str(response.url),
                    status_code=response.status,
                    body=bytes(body),
                    headers=dict(response.headers),
                    content_type=response.headers.get('content-type', '').lower() or None,
                    encoding=response.charset,
                    fetch_time=time.time() - start_time
                )

                self.logger.debug(f"Fetched {url}: {response.status} ({len(body)} bytes)")
                return result

        except asyncio.TimeoutError:
            self.stats['failed_requests'] += 1
            error_msg = "Request timeout"
            self.logger.warning(f"Timeout fetching {url}")

        except ClientError as e:
            self.stats['failed_requests'] += 1
            error_msg = f"Client error: {str(e)}"
            self.logger.warning(f"Client error fetching {url}: {e}")

        except ValueError as e:
            # yarl rejects some malformed URLs before a request is made
            self.stats['failed_requests'] += 1
            error_msg = f"Invalid URL: {str(e)}"
            self.logger.warning(f"Invalid URL {url}: {e}")

        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
