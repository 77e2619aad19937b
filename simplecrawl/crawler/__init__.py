"""
Crawler core components.
"""

from .url_frontier import URLFrontier, URLEntry
from .fetcher import WebFetcher, FetchResult
from .parser import LinkExtractor, create_document, extract_links
from .limits import CrawlLimitReached, CrawlResult, CrawlState, LimitEnforcer
from .dispatcher import CallbackDispatcher, FetchCompleted
from .scheduler import FetchScheduler
from .driver import Crawler

__all__ = [
    'URLFrontier', 'URLEntry',
    'WebFetcher', 'FetchResult',
    'LinkExtractor', 'create_document', 'extract_links',
    'CrawlLimitReached', 'CrawlResult', 'CrawlState', 'LimitEnforcer',
    'CallbackDispatcher', 'FetchCompleted',
    'FetchScheduler',
    'Crawler'
]
