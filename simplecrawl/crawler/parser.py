"""
HTML parsing and link extraction.
"""

import logging
import warnings
from typing import List, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning


HTML_PARSER = 'lxml'

Markup = Union[str, bytes]


def create_document(html: Markup) -> BeautifulSoup:
    """
    Parse HTML into a document tree.

    lxml recovers from malformed markup instead of raising, so any input
    produces a document. Empty input produces an empty document.
    """
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', MarkupResemblesLocatorWarning)
        return BeautifulSoup(html or '', HTML_PARSER)


def resolve_url(href: str, base_url: str) -> str:
    """Resolve a possibly relative reference against ``base_url`` (RFC 3986)."""
    return urljoin(base_url, href.strip())


class LinkExtractor:
    """
    Extracts anchor targets from HTML documents.

    Links are returned in document order and are not deduplicated; the
    frontier decides what has already been seen.
    """

    def __init__(self, base_url: str):
        self.base_url = base_url
        self.logger = logging.getLogger(__name__)

    def extract(self, html: Markup) -> List[str]:
        return self.extract_from_document(create_document(html))

    def extract_from_document(self, document: BeautifulSoup) -> List[str]:
        links = [
            resolve_url(anchor['href'], self.base_url)
            for anchor in document.find_all('a', href=True)
        ]
        self.logger.debug(f"Extracted {len(links)} links (base {self.base_url})")
        return links


def extract_links(html: Markup, base_url: str) -> List[str]:
    """
    Extract every ``<a href>`` target from ``html`` resolved against ``base_url``.

    Args:
        html: Raw HTML, text or bytes
        base_url: Absolute URL that relative references are resolved against

    Returns:
        Absolute URLs in document order, duplicates included
    """
    return LinkExtractor(base_url).extract(html)
