"""
Simple Crawl

A bounded-concurrency web crawler that follows links from a root URL,
stores every fetched page and stops at configurable limits.
"""

__version__ = "1.0.0"
__description__ = "A bounded-concurrency web crawler with page, size and traffic limits"
