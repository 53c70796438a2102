"""
FeedRelay Ingestion Module
==========================

Feed fetching and content normalization components.

This module handles:
- RSS feed download and parsing into feed items
- Plain-text normalization of item bodies
"""

from .feed_fetcher import FeedFetcher
from .content_cleaner import ContentCleaner

__all__ = [
    "FeedFetcher",
    "ContentCleaner",
]
