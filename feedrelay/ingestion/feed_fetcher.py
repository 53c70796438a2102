"""
RSS Feed Fetcher
===============

Downloads the configured feed over HTTP and turns its entries into
``FeedItem`` records, preserving feed order.
"""

import asyncio
import ssl
from datetime import datetime, timezone
from typing import Any, List, Optional

import aiohttp
import certifi
import feedparser

from ..models import FeedItem
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedFetchError, ErrorCode
from ..utils.validators import URLValidator


class FeedFetcher:
    """RSS feed fetcher with a reusable HTTP session."""

    def __init__(self, feed_url: str, user_agent: str, timeout: int = 30):
        """Initialize feed fetcher.

        Args:
            feed_url: URL of the RSS feed to poll
            user_agent: User-Agent header sent with every request
            timeout: Request timeout in seconds
        """
        self.feed_url = URLValidator.validate_feed_url(feed_url)
        self.user_agent = user_agent
        self.timeout = timeout
        self.logger = get_logger_for_component("feed_fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        """Get configured aiohttp session, creating it on first use."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit_per_host=2)
            headers = {
                "User-Agent": self.user_agent,
                "Accept": "application/rss+xml, application/xml, text/xml, */*",
                "Accept-Encoding": "gzip, deflate",
            }
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=headers,
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self) -> List[FeedItem]:
        """Fetch and parse the feed.

        Returns:
            Feed items in feed order (newest first), possibly empty

        Raises:
            FeedFetchError: On network failure, non-200 status or unparseable feed
        """
        start_time = datetime.now(timezone.utc)
        self.logger.debug(f"Fetching feed: {self.feed_url}")

        try:
            session = self._get_session()
            async with session.get(self.feed_url) as response:
                if response.status != 200:
                    raise FeedFetchError(
                        f"HTTP {response.status}: {response.reason}",
                        feed_url=self.feed_url,
                        error_code=self._status_error_code(response.status),
                    )
                content = await response.read()

        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Request timeout after {self.timeout}s",
                feed_url=self.feed_url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Fetch error: {e}",
                feed_url=self.feed_url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e

        items = self.parse_feed(content)

        self.logger.info(
            f"Fetched {len(items)} items from {self.feed_url} "
            f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
        )
        return items

    def parse_feed(self, content: Any) -> List[FeedItem]:
        """Parse raw feed content into feed items.

        Args:
            content: Feed document as bytes or str

        Raises:
            FeedFetchError: If the document cannot be parsed and has no entries
        """
        feed_data = feedparser.parse(content)

        if getattr(feed_data, "bozo", False):
            error_msg = f"Feed parse error: {getattr(feed_data, 'bozo_exception', 'invalid XML structure')}"

            # Still try to process if we have entries
            if not feed_data.entries:
                raise FeedFetchError(
                    error_msg,
                    feed_url=self.feed_url,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                    recoverable=False,
                )
            self.logger.info(f"Feed has parse warnings but contains entries: {error_msg}")

        return self._parse_entries(feed_data.entries)

    def _parse_entries(self, entries: List[Any]) -> List[FeedItem]:
        items = []

        for entry in entries:
            link = (entry.get("link") or "").strip()
            identifier = link or (entry.get("id") or "").strip()
            if not identifier:
                self.logger.warning(
                    "Entry has neither link nor id, skipping",
                    extra={"entry_title": entry.get("title", "")},
                )
                continue

            items.append(
                FeedItem(
                    identifier=identifier,
                    title=entry.get("title") or "",
                    body=self._extract_body(entry),
                    published_at=entry.get("published") or entry.get("updated") or "",
                    link=link,
                )
            )

        return items

    def _extract_body(self, entry: Any) -> str:
        # RSS <description> is exposed by feedparser as "summary"
        summary = entry.get("summary")
        if summary:
            return summary

        content = entry.get("content")
        if isinstance(content, list) and content:
            return content[0].get("value", "") or ""

        return ""

    @staticmethod
    def _status_error_code(status: int) -> ErrorCode:
        if status in (401, 403):
            return ErrorCode.FEED_ACCESS_DENIED
        if status in (404, 410):
            return ErrorCode.FEED_NOT_FOUND
        return ErrorCode.FEED_NETWORK_ERROR
