"""Google News RSS feed source: regional top stories and keyword search."""

from typing import Any, List, NamedTuple, Optional
from urllib.parse import quote_plus

import feedparser
import httpx

from trendscope.core.logging import get_logger
from trendscope.core.regions import get_region
from trendscope.ingestor.normalizer import normalize_entry
from trendscope.trender.models import RawHeadline

logger = get_logger(__name__)

GOOGLE_NEWS_BASE_URL = "https://news.google.com/rss"
TOP_STORIES_TOPIC = "h"
DEFAULT_MAX_ITEMS = 50
DEFAULT_SEARCH_LIMIT = 5


class FetchResult(NamedTuple):
    """Result of RSS feed fetch operation."""
    status_code: int
    feed: Optional[Any] = None  # feedparser.FeedParserDict
    error: Optional[str] = None


class FeedUnavailableError(Exception):
    """The feed could not be fetched or parsed."""


class GoogleNewsFeed:
    """
    Google News RSS reader.

    Requests are made once: a failed or timed-out request is reported to
    the caller, never retried.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_items: int = DEFAULT_MAX_ITEMS,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.timeout = timeout
        self.max_items = max_items
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": "Trendscope/1.0 (RSS Reader)"
            },
            follow_redirects=True,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def top_stories_url(self, region_code: str) -> str:
        region = get_region(region_code)
        return (
            f"{GOOGLE_NEWS_BASE_URL}?topic={TOP_STORIES_TOPIC}"
            f"&hl={region.hl}&gl={region.code}&ceid={region.ceid}"
        )

    def search_url(self, query: str, region_code: str) -> str:
        region = get_region(region_code)
        return (
            f"{GOOGLE_NEWS_BASE_URL}/search?q={quote_plus(query)}"
            f"&hl={region.hl}&gl={region.code}&ceid={region.ceid}"
        )

    async def _fetch_feed(self, url: str) -> FetchResult:
        """Fetch and parse one feed URL."""
        try:
            logger.debug(f"Fetching RSS feed: {url}")
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return FetchResult(status_code=e.response.status_code, error=f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            return FetchResult(status_code=0, error=f"Request error: {type(e).__name__}: {e}")

        if not response.text.strip():
            return FetchResult(status_code=response.status_code, error="Empty feed content")

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            return FetchResult(
                status_code=response.status_code,
                error=f"Feed parsing error: {feed.bozo_exception}"
            )
        if feed.bozo:
            logger.warning(f"Feed parsing warning for {url}: {feed.bozo_exception}")

        return FetchResult(status_code=response.status_code, feed=feed)

    def _headlines(self, feed: Any, limit: int) -> List[RawHeadline]:
        headlines = []
        for entry in feed.entries:
            headline = normalize_entry(entry)
            if headline:
                headlines.append(headline)
            if len(headlines) >= limit:
                break
        return headlines

    async def fetch(self, region: str) -> List[RawHeadline]:
        """
        Fetch the region's top stories in feed order, at most ``max_items``.

        Raises:
            FeedUnavailableError: the feed could not be fetched or parsed
        """
        url = self.top_stories_url(region)
        result = await self._fetch_feed(url)

        if result.error:
            raise FeedUnavailableError(f"Top stories feed for {region} unavailable: {result.error}")

        headlines = self._headlines(result.feed, self.max_items)
        logger.info(f"Fetched {len(headlines)} headlines for {region}")
        return headlines

    async def search(self, query: str, region: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[RawHeadline]:
        """News articles matching a keyword; empty on any failure."""
        result = await self._fetch_feed(self.search_url(query, region))

        if result.error:
            logger.error(f"News search failed for '{query}' ({region}): {result.error}")
            return []

        return self._headlines(result.feed, limit)
