"""YouTube video lookup (Data API v3 search)."""

from typing import List, Optional

import httpx

from trendscope.core.logging import get_logger
from trendscope.signals.base import VideoLookup
from trendscope.trender.models import VideoItem

logger = get_logger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="


class YouTubeVideoLookup(VideoLookup):

    def __init__(
        self,
        api_key: str,
        max_results: int = 3,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.max_results = max_results
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def search(self, label: str) -> List[VideoItem]:
        if not self.api_key:
            logger.debug(f"No YouTube API key configured, skipping video lookup for '{label}'")
            return []

        response = await self.client.get(
            YOUTUBE_SEARCH_URL,
            params={
                "part": "snippet",
                "type": "video",
                "q": label,
                "maxResults": self.max_results,
                "key": self.api_key,
            },
        )
        response.raise_for_status()

        videos = []
        for item in response.json().get("items", []):
            video_id = item.get("id", {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet", {})
            thumbnails = snippet.get("thumbnails", {})
            thumbnail = (thumbnails.get("high") or thumbnails.get("default") or {}).get("url", "")
            videos.append(VideoItem(
                id=video_id,
                title=snippet.get("title", ""),
                thumbnail=thumbnail,
                channel_title=snippet.get("channelTitle", ""),
                link=f"{YOUTUBE_WATCH_URL}{video_id}",
            ))

        return videos[:self.max_results]
