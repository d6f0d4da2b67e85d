"""Reddit social lookup.

Reddit blocks unauthenticated server traffic, so the lookup ships disabled
(``SOCIAL_ENABLED=false``) and returns no posts. It stays wired into the
enricher so the signal can be switched back on without code changes.
"""

from typing import List, Optional

import httpx

from trendscope.core.logging import get_logger
from trendscope.signals.base import SocialLookup
from trendscope.trender.models import SocialItem

logger = get_logger(__name__)

REDDIT_SEARCH_URL = "https://www.reddit.com/search.json"
REDDIT_BASE_URL = "https://www.reddit.com"


class RedditSocialLookup(SocialLookup):

    def __init__(
        self,
        enabled: bool = False,
        max_results: int = 3,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.enabled = enabled
        self.max_results = max_results
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": "Mozilla/5.0 (compatible; Trendscope/1.0)"},
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def search(self, label: str) -> List[SocialItem]:
        if not self.enabled:
            logger.debug(f"Social lookup disabled, skipping '{label}'")
            return []

        response = await self.client.get(
            REDDIT_SEARCH_URL,
            params={"q": label, "sort": "relevance", "limit": self.max_results},
        )
        response.raise_for_status()

        posts = []
        for child in response.json().get("data", {}).get("children", []):
            data = child.get("data", {})
            posts.append(SocialItem(
                title=data.get("title", ""),
                link=f"{REDDIT_BASE_URL}{data.get('permalink', '')}",
                platform="Reddit",
                author=data.get("author"),
                score=int(data.get("score") or 0),
            ))

        return posts[:self.max_results]
