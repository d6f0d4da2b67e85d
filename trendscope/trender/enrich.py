"""Top-tier topic enrichment with video, social and search-interest signals.

Only the first ``tier_size`` topics are enriched. They are processed in
fixed-size concurrent batches so that no more than ``batch_size`` topics
hit the collaborators at once. Each of the three lookups per topic is
independent and bounded by a timeout: a failure or timeout becomes "no
signal" for that lookup alone and is never retried.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from trendscope.core.logging import get_logger
from trendscope.signals.base import InterestLookup, SocialLookup, VideoLookup
from trendscope.trender.models import Topic

logger = get_logger(__name__)

DEFAULT_TIER_SIZE = 20
DEFAULT_BATCH_SIZE = 5
DEFAULT_TIMEOUT_SECONDS = 10.0


class Enricher:
    """Fills ``videos``, ``social`` and ``search_interest`` on top-tier topics."""

    def __init__(
        self,
        video_lookup: VideoLookup,
        social_lookup: SocialLookup,
        interest_lookup: InterestLookup,
        tier_size: int = DEFAULT_TIER_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.video_lookup = video_lookup
        self.social_lookup = social_lookup
        self.interest_lookup = interest_lookup
        self.tier_size = max(0, tier_size)
        self.batch_size = batch_size
        self.timeout = timeout

    async def aclose(self) -> None:
        await self.video_lookup.aclose()
        await self.social_lookup.aclose()
        await self.interest_lookup.aclose()

    async def _guarded(
        self,
        call: Callable[[], Awaitable[Any]],
        default: Any,
        collaborator: str,
        topic: Topic,
        region: str,
        stats: Dict[str, Any]
    ) -> Any:
        """Await one lookup; timeouts and errors yield ``default``."""
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"{collaborator} lookup timed out for '{topic.keyword}' ({region})",
                extra={"region": region, "collaborator": collaborator, "topic": topic.keyword}
            )
        except Exception as e:
            logger.warning(
                f"{collaborator} lookup failed for '{topic.keyword}' ({region}): {e}",
                extra={"region": region, "collaborator": collaborator, "topic": topic.keyword}
            )
        stats[f'{collaborator}_failures'] += 1
        return default

    async def _enrich_topic(self, topic: Topic, region: str, stats: Dict[str, Any]) -> None:
        videos, social, interest = await asyncio.gather(
            self._guarded(lambda: self.video_lookup.search(topic.keyword), [], 'video', topic, region, stats),
            self._guarded(lambda: self.social_lookup.search(topic.keyword), [], 'social', topic, region, stats),
            self._guarded(lambda: self.interest_lookup.interest(topic.keyword, region), None, 'interest', topic, region, stats),
        )
        topic.videos = list(videos or [])
        topic.social = list(social or [])
        topic.search_interest = int(interest or 0)
        stats['topics_enriched'] += 1

    async def enrich(self, topics: Sequence[Topic], region: str) -> Dict[str, Any]:
        """
        Enrich the top tier of ``topics`` in place.

        Args:
            topics: Deduplicated topics, rank order
            region: Region code passed to the search-interest lookup

        Returns:
            Dictionary with enrichment statistics
        """
        start_time = time.time()
        tier: List[Topic] = list(topics[:self.tier_size])
        stats: Dict[str, Any] = {
            'topics_total': len(topics),
            'topics_in_tier': len(tier),
            'topics_enriched': 0,
            'video_failures': 0,
            'social_failures': 0,
            'interest_failures': 0,
            'runtime_seconds': 0,
        }

        for i in range(0, len(tier), self.batch_size):
            batch = tier[i:i + self.batch_size]
            results = await asyncio.gather(
                *(self._enrich_topic(topic, region, stats) for topic in batch),
                return_exceptions=True
            )
            for topic, result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.error(f"Enrichment failed for '{topic.keyword}' ({region}): {result}")

        stats['runtime_seconds'] = round(time.time() - start_time, 2)
        logger.info(
            f"Enriched {stats['topics_enriched']}/{stats['topics_in_tier']} top-tier topics "
            f"for {region} in {stats['runtime_seconds']}s",
            extra={"region": region, **{k: v for k, v in stats.items() if k.endswith('_failures')}}
        )
        return stats
