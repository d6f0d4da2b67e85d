"""Trending topics pipeline orchestrator.

Coordinates one run for one region, each step finishing before the next:
1. Feed: fetch the region's top headlines (bounded)
2. Annotation: one batched keyword/summary call, local labels on failure
3. Deduplication: merge headlines sharing a keyword into topics
4. Enrichment: video/social/search-interest signals for the top tier
5. Scoring and ranking: composite score, stable sort by total
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from trendscope.annotator.llm_provider import AnnotationProvider, AnnotationProviderFactory
from trendscope.core.logging import get_logger
from trendscope.core.settings import Settings, get_settings
from trendscope.ingestor.normalizer import fallback_annotation
from trendscope.ingestor.rss import GoogleNewsFeed
from trendscope.signals import GoogleTrendsInterestLookup, RedditSocialLookup, YouTubeVideoLookup
from trendscope.trender.enrich import Enricher
from trendscope.trender.models import Annotation, RawHeadline, Topic
from trendscope.trender.score import rank_topics, score_topics
from trendscope.trender.topics import deduplicate_headlines

logger = get_logger(__name__)

DEFAULT_MAX_ITEMS = 50
DEFAULT_FEED_TIMEOUT = 15.0
DEFAULT_ANNOTATION_TIMEOUT = 30.0


@dataclass
class PipelineStats:
    """Statistics of one pipeline run."""
    region: str
    headlines: int = 0
    annotated: int = 0
    fallback_labels: int = 0
    topics: int = 0
    runtime_seconds: float = 0.0
    stages: Dict[str, float] = field(default_factory=dict)  # stage name -> runtime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'region': self.region,
            'headlines': self.headlines,
            'annotated': self.annotated,
            'fallback_labels': self.fallback_labels,
            'topics': self.topics,
            'runtime_seconds': self.runtime_seconds,
            'stages': self.stages,
        }


def align_annotations(
    headlines: Sequence[RawHeadline],
    annotations: Sequence[Annotation]
) -> List[Annotation]:
    """
    Pair every headline with an annotation.

    Missing entries (short batch) and blank keywords are replaced by the
    headline's locally derived label.
    """
    aligned = []
    for index, headline in enumerate(headlines):
        annotation = annotations[index] if index < len(annotations) else None
        if annotation is None or not (annotation.keyword or '').strip():
            aligned.append(fallback_annotation(headline))
        else:
            aligned.append(annotation)
    return aligned


class TrendPipeline:
    """Turns a region's feed into a scored, deduplicated, ordered topic list."""

    def __init__(
        self,
        feed: GoogleNewsFeed,
        annotator: AnnotationProvider,
        enricher: Enricher,
        max_items: int = DEFAULT_MAX_ITEMS,
        feed_timeout: float = DEFAULT_FEED_TIMEOUT,
        annotation_timeout: float = DEFAULT_ANNOTATION_TIMEOUT
    ):
        self.feed = feed
        self.annotator = annotator
        self.enricher = enricher
        self.max_items = max_items
        self.feed_timeout = feed_timeout
        self.annotation_timeout = annotation_timeout
        self.last_stats: Optional[PipelineStats] = None

    async def aclose(self) -> None:
        """Close the HTTP clients of every collaborator."""
        await self.feed.aclose()
        await self.annotator.aclose()
        await self.enricher.aclose()

    async def _fetch_headlines(self, region: str) -> List[RawHeadline]:
        try:
            headlines = await asyncio.wait_for(self.feed.fetch(region), timeout=self.feed_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Feed fetch timed out for {region}", extra={"region": region, "collaborator": "feed"})
            return []
        except Exception as e:
            logger.error(f"Feed fetch failed for {region}: {e}", extra={"region": region, "collaborator": "feed"})
            return []
        return list(headlines)[:self.max_items]

    async def _annotate(self, headlines: List[RawHeadline], region: str) -> List[Annotation]:
        if not self.annotator.is_configured:
            logger.info(f"Annotator not configured, using local labels for {region}")
            return []

        try:
            return await asyncio.wait_for(
                self.annotator.extract(headlines, region),
                timeout=self.annotation_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Keyword extraction timed out for {region}, using local labels",
                extra={"region": region, "collaborator": self.annotator.provider_name}
            )
        except Exception as e:
            logger.warning(
                f"Keyword extraction failed for {region}, using local labels: {e}",
                extra={"region": region, "collaborator": self.annotator.provider_name}
            )
        return []

    async def run(self, region: str) -> List[Topic]:
        """
        Run the full pipeline for one region.

        Returns:
            Topics sorted by score total, highest first; empty when the
            feed is unavailable
        """
        start_time = time.time()
        stats = PipelineStats(region=region)
        self.last_stats = stats

        logger.info(f"Starting trending pipeline for {region}")

        stage_start = time.time()
        headlines = await self._fetch_headlines(region)
        stats.stages['feed'] = round(time.time() - stage_start, 2)
        stats.headlines = len(headlines)

        if not headlines:
            logger.warning(f"No headlines for {region}, returning no trends")
            stats.runtime_seconds = round(time.time() - start_time, 2)
            return []

        stage_start = time.time()
        extracted = await self._annotate(headlines, region)
        annotations = align_annotations(headlines, extracted)
        stats.stages['annotation'] = round(time.time() - stage_start, 2)
        stats.fallback_labels = sum(1 for a in annotations if a.fallback)
        stats.annotated = len(annotations) - stats.fallback_labels

        topics = deduplicate_headlines(headlines, annotations)
        stats.topics = len(topics)

        stage_start = time.time()
        await self.enricher.enrich(topics, region)
        stats.stages['enrichment'] = round(time.time() - stage_start, 2)

        ranked = rank_topics(score_topics(topics))

        stats.runtime_seconds = round(time.time() - start_time, 2)
        logger.info(
            f"Trending pipeline for {region} completed in {stats.runtime_seconds}s: "
            f"{stats.headlines} headlines -> {stats.topics} topics "
            f"({stats.fallback_labels} local labels)",
            extra=stats.to_dict()
        )
        return ranked


def build_pipeline(config: Optional[Settings] = None) -> TrendPipeline:
    """Wire the pipeline with the configured collaborators."""
    config = config or get_settings()
    timeout = config.collaborator_timeout_seconds

    enricher = Enricher(
        video_lookup=YouTubeVideoLookup(
            api_key=config.youtube_api_key,
            max_results=config.video_max_results,
            timeout=timeout,
        ),
        social_lookup=RedditSocialLookup(
            enabled=config.social_enabled,
            max_results=config.social_max_results,
            timeout=timeout,
        ),
        interest_lookup=GoogleTrendsInterestLookup(
            timeframe=config.trends_timeframe,
            timeout=timeout,
        ),
        tier_size=config.top_tier_size,
        batch_size=config.enrichment_batch_size,
        timeout=timeout,
    )

    return TrendPipeline(
        feed=GoogleNewsFeed(timeout=timeout, max_items=config.feed_max_items),
        annotator=AnnotationProviderFactory.create_provider(config),
        enricher=enricher,
        max_items=config.feed_max_items,
        feed_timeout=timeout + 5,
        annotation_timeout=config.annotation_timeout_seconds,
    )


async def _run_cli(region: str, refresh: bool) -> List[Topic]:
    if not refresh:
        pipeline = build_pipeline()
        try:
            return await pipeline.run(region)
        finally:
            await pipeline.aclose()

    from trendscope.core.db import create_all, dispose_engine
    from trendscope.trender.cache import build_snapshot_cache

    await create_all()
    cache = build_snapshot_cache()
    try:
        result = await cache.refresh(region)
        return result.trends
    finally:
        await cache.aclose()
        await dispose_engine()


def main():
    """CLI entry point."""
    import argparse
    import logging

    from trendscope.core.logging import setup_logging

    parser = argparse.ArgumentParser(description='Trending topics pipeline')
    parser.add_argument(
        '--region',
        default=get_settings().default_region,
        help='Region code, e.g. US, KR (default: %(default)s)'
    )
    parser.add_argument(
        '--refresh',
        action='store_true',
        help='Persist the run as a new snapshot'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    setup_logging("pipeline")
    if args.verbose:
        logging.getLogger('trendscope').setLevel(logging.DEBUG)

    topics = asyncio.run(_run_cli(args.region.upper(), args.refresh))

    print(f"\n=== Trending topics for {args.region.upper()} ({len(topics)}) ===")
    for position, topic in enumerate(topics, start=1):
        breakdown = topic.score.breakdown if topic.score else None
        detail = (
            f"news={breakdown.news_rank} video={breakdown.video} "
            f"interest={breakdown.search_interest} social={breakdown.social}"
            if breakdown else "unscored"
        )
        print(f"{position:>3}. [{topic.total_score:>3}] {topic.keyword} ({detail})")

    return 0 if topics else 1


if __name__ == "__main__":
    raise SystemExit(main())
