"""Composite trend scoring.

A topic's score is the sum of four integer components:
- News rank: position in the source feed, 50 for the top story down to 0 from rank 51
- Social: engagement on social platforms (disabled upstream, always 0)
- Video: 2 points per related video, capped at 20
- Search interest: latest search-interest sample (0-100) scaled to 0-20, rounded up
"""

import math
from typing import Iterable, List

from trendscope.core.logging import get_logger
from trendscope.trender.models import ScoreBreakdown, Topic, TrendScore

logger = get_logger(__name__)

# Scoring configuration
NEWS_RANK_BASE = 51
VIDEO_POINTS_PER_ITEM = 2
VIDEO_SCORE_CAP = 20
SEARCH_INTEREST_MAX = 100
SEARCH_INTEREST_DIVISOR = 5


def news_rank_score(rank: int) -> int:
    """max(0, 51 - rank): rank 1 scores 50, rank 51 and beyond score 0."""
    return max(0, NEWS_RANK_BASE - rank)


def social_score(social_count: int) -> int:
    """Social engagement bonus.

    The social collaborator is disabled upstream, so this slot always
    scores 0; the component stays in the breakdown for when it returns.
    """
    return 0


def video_score(video_count: int) -> int:
    return min(VIDEO_SCORE_CAP, max(0, video_count) * VIDEO_POINTS_PER_ITEM)


def search_interest_score(search_interest: int) -> int:
    """ceil(interest / 5) with interest clamped into [0, 100]."""
    interest = min(SEARCH_INTEREST_MAX, max(0, search_interest))
    return math.ceil(interest / SEARCH_INTEREST_DIVISOR)


def calculate_trend_score(
    rank: int,
    social_count: int = 0,
    video_count: int = 0,
    search_interest: int = 0
) -> TrendScore:
    """
    Calculate the composite score for one topic.

    Args:
        rank: 1-based feed rank of the topic
        social_count: Aggregate social engagement
        video_count: Number of related videos found
        search_interest: Latest search interest sample, 0-100

    Returns:
        TrendScore whose total is the exact sum of its breakdown
    """
    breakdown = ScoreBreakdown(
        news_rank=news_rank_score(rank),
        social=social_score(social_count),
        video=video_score(video_count),
        search_interest=search_interest_score(search_interest),
    )
    total = breakdown.news_rank + breakdown.social + breakdown.video + breakdown.search_interest
    return TrendScore(total=total, breakdown=breakdown)


def score_topic(topic: Topic) -> Topic:
    """Score a topic from its rank proxy and enrichment results."""
    topic.score = calculate_trend_score(
        rank=topic.rank,
        social_count=topic.social_count,
        video_count=topic.video_count,
        search_interest=topic.search_interest,
    )
    return topic


def score_topics(topics: Iterable[Topic]) -> List[Topic]:
    scored = [score_topic(topic) for topic in topics]
    logger.debug(f"Scored {len(scored)} topics")
    return scored


def rank_topics(topics: Iterable[Topic]) -> List[Topic]:
    """
    Order topics by score total, highest first.

    ``sorted`` is stable, so topics with equal totals keep their incoming
    (rank-ascending) order.
    """
    return sorted(topics, key=lambda t: t.total_score, reverse=True)
