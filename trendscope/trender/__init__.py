"""Trending topics processing package.

This package contains modules for:
- Domain records (models.py)
- Keyword deduplication (topics.py)
- Composite scoring (score.py)
- Top-tier enrichment (enrich.py)
- Processing pipeline (pipeline.py)
- Snapshot cache and scheduler (cache.py, scheduler.py)
- Main application (app.py)
"""

from .models import (
    Annotation,
    RawHeadline,
    ScoreBreakdown,
    Snapshot,
    Topic,
    TrendScore,
    TrendsResult,
)

from .score import calculate_trend_score, rank_topics, score_topics

from .topics import deduplicate_headlines

__all__ = [
    # Models
    'Annotation',
    'RawHeadline',
    'ScoreBreakdown',
    'Snapshot',
    'Topic',
    'TrendScore',
    'TrendsResult',

    # Scoring
    'calculate_trend_score',
    'rank_topics',
    'score_topics',

    # Deduplication
    'deduplicate_headlines',
]
