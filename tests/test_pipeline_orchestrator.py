"""Tests for the trending pipeline orchestrator."""

import pytest
from unittest.mock import AsyncMock

from trendscope.annotator.llm_provider import AnnotationError, AnnotationProvider
from trendscope.core.settings import Settings
from trendscope.ingestor.rss import FeedUnavailableError
from trendscope.signals.base import InterestLookup, SocialLookup, VideoLookup
from trendscope.trender.enrich import Enricher
from trendscope.trender.models import Annotation, RawHeadline, VideoItem
from trendscope.trender.pipeline import TrendPipeline, align_annotations, build_pipeline


class StubAnnotator(AnnotationProvider):

    def __init__(self, annotations=None, error=None, configured=True):
        self.annotations = annotations or []
        self.error = error
        self.configured = configured
        self.calls = 0

    @property
    def provider_name(self):
        return "stub"

    @property
    def is_configured(self):
        return self.configured

    async def extract(self, headlines, region):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.annotations)

    async def summarize(self, keyword, headlines, region):
        return f"{keyword} is trending"


class CountingVideoLookup(VideoLookup):

    def __init__(self, counts):
        self.counts = counts

    async def search(self, label):
        return [VideoItem(id=f"{label}-{i}", title="clip") for i in range(self.counts.get(label, 0))]


class EmptySocialLookup(SocialLookup):

    async def search(self, label):
        return []


class FixedInterestLookup(InterestLookup):

    def __init__(self, values):
        self.values = values

    async def interest(self, label, region):
        return self.values.get(label)


@pytest.fixture
def mock_headlines():
    return [
        RawHeadline(title="Rate cut expected - Reuters", link="https://news.example/1"),
        RawHeadline(title="Fed signals rate cut - AP", link="https://news.example/2"),
        RawHeadline(title="Cup final tonight - BBC", link="https://news.example/3"),
    ]


def make_feed(headlines=None, error=None):
    feed = AsyncMock()
    if error:
        feed.fetch.side_effect = error
    else:
        feed.fetch.return_value = headlines
    return feed


def make_pipeline(feed, annotator, videos=None, interest=None, tier_size=20):
    enricher = Enricher(
        video_lookup=CountingVideoLookup(videos or {}),
        social_lookup=EmptySocialLookup(),
        interest_lookup=FixedInterestLookup(interest or {}),
        tier_size=tier_size,
        batch_size=5,
        timeout=1.0,
    )
    return TrendPipeline(feed=feed, annotator=annotator, enricher=enricher)


@pytest.mark.asyncio
async def test_run_end_to_end(mock_headlines):
    annotator = StubAnnotator([
        Annotation("K1", "rates"),
        Annotation("K1", "rates again"),
        Annotation("K2", "football"),
    ])
    pipeline = make_pipeline(
        make_feed(mock_headlines),
        annotator,
        videos={"K1": 5, "K2": 9},
        interest={"K1": 50, "K2": 90},
        tier_size=1,
    )

    topics = await pipeline.run("US")

    assert [(t.keyword, t.total_score) for t in topics] == [("K1", 70), ("K2", 48)]
    k1, k2 = topics
    assert len(k1.headlines) == 2
    assert k1.summary == "rates"
    # K2 sits outside the tier and is never enriched
    assert k2.videos == []
    assert k2.search_interest == 0
    assert pipeline.last_stats.topics == 2
    assert pipeline.last_stats.fallback_labels == 0


@pytest.mark.asyncio
async def test_feed_failure_returns_empty():
    annotator = StubAnnotator()
    pipeline = make_pipeline(make_feed(error=FeedUnavailableError("HTTP 503")), annotator)

    topics = await pipeline.run("US")

    assert topics == []
    assert annotator.calls == 0


@pytest.mark.asyncio
async def test_empty_feed_returns_empty():
    pipeline = make_pipeline(make_feed([]), StubAnnotator())

    assert await pipeline.run("JP") == []


@pytest.mark.asyncio
async def test_annotation_failure_uses_local_labels(mock_headlines):
    annotator = StubAnnotator(error=AnnotationError("HTTP 429"))
    pipeline = make_pipeline(make_feed(mock_headlines), annotator)

    topics = await pipeline.run("US")

    assert [t.keyword for t in topics] == ["Rate cut expected", "Fed signals rate cut", "Cup final tonight"]
    assert all(t.summary is None for t in topics)
    assert pipeline.last_stats.fallback_labels == 3


@pytest.mark.asyncio
async def test_unconfigured_annotator_not_called(mock_headlines):
    annotator = StubAnnotator(configured=False)
    pipeline = make_pipeline(make_feed(mock_headlines), annotator)

    topics = await pipeline.run("US")

    assert annotator.calls == 0
    assert len(topics) == 3


@pytest.mark.asyncio
async def test_short_batch_is_filled(mock_headlines):
    annotator = StubAnnotator([Annotation("Rates"), Annotation("Rates")])
    pipeline = make_pipeline(make_feed(mock_headlines), annotator)

    topics = await pipeline.run("US")

    assert [t.keyword for t in topics] == ["Rates", "Cup final tonight"]


@pytest.mark.asyncio
async def test_feed_capped_at_max_items():
    headlines = [RawHeadline(title=f"Story {i}", link="") for i in range(60)]
    pipeline = make_pipeline(make_feed(headlines), StubAnnotator(configured=False), tier_size=0)

    topics = await pipeline.run("US")

    assert len(topics) == 50
    # unenriched topics keep feed order
    assert topics[0].keyword == "Story 0"
    assert topics[-1].total_score == 1


def test_align_annotations(mock_headlines):
    aligned = align_annotations(mock_headlines, [Annotation("K1"), Annotation("  ")])

    assert [a.keyword for a in aligned] == ["K1", "Fed signals rate cut", "Cup final tonight"]
    assert [a.fallback for a in aligned] == [False, True, True]


@pytest.mark.asyncio
async def test_aclose_closes_every_client():
    pipeline = build_pipeline(Settings(gemini_api_key="test-key"))
    enricher = pipeline.enricher
    clients = [
        pipeline.feed.client,
        pipeline.annotator.client,
        enricher.video_lookup.client,
        enricher.social_lookup.client,
        enricher.interest_lookup.client,
    ]

    await pipeline.aclose()

    assert all(client.is_closed for client in clients)
