"""Tests for enrichment signal adapters and the annotation provider."""

import json

import httpx
import pytest

from trendscope.annotator.llm_provider import (
    AnnotationError,
    AnnotationProviderFactory,
    GeminiProvider,
    NoLLMProvider,
)
from trendscope.core.settings import Settings
from trendscope.signals import (
    GoogleTrendsInterestLookup,
    RedditSocialLookup,
    YouTubeVideoLookup,
    latest_interest,
    parse_trends_json,
)
from trendscope.trender.models import RawHeadline


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestYouTubeVideoLookup:

    @pytest.mark.asyncio
    async def test_search_builds_items(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={"items": [
                {
                    "id": {"videoId": "abc123"},
                    "snippet": {
                        "title": "Storm footage",
                        "channelTitle": "News Channel",
                        "thumbnails": {"high": {"url": "https://img.example/abc.jpg"}},
                    },
                },
                {"id": {"channelId": "not-a-video"}, "snippet": {}},
            ]})

        lookup = YouTubeVideoLookup(api_key="key", client=mock_client(handler))
        videos = await lookup.search("storm")

        assert len(videos) == 1
        assert videos[0].id == "abc123"
        assert videos[0].link == "https://www.youtube.com/watch?v=abc123"
        assert videos[0].thumbnail == "https://img.example/abc.jpg"
        assert seen["q"] == "storm"
        assert seen["maxResults"] == "3"

    @pytest.mark.asyncio
    async def test_no_api_key_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        lookup = YouTubeVideoLookup(api_key="", client=mock_client(handler))

        assert await lookup.search("storm") == []
        assert calls == []

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        lookup = YouTubeVideoLookup(api_key="key", client=mock_client(lambda r: httpx.Response(403)))

        with pytest.raises(httpx.HTTPStatusError):
            await lookup.search("storm")


class TestRedditSocialLookup:

    @pytest.mark.asyncio
    async def test_disabled_returns_nothing(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        lookup = RedditSocialLookup(client=mock_client(handler))

        assert await lookup.search("storm") == []
        assert calls == []

    @pytest.mark.asyncio
    async def test_enabled_parses_posts(self):
        payload = {"data": {"children": [
            {"data": {"title": "Storm thread", "permalink": "/r/news/1", "author": "u1", "score": 42}},
        ]}}
        lookup = RedditSocialLookup(enabled=True, client=mock_client(lambda r: httpx.Response(200, json=payload)))

        posts = await lookup.search("storm")

        assert posts[0].link == "https://www.reddit.com/r/news/1"
        assert posts[0].score == 42


class TestGoogleTrendsInterest:

    def test_parse_trends_json_strips_guard(self):
        assert parse_trends_json(")]}',\n{\"a\": 1}") == {"a": 1}

    def test_parse_trends_json_without_object(self):
        with pytest.raises(ValueError):
            parse_trends_json(")]}'")

    def test_latest_interest(self):
        timeline = {"default": {"timelineData": [{"value": [20]}, {"value": [64]}]}}

        assert latest_interest(timeline) == 64
        assert latest_interest({"default": {"timelineData": []}}) is None
        assert latest_interest({"default": {"timelineData": [{"value": [180]}]}}) == 100

    @pytest.mark.asyncio
    async def test_interest_two_step_lookup(self):
        widget_request = {"time": "now 1-d", "geo": {"country": "US"}}
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path.endswith("/explore"):
                body = {"widgets": [
                    {"id": "RELATED_QUERIES", "request": {}, "token": "x"},
                    {"id": "TIMESERIES", "request": widget_request, "token": "tok"},
                ]}
                return httpx.Response(200, text=")]}'\n" + json.dumps(body))
            assert request.url.params["token"] == "tok"
            assert json.loads(request.url.params["req"]) == widget_request
            body = {"default": {"timelineData": [{"value": [12]}, {"value": [55]}]}}
            return httpx.Response(200, text=")]}',\n" + json.dumps(body))

        lookup = GoogleTrendsInterestLookup(client=mock_client(handler))

        assert await lookup.interest("storm", "US") == 55
        assert paths == ["/trends/api/explore", "/trends/api/widgetdata/multiline"]

    @pytest.mark.asyncio
    async def test_interest_without_widget(self):
        lookup = GoogleTrendsInterestLookup(
            client=mock_client(lambda r: httpx.Response(200, text=")]}'\n{\"widgets\": []}"))
        )

        assert await lookup.interest("storm", "US") is None


def gemini_response(text):
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class TestGeminiProvider:

    @pytest.fixture
    def headlines(self):
        return [
            RawHeadline(title="Rate cut expected - Reuters", link=""),
            RawHeadline(title="Fed signals rate cut - AP", link=""),
            RawHeadline(title="Cup final tonight - BBC", link=""),
        ]

    @pytest.mark.asyncio
    async def test_extract(self, headlines):
        sent = {}

        def handler(request):
            sent["url"] = str(request.url)
            sent["body"] = json.loads(request.content)
            return gemini_response(json.dumps({"items": [
                {"keyword": "Rate cut", "summary": "Markets expect a cut."},
                {"keyword": "Rate cut", "summary": "Fed hints."},
                {"keyword": " Cup final ", "summary": ""},
            ]}))

        provider = GeminiProvider(api_key="key", language="English", client=mock_client(handler))
        annotations = await provider.extract(headlines, "US")

        assert [a.keyword for a in annotations] == ["Rate cut", "Rate cut", "Cup final"]
        assert annotations[0].summary == "Markets expect a cut."
        assert annotations[2].summary is None
        assert ":generateContent" in sent["url"]
        prompt = sent["body"]["contents"][0]["parts"][0]["text"]
        assert "3. Cup final tonight - BBC" in prompt
        assert "in English" in prompt
        assert sent["body"]["generationConfig"]["responseMimeType"] == "application/json"

    @pytest.mark.asyncio
    async def test_extract_short_batch(self, headlines):
        provider = GeminiProvider(
            api_key="key",
            client=mock_client(lambda r: gemini_response('{"items": [{"keyword": "Rate cut"}]}'))
        )

        annotations = await provider.extract(headlines, "US")

        assert len(annotations) == 1

    @pytest.mark.asyncio
    async def test_extract_invalid_payload(self, headlines):
        provider = GeminiProvider(api_key="key", client=mock_client(lambda r: gemini_response("not json")))

        with pytest.raises(AnnotationError):
            await provider.extract(headlines, "US")

    @pytest.mark.asyncio
    async def test_extract_http_error(self, headlines):
        provider = GeminiProvider(api_key="key", client=mock_client(lambda r: httpx.Response(429)))

        with pytest.raises(AnnotationError):
            await provider.extract(headlines, "US")

    @pytest.mark.asyncio
    async def test_summarize(self):
        provider = GeminiProvider(
            api_key="key",
            client=mock_client(lambda r: gemini_response("  Rates are falling.\n"))
        )

        assert await provider.summarize("Rate cut", ["Fed signals rate cut"], "US") == "Rates are falling."


class TestProviderFactory:

    def test_no_key_gives_nollm(self):
        provider = AnnotationProviderFactory.create_provider(Settings(gemini_api_key=""))

        assert isinstance(provider, NoLLMProvider)
        assert provider.is_configured is False

    def test_key_gives_gemini(self):
        provider = AnnotationProviderFactory.create_provider(
            Settings(gemini_api_key="key", gemini_model="gemini-test", annotation_language="Korean")
        )

        assert isinstance(provider, GeminiProvider)
        assert provider.provider_name == "Gemini:gemini-test"
        assert provider.language == "Korean"

    @pytest.mark.asyncio
    async def test_nollm_raises(self):
        with pytest.raises(AnnotationError):
            await NoLLMProvider().extract([], "US")
