"""Tests for time helpers, regions and logging configuration."""

from datetime import datetime, timedelta, timezone

from trendscope.core.logging import get_logging_config
from trendscope.core.regions import DEFAULT_REGIONS, get_region, load_regions, tracked_regions
from trendscope.core.time import normalize_timezone, parse_feed_date, parse_iso_timestamp


class TestTime:

    def test_parse_feed_date_rfc2822(self):
        dt = parse_feed_date("Sat, 01 Mar 2025 10:00:00 +0900")

        assert dt == datetime(2025, 3, 1, 1, 0, tzinfo=timezone.utc)

    def test_parse_feed_date_iso(self):
        dt = parse_feed_date("2025-03-01T10:00:00Z")

        assert dt == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_parse_feed_date_invalid(self):
        assert parse_feed_date("yesterday-ish") is None
        assert parse_feed_date(None) is None

    def test_parse_iso_timestamp(self):
        assert parse_iso_timestamp("2025-03-01T12:00:00Z") == datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
        assert parse_iso_timestamp("2025-03-01T21:00:00+09:00") == datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
        assert parse_iso_timestamp("not a date") is None
        assert parse_iso_timestamp("") is None

    def test_normalize_naive_is_utc(self):
        dt = normalize_timezone(datetime(2025, 3, 1, 12))

        assert dt.tzinfo == timezone.utc
        assert dt.utcoffset() == timedelta(0)


class TestRegions:

    def test_known_region_locale(self):
        region = get_region("kr")

        assert region.code == "KR"
        assert region.hl == "ko-KR"
        assert region.ceid == "KR:ko"

    def test_unknown_region_defaults_to_english(self):
        region = get_region("ZZ")

        assert region.language == "en"
        assert region.tracked is False

    def test_tracked_regions(self):
        assert tracked_regions() == ["US", "JP", "KR", "CN", "TW"]

    def test_default_table_tracks_same_regions(self):
        tracked = [code for code, region in DEFAULT_REGIONS.items() if region.tracked]

        assert tracked == ["US", "JP", "KR", "CN", "TW"]
        assert DEFAULT_REGIONS["GB"].tracked is False

    def test_load_regions_from_yaml(self, tmp_path):
        path = tmp_path / "regions.yaml"
        path.write_text("regions:\n  - code: mx\n    language: es\n  - code: ar\n    language: es\n    tracked: false\n")

        regions = load_regions(str(path))

        assert set(regions) == {"MX", "AR"}
        assert regions["MX"].hl == "es-MX"
        assert regions["AR"].tracked is False

    def test_load_regions_missing_file(self, tmp_path):
        assert load_regions(str(tmp_path / "missing.yaml")) == DEFAULT_REGIONS

    def test_load_regions_invalid_file(self, tmp_path):
        path = tmp_path / "regions.yaml"
        path.write_text("regions:\n  - language: en\n")

        assert load_regions(str(path)) == DEFAULT_REGIONS


class TestLoggingConfig:

    def test_console_by_default(self):
        config = get_logging_config("trender", level="debug", json_logs=False)

        assert config["handlers"]["console"]["formatter"] == "console"
        assert "[trender]" in config["formatters"]["console"]["format"]
        assert config["loggers"]["trendscope"]["level"] == "DEBUG"

    def test_json_logs(self):
        config = get_logging_config("pipeline", json_logs=True)

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["static_fields"] == {"service": "pipeline"}
        assert config["loggers"]["httpx"]["level"] == "WARNING"
