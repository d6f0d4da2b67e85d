"""Google Trends search-interest lookup.

Two requests per label: ``explore`` returns a token for the time-series
widget, ``widgetdata/multiline`` returns the interest timeline. The last
point of the timeline is the current interest on a 0-100 scale.
"""

import json
from typing import Any, Dict, Optional

import httpx

from trendscope.core.logging import get_logger
from trendscope.signals.base import InterestLookup

logger = get_logger(__name__)

TRENDS_EXPLORE_URL = "https://trends.google.com/trends/api/explore"
TRENDS_MULTILINE_URL = "https://trends.google.com/trends/api/widgetdata/multiline"
TIMESERIES_WIDGET_ID = "TIMESERIES"


def parse_trends_json(text: str) -> Dict[str, Any]:
    """Google Trends prefixes JSON bodies with an anti-XSSI guard such as ``)]}',``."""
    start = text.find('{')
    if start < 0:
        raise ValueError("No JSON object in Google Trends response")
    return json.loads(text[start:])


def latest_interest(timeline: Dict[str, Any]) -> Optional[int]:
    """Value of the last timeline point, or None for an empty timeline."""
    points = timeline.get('default', {}).get('timelineData', [])
    if not points:
        return None
    values = points[-1].get('value') or [0]
    return max(0, min(100, int(values[0] or 0)))


class GoogleTrendsInterestLookup(InterestLookup):

    def __init__(
        self,
        timeframe: str = "now 1-d",
        hl: str = "en-US",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.timeframe = timeframe
        self.hl = hl
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": "Mozilla/5.0 (compatible; Trendscope/1.0)"},
            follow_redirects=True,
        )

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        return parse_trends_json(response.text)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def interest(self, label: str, region: str) -> Optional[int]:
        explore_req = {
            "comparisonItem": [{"keyword": label, "geo": region, "time": self.timeframe}],
            "category": 0,
            "property": "",
        }
        explore = await self._get_json(
            TRENDS_EXPLORE_URL,
            {"hl": self.hl, "tz": 0, "req": json.dumps(explore_req)},
        )

        widget = next(
            (w for w in explore.get('widgets', []) if w.get('id') == TIMESERIES_WIDGET_ID),
            None
        )
        if widget is None:
            logger.debug(f"No time-series widget for '{label}' ({region})")
            return None

        timeline = await self._get_json(
            TRENDS_MULTILINE_URL,
            {
                "hl": self.hl,
                "tz": 0,
                "req": json.dumps(widget['request']),
                "token": widget['token'],
            },
        )
        return latest_interest(timeline)
