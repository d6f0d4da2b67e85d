"""Domain records for the trending pipeline.

Topics are serialized with ``to_dict`` into the snapshot payload and
restored with ``from_dict`` when a snapshot is served from the store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from trendscope.core.time import parse_iso_timestamp


@dataclass
class RawHeadline:
    """One feed entry, in feed order."""
    title: str
    link: str
    published: Optional[datetime] = None
    source: str = "Google News"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'link': self.link,
            'published': self.published.isoformat() if self.published else None,
            'source': self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawHeadline':
        return cls(
            title=data.get('title', ''),
            link=data.get('link', ''),
            published=parse_iso_timestamp(data.get('published')),
            source=data.get('source') or "Google News",
        )


@dataclass
class Annotation:
    """Keyword and optional rationale for one headline."""
    keyword: str
    summary: Optional[str] = None
    fallback: bool = False


@dataclass
class VideoItem:
    id: str
    title: str
    thumbnail: str = ""
    channel_title: str = ""
    link: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'thumbnail': self.thumbnail,
            'channel_title': self.channel_title,
            'link': self.link,
        }


@dataclass
class SocialItem:
    title: str
    link: str
    platform: str = "Reddit"
    author: Optional[str] = None
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'link': self.link,
            'platform': self.platform,
            'author': self.author,
            'score': self.score,
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    """Individual score components. ``social`` stays in the record while the signal is disabled."""
    news_rank: int
    social: int
    video: int
    search_interest: int

    def to_dict(self) -> Dict[str, int]:
        return {
            'news_rank': self.news_rank,
            'social': self.social,
            'video': self.video,
            'search_interest': self.search_interest,
        }


@dataclass(frozen=True)
class TrendScore:
    total: int
    breakdown: ScoreBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {'total': self.total, 'breakdown': self.breakdown.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrendScore':
        breakdown = data.get('breakdown', {})
        return cls(
            total=int(data.get('total', 0)),
            breakdown=ScoreBreakdown(
                news_rank=int(breakdown.get('news_rank', 0)),
                social=int(breakdown.get('social', 0)),
                video=int(breakdown.get('video', 0)),
                search_interest=int(breakdown.get('search_interest', 0)),
            ),
        )


@dataclass
class Topic:
    """A deduplicated trending subject; the unit of ranking."""
    keyword: str
    first_seen_index: int
    headlines: List[RawHeadline]
    summary: Optional[str] = None
    videos: List[VideoItem] = field(default_factory=list)
    social: List[SocialItem] = field(default_factory=list)
    search_interest: int = 0
    score: Optional[TrendScore] = None

    @property
    def rank(self) -> int:
        """Feed rank proxy: 1-based first-seen position."""
        return self.first_seen_index + 1

    @property
    def video_count(self) -> int:
        return len(self.videos)

    @property
    def social_count(self) -> int:
        return sum(item.score or 0 for item in self.social)

    @property
    def share_url(self) -> str:
        return self.headlines[0].link if self.headlines else ""

    @property
    def total_score(self) -> int:
        return self.score.total if self.score else 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'keyword': self.keyword,
            'first_seen_index': self.first_seen_index,
            'headlines': [h.to_dict() for h in self.headlines],
            'summary': self.summary,
            'videos': [v.to_dict() for v in self.videos],
            'social': [s.to_dict() for s in self.social],
            'search_interest': self.search_interest,
            'share_url': self.share_url,
            'score': self.score.to_dict() if self.score else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Topic':
        score = data.get('score')
        return cls(
            keyword=data['keyword'],
            first_seen_index=int(data.get('first_seen_index', 0)),
            headlines=[RawHeadline.from_dict(h) for h in data.get('headlines', [])],
            summary=data.get('summary'),
            videos=[VideoItem(**v) for v in data.get('videos', [])],
            social=[SocialItem(**s) for s in data.get('social', [])],
            search_interest=int(data.get('search_interest', 0)),
            score=TrendScore.from_dict(score) if score else None,
        )


@dataclass
class Snapshot:
    """Topics of one persisted run, ordered by persisted rank."""
    region: str
    timestamp: datetime
    topics: List[Topic]


@dataclass
class TrendsResult:
    """What the snapshot cache hands back to callers."""
    region: str
    trends: List[Topic]
    source: str  # 'cache' | 'live' | 'history'
    timestamp: Optional[datetime] = None

    @property
    def cache_hit(self) -> bool:
        return self.source == 'cache'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'geo': self.region,
            'source': self.source,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'count': len(self.trends),
            'trends': [topic.to_dict() for topic in self.trends],
        }
