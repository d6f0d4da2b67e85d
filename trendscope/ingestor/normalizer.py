"""Feed entry normalization into RawHeadline records."""

import html
import re
from typing import Any, Optional

from trendscope.core.logging import get_logger
from trendscope.core.time import parse_feed_date
from trendscope.trender.models import Annotation, RawHeadline

logger = get_logger(__name__)

# Google News titles read "Headline - Publisher"
TITLE_SEPARATOR = " - "
UNKNOWN_TREND = "Unknown Trend"
DEFAULT_SOURCE = "Google News"


def _get(entry: Any, name: str) -> Any:
    """Read a field from a feedparser entry or a plain object/dict."""
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def clean_text(text: Optional[str]) -> str:
    """Unescape entities, drop tags and collapse whitespace."""
    if not text:
        return ""
    text = html.unescape(text)
    text = re.sub(r'<[^>]+>', ' ', text)
    return re.sub(r'\s+', ' ', text).strip()


def fallback_keyword(title: Optional[str]) -> str:
    """
    Derive a topic label locally from a headline title.

    The title is cut at the first publisher separator; an empty result
    becomes ``"Unknown Trend"``.
    """
    if not title:
        return UNKNOWN_TREND
    label = title.split(TITLE_SEPARATOR)[0].strip()
    return label or title.strip() or UNKNOWN_TREND


def fallback_annotation(headline: RawHeadline) -> Annotation:
    return Annotation(keyword=fallback_keyword(headline.title), summary=None, fallback=True)


def normalize_entry(entry: Any) -> Optional[RawHeadline]:
    """
    Normalize a feedparser entry into a RawHeadline.

    Returns None for entries without a title.
    """
    title = clean_text(_get(entry, 'title'))
    if not title:
        logger.debug("Skipping feed entry without title")
        return None

    source = _get(entry, 'source')
    if isinstance(source, dict):
        source = source.get('title')
    source = clean_text(source) or clean_text(_get(entry, 'author')) or DEFAULT_SOURCE

    return RawHeadline(
        title=title,
        link=(_get(entry, 'link') or '').strip(),
        published=parse_feed_date(_get(entry, 'published')),
        source=source,
    )
