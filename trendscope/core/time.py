"""Time and timezone utilities for feed processing and snapshot lookups."""

import re
from datetime import datetime, timezone
from typing import Optional
import email.utils

from trendscope.core.logging import get_logger

logger = get_logger(__name__)


def parse_feed_date(date_string: Optional[str]) -> Optional[datetime]:
    """
    Parse date string from RSS/Atom feed into a UTC datetime.

    Handles RFC 2822 (RSS) first, then ISO 8601 variants (Atom).
    """
    if not date_string:
        return None

    date_string = date_string.strip()

    try:
        dt = email.utils.parsedate_to_datetime(date_string)
        return normalize_timezone(dt)
    except (ValueError, TypeError):
        pass

    match = re.search(r'(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?)', date_string)
    if match:
        dt = parse_iso_timestamp(match.group(1))
        if dt:
            return dt

    logger.warning(f"Could not parse date: {date_string}")
    return None


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp (``Z`` suffix allowed) into a UTC datetime.

    Returns None when the value cannot be parsed.
    """
    if not value:
        return None

    value = value.strip()
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'

    try:
        return normalize_timezone(datetime.fromisoformat(value))
    except ValueError:
        return None


def normalize_timezone(dt: datetime, target_tz: timezone = timezone.utc) -> datetime:
    """
    Normalize datetime to target timezone.

    Naive datetimes are assumed to be UTC, which is how the store
    writes them on backends without timezone support.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(target_tz)


def get_current_utc_time() -> datetime:
    """Get current time in UTC."""
    return datetime.now(timezone.utc)
